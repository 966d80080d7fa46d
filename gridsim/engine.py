"""Движок балансировки: генерация против потребления, цикл за циклом.

Шаг цикла:
- источники в порядке регистрации: сработавший автомат или отключённый
  источник пропускаются (и не пересэмплируются), остальные дают мощность;
- нагрузки в порядке регистрации: нагрузка за сработавшим автоматом не
  учитывается (если она ещё помечена подключённой, она изолируется);
- дефицит (P < D): отключаем подключённые нагрузки от наименее важной
  (больший номер приоритета) к более важной, взводя их автоматы, пока P >= D;
- профицит/баланс (P >= D): подключаем отключённые нагрузки с целым автоматом
  от более важной к менее важной, каждую только если она помещается.

Соглашения:
- сортировки стабильные: при равном приоритете раньше обрабатывается нагрузка,
  зарегистрированная раньше;
- автоматически отключённые нагрузки (автомат взведён) обратно сами не
  подключаются; вручную отключённые (автомат цел) подключаются;
- после любого цикла нет нагрузки, которая одновременно подключена и стоит
  за сработавшим автоматом.

Движок однопоточный и не реентерабельный, синхронизация на вызывающей стороне.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple
import logging

import numpy as np

from gridsim.breakers import BreakerRegistry
from gridsim.components import Load, LoadSnapshot, Source, SourceSnapshot
from gridsim.config.grid import EngineSettings, GridConfig
from gridsim.core import units
from gridsim.core.types import ComponentKey, ComponentKind
from gridsim.core.validation import ensure_index
from gridsim.errors import DuplicateRegistrationError, MalformedSelectorError
from gridsim.faults import FaultRegistry, parse_selector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleReport:
    """Итог одного цикла балансировки."""

    cycle_id: int
    total_power_kw: float
    total_demand_kw: float  # после отключений/подключений этого цикла
    demand_before_kw: float  # до отключений/подключений
    deficit: bool
    tripped_loads: Tuple[str, ...] = ()
    reconnected_loads: Tuple[str, ...] = ()
    isolated_loads: Tuple[str, ...] = ()
    active_faults: Tuple[str, ...] = ()
    source_outputs_kw: Dict[str, float] = field(default_factory=dict)
    loads: Tuple[LoadSnapshot, ...] = ()
    open_breakers: Tuple[str, ...] = ()

    @property
    def balance_kw(self) -> float:
        return float(self.total_power_kw - self.total_demand_kw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "total_power_kw": self.total_power_kw,
            "total_demand_kw": self.total_demand_kw,
            "demand_before_kw": self.demand_before_kw,
            "deficit": self.deficit,
            "tripped_loads": list(self.tripped_loads),
            "reconnected_loads": list(self.reconnected_loads),
            "isolated_loads": list(self.isolated_loads),
            "active_faults": list(self.active_faults),
            "source_outputs_kw": dict(self.source_outputs_kw),
            "loads": [
                {
                    "name": l.name,
                    "demand_kw": l.demand_kw,
                    "priority": l.priority,
                    "connected": l.connected,
                }
                for l in self.loads
            ],
            "open_breakers": list(self.open_breakers),
        }


CycleCallback = Callable[[CycleReport], None]


def _priority(load: Load) -> int:
    return load.priority


class BalancingEngine:
    """Источники, нагрузки, автоматы и аварии + процедура цикла."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        on_cycle: CycleCallback | None = None,
    ) -> None:
        self.settings = settings if settings is not None else EngineSettings()
        self._sources: List[Source] = []
        self._loads: List[Load] = []
        self._breakers = BreakerRegistry()
        self._faults = FaultRegistry()
        self._cycle_count = 0
        self._on_cycle = on_cycle
        self.last_report: CycleReport | None = None

    # ------------------------------------------------------------------
    # Доступ к состоянию
    # ------------------------------------------------------------------
    @property
    def sources(self) -> Tuple[Source, ...]:
        return tuple(self._sources)

    @property
    def loads(self) -> Tuple[Load, ...]:
        return tuple(self._loads)

    @property
    def breakers(self) -> BreakerRegistry:
        return self._breakers

    @property
    def faults(self) -> FaultRegistry:
        return self._faults

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    def list_breakers(self) -> Dict[str, bool]:
        """Имя компонента -> автомат сработал (по возрастанию имени)."""

        return {key.name: tripped for key, tripped in self._breakers.states().items()}

    def list_loads(self) -> Tuple[LoadSnapshot, ...]:
        return tuple(l.snapshot() for l in self._loads)

    def list_sources(self) -> Tuple[SourceSnapshot, ...]:
        return tuple(s.snapshot() for s in self._sources)

    def active_faults(self) -> List[str]:
        return self._faults.names()

    def is_load_tripped(self, name: str) -> bool:
        return self._breakers.is_tripped(ComponentKey.load(name))

    def is_source_tripped(self, name: str) -> bool:
        return self._breakers.is_tripped(ComponentKey.source(name))

    # ------------------------------------------------------------------
    # Регистрация
    # ------------------------------------------------------------------
    def _claim_name(self, name: str, kind: ComponentKind) -> ComponentKey:
        existing = self._breakers.kind_of(name)
        if existing is not None:
            raise DuplicateRegistrationError(name, existing, kind)
        key = ComponentKey(name=name, kind=kind)
        self._breakers.ensure(key)
        return key

    def register_source(self, source: Source) -> CycleReport | None:
        """Добавить источник.

        При settings.cycle_on_source_added сразу выполняется полный цикл
        и возвращается его отчёт, иначе возвращается None.
        """

        self._claim_name(source.name, "source")
        self._sources.append(source)
        logger.info(
            "registered %s source %s (%.1f kW, renewable=%s)",
            source.kind,
            source.name,
            source.output_kw,
            source.renewable,
        )
        if self.settings.cycle_on_source_added:
            return self.run_cycle()
        return None

    def add_load(self, load: Load) -> Load:
        self._claim_name(load.name, "load")
        self._loads.append(load)
        logger.info(
            "registered load %s (%.1f kW, priority=%d)", load.name, load.demand_kw, load.priority
        )
        return load

    def register_load(
        self, name: str, demand_kw: float, priority: int = units.DEFAULT_LOAD_PRIORITY
    ) -> Load:
        return self.add_load(Load(name=name, demand_kw=demand_kw, priority=priority))

    # ------------------------------------------------------------------
    # Цикл
    # ------------------------------------------------------------------
    def run_cycle(self) -> CycleReport:
        self._cycle_count += 1
        cycle_id = self._cycle_count
        logger.debug("cycle %d: start", cycle_id)

        # 1) генерация
        total_power = 0.0
        outputs: Dict[str, float] = {}
        for src in self._sources:
            if self._breakers.is_tripped(ComponentKey.source(src.name)) or not src.connected:
                outputs[src.name] = 0.0
                continue
            out = src.resample()
            outputs[src.name] = out
            total_power += out
            logger.debug("cycle %d: source %s generating %.2f kW", cycle_id, src.name, out)

        # 2) потребление
        total_demand = 0.0
        isolated: List[str] = []
        for load in self._loads:
            if self._breakers.is_tripped(ComponentKey.load(load.name)):
                if load.connected:
                    load.disconnect()
                    isolated.append(load.name)
                    logger.info("cycle %d: load %s isolated behind open breaker", cycle_id, load.name)
                continue
            if load.connected:
                total_demand += load.demand_kw

        demand_before = total_demand
        logger.info(
            "cycle %d: total power %.2f kW, total demand %.2f kW", cycle_id, total_power, total_demand
        )

        tripped: List[str] = []
        reconnected: List[str] = []
        deficit = total_power < total_demand

        if deficit:
            # 3) дефицит: сначала наименее важные
            logger.warning(
                "cycle %d: power deficit %.2f kW, shedding loads by priority",
                cycle_id,
                total_demand - total_power,
            )
            candidates = [l for l in self._loads if l.connected]
            for load in sorted(candidates, key=_priority, reverse=True):
                load.disconnect()
                self._breakers[ComponentKey.load(load.name)].trip()
                total_demand -= load.demand_kw
                tripped.append(load.name)
                logger.info("cycle %d: load %s tripped due to overload", cycle_id, load.name)
                if total_power >= total_demand:
                    break
        else:
            # 4) профицит: сначала наиболее важные, каждая только если помещается
            candidates = [
                l
                for l in self._loads
                if not l.connected and not self._breakers.is_tripped(ComponentKey.load(l.name))
            ]
            for load in sorted(candidates, key=_priority):
                if total_power >= total_demand + load.demand_kw:
                    load.reconnect()
                    total_demand += load.demand_kw
                    reconnected.append(load.name)
                    logger.info("cycle %d: load %s reconnected", cycle_id, load.name)

        # 5) активные аварии
        faults = self._faults.names()
        for name in faults:
            logger.info("cycle %d: active fault %s", cycle_id, name)

        report = CycleReport(
            cycle_id=cycle_id,
            total_power_kw=float(total_power),
            total_demand_kw=float(total_demand),
            demand_before_kw=float(demand_before),
            deficit=deficit,
            tripped_loads=tuple(tripped),
            reconnected_loads=tuple(reconnected),
            isolated_loads=tuple(isolated),
            active_faults=tuple(faults),
            source_outputs_kw=outputs,
            loads=self.list_loads(),
            open_breakers=tuple(name for name, t in self.list_breakers().items() if t),
        )
        self.last_report = report
        logger.debug("cycle %d: end", cycle_id)

        if self._on_cycle is not None:
            self._on_cycle(report)
        return report

    # ------------------------------------------------------------------
    # Ручные аварии
    # ------------------------------------------------------------------
    def _load_at(self, index: int) -> Load:
        return self._loads[ensure_index("load", index, len(self._loads))]

    def _source_at(self, index: int) -> Source:
        return self._sources[ensure_index("source", index, len(self._sources))]

    def _key_for_name(self, name: str) -> ComponentKey:
        # сначала нагрузки, затем источники
        for kind in ("load", "source"):
            key = ComponentKey(name=name, kind=kind)  # type: ignore[arg-type]
            if key in self._breakers:
                return key
        raise MalformedSelectorError(name)

    def _apply_fault(self, key: ComponentKey) -> ComponentKey:
        if self._faults.add(key):
            logger.info("fault injected at %s", key)
        self._breakers[key].trip()
        return key

    def inject_fault(self, target: str) -> ComponentKey:
        """Авария на компоненте по имени."""

        if not isinstance(target, str):
            raise MalformedSelectorError(repr(target))
        return self._apply_fault(self._key_for_name(target))

    def inject_fault_at(self, selector: str) -> ComponentKey:
        """Авария по токену позиции: L<i> — нагрузка, S<i> — источник."""

        kind, index = parse_selector(selector)
        if kind == "load":
            key = ComponentKey.load(self._load_at(index).name)
        else:
            key = ComponentKey.source(self._source_at(index).name)
        return self._apply_fault(key)

    def resolve_fault(self, index: int) -> str:
        """Снять index-ю аварию, сбросить автомат и сразу выполнить цикл.

        Нагрузка сама не подключается: это может сделать только ветка
        профицита в последующем цикле, если хватает мощности.
        """

        key = self._faults.at(index)
        self._faults.discard(key)
        self._breakers[key].reset()
        logger.info("fault resolved at %s", key)
        self.run_cycle()
        return key.name

    def reset_tripped_loads(self) -> List[str]:
        """Сбросить автоматы отключённых по перегрузке нагрузок (не аварийных).

        Нагрузки не подключаются, это решит следующий цикл.
        """

        reset: List[str] = []
        for load in self._loads:
            key = ComponentKey.load(load.name)
            if self._breakers.is_tripped(key) and key not in self._faults:
                self._breakers[key].reset()
                reset.append(load.name)
        if reset:
            logger.info("breakers reset for %s", ", ".join(reset))
        return reset

    # ------------------------------------------------------------------
    # Ручное подключение/отключение
    # ------------------------------------------------------------------
    def set_load_connectivity(self, index: int, connected: bool) -> None:
        """Перевести флаг подключения нагрузки; автомат и аварии не трогаются."""

        load = self._load_at(index)
        if connected:
            load.reconnect()
        else:
            load.disconnect()
        logger.info("load %s manually %s", load.name, "reconnected" if connected else "disconnected")

    def disconnect_load(self, index: int) -> None:
        self.set_load_connectivity(index, False)

    def reconnect_load(self, index: int) -> None:
        self.set_load_connectivity(index, True)

    def set_source_connectivity(self, index: int, connected: bool) -> None:
        src = self._source_at(index)
        if connected:
            src.reconnect()
        else:
            src.disconnect()
        logger.info("source %s manually %s", src.name, "reconnected" if connected else "disconnected")

    def __repr__(self) -> str:
        return (
            f"BalancingEngine(sources={len(self._sources)}, loads={len(self._loads)}, "
            f"faults={len(self._faults)}, cycles={self._cycle_count})"
        )


def build_engine(
    cfg: GridConfig,
    rng: np.random.Generator | None = None,
    *,
    on_cycle: CycleCallback | None = None,
) -> BalancingEngine:
    """Собрать движок из конфига: сначала источники, затем нагрузки."""

    if rng is None:
        rng = np.random.default_rng()
    engine = BalancingEngine(cfg.settings, on_cycle=on_cycle)
    for spec in cfg.sources:
        engine.register_source(spec.to_source(rng, cfg.settings))
    for spec in cfg.loads:
        engine.add_load(spec.to_load())
    return engine
