"""Конфигурация сети (data-only).

Этот модуль намеренно является "мёртвым" конфигом:
- описания источников (fixed/variable) и нагрузок;
- настройки движка балансировки;
- демонстрационная сеть по умолчанию.

Сборка движка из конфига — gridsim.engine.build_engine.
Здесь нет зависимостей от движка, только от компонентов.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple
import json

import numpy as np

from gridsim.components import Load, Source, uniform_output
from gridsim.core import units
from gridsim.core.types import SOURCE_KINDS, SourceKind
from gridsim.core.validation import (
    ensure_int,
    ensure_non_empty,
    ensure_non_negative,
    ensure_range_ordered,
)


@dataclass(frozen=True)
class EngineSettings:
    """Настройки движка балансировки."""

    # True: регистрация источника сразу запускает полный цикл (старое поведение)
    cycle_on_source_added: bool = False
    variable_output_min_kw: float = units.VARIABLE_OUTPUT_MIN
    variable_output_max_kw: float = units.VARIABLE_OUTPUT_MAX

    def __post_init__(self) -> None:
        ensure_range_ordered(
            self.variable_output_min_kw, self.variable_output_max_kw, "variable output range"
        )


@dataclass(frozen=True)
class SourceSpec:
    name: str
    kind: SourceKind = "fixed"
    output_kw: float = 0.0
    renewable: bool | None = None  # None: variable -> True, fixed -> False
    connected: bool = True

    def __post_init__(self) -> None:
        ensure_non_empty(self.name, "source name")
        if self.kind not in SOURCE_KINDS:
            raise ValueError(f"{self.name}: kind must be one of {SOURCE_KINDS}, got {self.kind!r}")
        ensure_non_negative(self.output_kw, f"{self.name}.output_kw")

    @property
    def is_renewable(self) -> bool:
        if self.renewable is None:
            return self.kind == "variable"
        return bool(self.renewable)

    def to_source(self, rng: np.random.Generator, settings: EngineSettings) -> Source:
        if self.kind == "variable":
            gen = uniform_output(rng, settings.variable_output_min_kw, settings.variable_output_max_kw)
            # output_kw == 0 в конфиге variable-источника означает "стартовое значение по умолчанию"
            initial = self.output_kw if self.output_kw > 0.0 else units.VARIABLE_INITIAL_OUTPUT
            src = Source.variable(
                self.name, gen, renewable=self.is_renewable, initial_output_kw=initial
            )
        else:
            src = Source.fixed(self.name, self.output_kw, renewable=self.is_renewable)
        if not self.connected:
            src.disconnect()
        return src


@dataclass(frozen=True)
class LoadSpec:
    name: str
    demand_kw: float
    priority: int = units.DEFAULT_LOAD_PRIORITY
    connected: bool = True

    def __post_init__(self) -> None:
        ensure_non_empty(self.name, "load name")
        ensure_non_negative(self.demand_kw, f"{self.name}.demand_kw")
        ensure_int(self.priority, f"{self.name}.priority")

    def to_load(self) -> Load:
        return Load(
            name=self.name,
            demand_kw=self.demand_kw,
            priority=self.priority,
            connected=self.connected,
        )


@dataclass(frozen=True)
class GridConfig:
    """Полный конфиг сети."""

    sources: Tuple[SourceSpec, ...] = ()
    loads: Tuple[LoadSpec, ...] = ()
    settings: EngineSettings = field(default_factory=EngineSettings)

    def __post_init__(self) -> None:
        # имена уникальны во всей сети, а не только внутри вида
        seen: Dict[str, str] = {}
        for kind, specs in (("source", self.sources), ("load", self.loads)):
            for spec in specs:
                if spec.name in seen:
                    raise ValueError(
                        f"duplicate component name {spec.name!r} ({seen[spec.name]} and {kind})"
                    )
                seen[spec.name] = kind

    @property
    def total_demand_kw(self) -> float:
        return float(sum(spec.demand_kw for spec in self.loads))


def _from_fields(cls, data: Mapping[str, Any], where: str):
    try:
        return cls(**dict(data))
    except TypeError as e:
        # неизвестное или пропущенное поле
        raise ValueError(f"{where}: {e}") from e


def grid_config_from_dict(data: Mapping[str, Any]) -> GridConfig:
    """Собрать GridConfig из словаря (формат JSON-файла)."""

    sources = tuple(_from_fields(SourceSpec, s, "sources") for s in data.get("sources", ()))
    loads = tuple(_from_fields(LoadSpec, l, "loads") for l in data.get("loads", ()))
    settings = _from_fields(EngineSettings, data.get("settings", {}), "settings")
    return GridConfig(sources=sources, loads=loads, settings=settings)


def grid_config_to_dict(cfg: GridConfig) -> Dict[str, Any]:
    return {
        "sources": [
            {
                "name": s.name,
                "kind": s.kind,
                "output_kw": s.output_kw,
                "renewable": s.renewable,
                "connected": s.connected,
            }
            for s in cfg.sources
        ],
        "loads": [
            {"name": l.name, "demand_kw": l.demand_kw, "priority": l.priority, "connected": l.connected}
            for l in cfg.loads
        ],
        "settings": {
            "cycle_on_source_added": cfg.settings.cycle_on_source_added,
            "variable_output_min_kw": cfg.settings.variable_output_min_kw,
            "variable_output_max_kw": cfg.settings.variable_output_max_kw,
        },
    }


def load_grid_config(path: str | Path) -> GridConfig:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path}: grid config must be a JSON object")
    return grid_config_from_dict(data)


# Демонстрационная сеть: солнечная станция, ГЭС и три потребителя.

DEFAULT_GRID_CONFIG = GridConfig(
    sources=(
        SourceSpec(name="SolarFarm-A", kind="variable"),
        SourceSpec(name="HydroStation", kind="fixed", output_kw=60.0 * units.KW),
    ),
    loads=(
        LoadSpec(name="Factory-A", demand_kw=30.0 * units.KW, priority=2),
        LoadSpec(name="House-B", demand_kw=15.0 * units.KW, priority=1),
        LoadSpec(name="Shop-C", demand_kw=10.0 * units.KW, priority=3),
    ),
)
