from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List
import logging

import numpy as np

from .config import GridConfig
from .core.types import ComponentKey
from .engine import BalancingEngine, CycleReport, build_engine
from .faults import FaultAction
from .history import reports_to_frame, write_summary_csv
from .logger import CycleLogger

logger = logging.getLogger(__name__)


@dataclass
class RunnerSettings:
    out_dir: str = "out_grid"
    n_cycles: int = 50
    p_fault: float = 0.0
    p_resolve: float = 0.5
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.n_cycles < 1:
            raise ValueError(f"n_cycles must be >= 1, got {self.n_cycles}")
        for name in ("p_fault", "p_resolve"):
            p = float(getattr(self, name))
            if not (0.0 <= p <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {p}")


class GridRunner:
    """Пакетный прогон: N циклов, случайные аварии, запись на диск."""

    def __init__(self, cfg: GridConfig, settings: RunnerSettings):
        self.cfg = cfg
        self.settings = settings
        self.rng = np.random.default_rng(settings.seed)

        self.reports: List[CycleReport] = []
        self.logger = CycleLogger(settings.out_dir)
        # циклы регистрации (cycle_on_source_added) приходят до того, как известна
        # полная топология; в h5 они пишутся после write_topology
        self._topology_written = False
        self.engine: BalancingEngine = build_engine(cfg, self.rng, on_cycle=self._record)
        self.logger.write_topology(self.engine.list_sources(), self.engine.list_loads())
        self._topology_written = True
        for report in self.reports:
            self.logger.log_cycle(report)

    def _record(self, report: CycleReport) -> None:
        self.reports.append(report)
        if self._topology_written:
            self.logger.log_cycle(report)

    def _fault_candidates(self) -> List[ComponentKey]:
        keys = [ComponentKey.load(l.name) for l in self.engine.loads]
        keys += [ComponentKey.source(s.name) for s in self.engine.sources]
        return [k for k in keys if k not in self.engine.faults]

    def step(self) -> CycleReport:
        action = FaultAction.sample(
            self.rng,
            self._fault_candidates(),
            len(self.engine.faults),
            p_inject=self.settings.p_fault,
            p_resolve=self.settings.p_resolve,
        )
        # resolve_fault сам выполняет цикл; он тоже попадает в лог
        if action.resolve_index is not None:
            self.engine.resolve_fault(action.resolve_index)
        if action.inject is not None:
            self.engine.inject_fault(action.inject.name)
        return self.engine.run_cycle()

    def run(self) -> List[CycleReport]:
        try:
            for i in range(self.settings.n_cycles):
                self.step()
                if (i + 1) % 20 == 0:
                    logger.info("[%d/%d] cycles written", i + 1, self.settings.n_cycles)
        finally:
            self.logger.close()

        summary = write_summary_csv(
            reports_to_frame(self.reports), Path(self.settings.out_dir) / "cycles_summary.csv"
        )
        logger.info("Done. Output: %s", summary.parent.resolve())
        return self.reports
