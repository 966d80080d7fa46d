"""История циклов: таблица pandas, CSV-сводка и график баланса.

Одна строка на цикл: мощность, потребление, дефицит, число отключённых/
подключённых нагрузок и активных аварий.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List
import json

import h5py
import numpy as np
import pandas as pd

from gridsim.engine import CycleReport

HISTORY_COLUMNS = [
    "cycle_id",
    "total_power_kw",
    "total_demand_kw",
    "demand_before_kw",
    "balance_kw",
    "deficit",
    "n_tripped",
    "n_reconnected",
    "n_isolated",
    "n_faults",
    "tripped_loads",
    "reconnected_loads",
    "active_faults",
]


def _row(
    cycle_id: int,
    power: float,
    demand: float,
    demand_before: float,
    deficit: bool,
    tripped: List[str],
    reconnected: List[str],
    isolated: List[str],
    faults: List[str],
) -> dict:
    return {
        "cycle_id": int(cycle_id),
        "total_power_kw": float(power),
        "total_demand_kw": float(demand),
        "demand_before_kw": float(demand_before),
        "balance_kw": float(power - demand),
        "deficit": bool(deficit),
        "n_tripped": len(tripped),
        "n_reconnected": len(reconnected),
        "n_isolated": len(isolated),
        "n_faults": len(faults),
        # списки в CSV храним строкой через ';'
        "tripped_loads": ";".join(tripped),
        "reconnected_loads": ";".join(reconnected),
        "active_faults": ";".join(faults),
    }


def reports_to_frame(reports: Iterable[CycleReport]) -> pd.DataFrame:
    rows = [
        _row(
            r.cycle_id,
            r.total_power_kw,
            r.total_demand_kw,
            r.demand_before_kw,
            r.deficit,
            list(r.tripped_loads),
            list(r.reconnected_loads),
            list(r.isolated_loads),
            list(r.active_faults),
        )
        for r in reports
    ]
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def read_cycle_history(h5_path: str | Path) -> pd.DataFrame:
    """Прочитать dataset.h5, записанный CycleLogger, в таблицу."""

    rows = []
    with h5py.File(h5_path, "r") as f:
        cycles = f["cycles"]
        for key in sorted(cycles.keys()):
            attrs = dict(cycles[key].attrs)
            rows.append(
                _row(
                    attrs["cycle_id"],
                    attrs["total_power_kw"],
                    attrs["total_demand_kw"],
                    attrs["demand_before_kw"],
                    bool(attrs["deficit"]),
                    json.loads(attrs["tripped_loads_json"]),
                    json.loads(attrs["reconnected_loads_json"]),
                    json.loads(attrs["isolated_loads_json"]),
                    json.loads(attrs["active_faults_json"]),
                )
            )
    return pd.DataFrame(rows, columns=HISTORY_COLUMNS)


def write_summary_csv(frame: pd.DataFrame, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(path, index=False)
    return path


def plot_balance(frame: pd.DataFrame, out_path: str | Path) -> Path:
    """График: мощность/потребление по циклам + число отключений."""

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    x = frame["cycle_id"].to_numpy()
    fig, axes = plt.subplots(2, 1, figsize=(10, 5), sharex=True)
    axes = np.array(axes).reshape(-1)

    ax = axes[0]
    ax.plot(x, frame["total_power_kw"].to_numpy(), linewidth=1, label="power")
    ax.plot(x, frame["demand_before_kw"].to_numpy(), linewidth=1, linestyle="--", label="demand (before)")
    ax.plot(x, frame["total_demand_kw"].to_numpy(), linewidth=1, label="demand (served)")
    ax.set_ylabel("kW")
    ax.legend(loc="upper right")
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    ax.bar(x, frame["n_tripped"].to_numpy(), label="tripped")
    ax.bar(x, -frame["n_reconnected"].to_numpy(), label="reconnected")
    ax.set_xlabel("cycle")
    ax.legend(loc="upper right")
    ax.grid(True, alpha=0.3)

    fig.suptitle("Grid balance", y=1.002)
    plt.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    return out_path
