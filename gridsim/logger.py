from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Sequence
from pathlib import Path
import json
import h5py
import numpy as np

from .components import LoadSnapshot, SourceSnapshot
from .engine import CycleReport


@dataclass
class Topology:
    sources: List[SourceSnapshot]
    loads: List[LoadSnapshot]

    def to_dict(self) -> Dict[str, object]:
        return {
            "sources": [
                {"id": s.name, "kind": s.kind, "renewable": s.renewable, "rated_kw": s.output_kw}
                for s in self.sources
            ],
            "loads": [
                {"id": l.name, "demand_kw": l.demand_kw, "priority": l.priority}
                for l in self.loads
            ],
            # все источники питают общую шину, нагрузки висят на ней же
            "edges": [[s.name, "bus"] for s in self.sources] + [["bus", l.name] for l in self.loads],
            "edge_type": "aggregate_bus",
        }


class CycleLogger:
    """Запись отчётов циклов: dataset.h5 + cycles_meta.jsonl + topology.json."""

    def __init__(self, out_dir: str | Path):
        self.out_dir = Path(out_dir)
        self.out_dir.mkdir(parents=True, exist_ok=True)

        self.h5_path = self.out_dir / "dataset.h5"
        self.meta_path = self.out_dir / "cycles_meta.jsonl"
        self.topology_path = self.out_dir / "topology.json"

        self.h5 = h5py.File(self.h5_path, "w")
        self.grp = self.h5.create_group("cycles")

        self._meta_f = open(self.meta_path, "w", encoding="utf-8")
        self._load_names: List[str] = []
        self._source_names: List[str] = []
        self.n_logged = 0

    def write_topology(self, sources: Sequence[SourceSnapshot], loads: Sequence[LoadSnapshot]):
        # Важно: порядок имён задаёт порядок элементов в массивах каждого цикла
        self._source_names = [s.name for s in sources]
        self._load_names = [l.name for l in loads]

        topo = Topology(sources=list(sources), loads=list(loads))
        self.topology_path.write_text(json.dumps(topo.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

        str_dt = h5py.string_dtype(encoding="utf-8")
        for key, names in (("source_names", self._source_names), ("load_names", self._load_names)):
            if key in self.h5:
                del self.h5[key]
            self.h5.create_dataset(key, data=np.array(names, dtype=object), dtype=str_dt)

    def log_cycle(self, report: CycleReport):
        if not self._load_names and not self._source_names:
            self.write_topology(sources=[], loads=list(report.loads))

        cid = f"cycle_{report.cycle_id:06d}"
        g = self.grp.create_group(cid)

        by_name = {l.name: l for l in report.loads}
        open_breakers = set(report.open_breakers)
        timeline = {
            "load_connected": np.array(
                [int(by_name[n].connected) if n in by_name else 0 for n in self._load_names], dtype=np.int8
            ),
            "load_tripped": np.array([int(n in open_breakers) for n in self._load_names], dtype=np.int8),
            "load_demand_kw": np.array(
                [by_name[n].demand_kw if n in by_name else np.nan for n in self._load_names], dtype=np.float32
            ),
            "source_output_kw": np.array(
                [report.source_outputs_kw.get(n, np.nan) for n in self._source_names], dtype=np.float32
            ),
        }
        for k, arr in timeline.items():
            if arr.size:
                g.create_dataset(k, data=arr, compression="gzip", compression_opts=5)
            else:
                g.create_dataset(k, data=arr)

        g.attrs["cycle_id"] = report.cycle_id
        g.attrs["total_power_kw"] = report.total_power_kw
        g.attrs["total_demand_kw"] = report.total_demand_kw
        g.attrs["demand_before_kw"] = report.demand_before_kw
        g.attrs["deficit"] = bool(report.deficit)
        g.attrs["tripped_loads_json"] = json.dumps(list(report.tripped_loads), ensure_ascii=False)
        g.attrs["reconnected_loads_json"] = json.dumps(list(report.reconnected_loads), ensure_ascii=False)
        g.attrs["isolated_loads_json"] = json.dumps(list(report.isolated_loads), ensure_ascii=False)
        g.attrs["active_faults_json"] = json.dumps(list(report.active_faults), ensure_ascii=False)

        self._meta_f.write(json.dumps(report.to_dict(), ensure_ascii=False) + "\n")
        self._meta_f.flush()
        self.n_logged += 1

    def close(self):
        if not self._meta_f.closed:
            self._meta_f.close()
        if self.h5.id.valid:
            self.h5.close()

    def __enter__(self) -> "CycleLogger":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
