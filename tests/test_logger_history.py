import json

import h5py
import numpy as np
import pandas as pd
import pytest

from gridsim.components import Source
from gridsim.engine import BalancingEngine
from gridsim.history import (
    HISTORY_COLUMNS,
    plot_balance,
    read_cycle_history,
    reports_to_frame,
    write_summary_csv,
)
from gridsim.logger import CycleLogger


@pytest.fixture()
def engine() -> BalancingEngine:
    eng = BalancingEngine()
    eng.register_source(Source.fixed("Hydro", 40.0))
    eng.register_load("Factory", 30.0, 2)
    eng.register_load("House", 15.0, 1)
    eng.register_load("Shop", 10.0, 3)
    return eng


@pytest.fixture()
def reports(engine: BalancingEngine):
    out = [engine.run_cycle()]  # дефицит: Shop, Factory
    engine.inject_fault("House")
    out.append(engine.run_cycle())  # House изолирован
    return out


class TestCycleLogger:
    def test_writes_dataset_meta_and_topology(self, tmp_path, engine, reports) -> None:
        with CycleLogger(tmp_path) as log:
            log.write_topology(engine.list_sources(), engine.list_loads())
            for r in reports:
                log.log_cycle(r)
            assert log.n_logged == 2

        with h5py.File(tmp_path / "dataset.h5", "r") as f:
            names = [n.decode() if isinstance(n, bytes) else str(n) for n in f["load_names"][:]]
            assert names == ["Factory", "House", "Shop"]
            assert sorted(f["cycles"].keys()) == ["cycle_000001", "cycle_000002"]

            g = f["cycles"]["cycle_000001"]
            assert g["load_connected"][:].tolist() == [0, 1, 0]
            assert g["load_tripped"][:].tolist() == [1, 0, 1]
            assert g["source_output_kw"][:].tolist() == pytest.approx([40.0])
            assert bool(g.attrs["deficit"])
            assert json.loads(g.attrs["tripped_loads_json"]) == ["Shop", "Factory"]

            g2 = f["cycles"]["cycle_000002"]
            assert g2["load_connected"][:].tolist() == [0, 0, 0]
            assert json.loads(g2.attrs["isolated_loads_json"]) == ["House"]

        lines = (tmp_path / "cycles_meta.jsonl").read_text(encoding="utf-8").splitlines()
        assert [json.loads(l)["cycle_id"] for l in lines] == [1, 2]

        topo = json.loads((tmp_path / "topology.json").read_text(encoding="utf-8"))
        assert [l["id"] for l in topo["loads"]] == ["Factory", "House", "Shop"]
        assert ["Hydro", "bus"] in topo["edges"]

    def test_close_is_idempotent(self, tmp_path) -> None:
        log = CycleLogger(tmp_path)
        log.close()
        log.close()


class TestHistory:
    def test_reports_to_frame(self, reports) -> None:
        frame = reports_to_frame(reports)
        assert list(frame.columns) == HISTORY_COLUMNS
        assert frame["cycle_id"].tolist() == [1, 2]
        assert frame.loc[0, "n_tripped"] == 2
        assert frame.loc[0, "tripped_loads"] == "Shop;Factory"
        assert frame.loc[1, "active_faults"] == "House"
        assert frame.loc[0, "balance_kw"] == pytest.approx(40.0 - 15.0)

    def test_read_back_matches_in_memory(self, tmp_path, engine, reports) -> None:
        with CycleLogger(tmp_path) as log:
            log.write_topology(engine.list_sources(), engine.list_loads())
            for r in reports:
                log.log_cycle(r)

        from_disk = read_cycle_history(tmp_path / "dataset.h5")
        pd.testing.assert_frame_equal(from_disk, reports_to_frame(reports), check_dtype=False)

    def test_summary_csv(self, tmp_path, reports) -> None:
        path = write_summary_csv(reports_to_frame(reports), tmp_path / "sub" / "summary.csv")
        back = pd.read_csv(path)
        assert back["total_power_kw"].tolist() == pytest.approx([40.0, 40.0])

    def test_plot_balance(self, tmp_path, reports) -> None:
        out = plot_balance(reports_to_frame(reports), tmp_path / "balance.png")
        assert out.exists()
        assert out.stat().st_size > 0

    def test_empty_history(self) -> None:
        frame = reports_to_frame([])
        assert frame.empty
        assert np.array_equal(frame.columns, HISTORY_COLUMNS)
