import json

import numpy as np
import pytest

from gridsim.config import (
    DEFAULT_GRID_CONFIG,
    EngineSettings,
    GridConfig,
    LoadSpec,
    SourceSpec,
    grid_config_from_dict,
    grid_config_to_dict,
    load_grid_config,
)
from gridsim.engine import build_engine


class TestSpecs:
    def test_renewable_defaults_follow_kind(self) -> None:
        assert SourceSpec(name="Solar", kind="variable").is_renewable
        assert not SourceSpec(name="Hydro", output_kw=60.0).is_renewable
        assert SourceSpec(name="Wind", output_kw=5.0, renewable=True).is_renewable

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "", "output_kw": 1.0},
            {"name": "Hydro", "output_kw": -1.0},
            {"name": "Hydro", "kind": "tidal"},
        ],
    )
    def test_source_spec_invariants(self, kwargs) -> None:
        with pytest.raises(ValueError):
            SourceSpec(**kwargs)

    def test_load_spec_invariants(self) -> None:
        with pytest.raises(ValueError):
            LoadSpec(name="House", demand_kw=-5.0)
        with pytest.raises(ValueError):
            LoadSpec(name="House", demand_kw=5.0, priority=1.5)

    def test_engine_settings_range(self) -> None:
        with pytest.raises(ValueError):
            EngineSettings(variable_output_min_kw=50.0, variable_output_max_kw=20.0)

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError):
            GridConfig(
                sources=(SourceSpec(name="X", output_kw=1.0),),
                loads=(LoadSpec(name="X", demand_kw=1.0),),
            )


class TestDefaultGrid:
    def test_contents(self) -> None:
        cfg = DEFAULT_GRID_CONFIG
        assert [s.name for s in cfg.sources] == ["SolarFarm-A", "HydroStation"]
        assert [(l.name, l.priority) for l in cfg.loads] == [
            ("Factory-A", 2),
            ("House-B", 1),
            ("Shop-C", 3),
        ]
        assert cfg.total_demand_kw == pytest.approx(55.0)

    def test_build_engine(self) -> None:
        engine = build_engine(DEFAULT_GRID_CONFIG, np.random.default_rng(3))
        assert engine.cycle_count == 0
        report = engine.run_cycle()
        solar = report.source_outputs_kw["SolarFarm-A"]
        assert 20.0 <= solar < 50.0
        assert report.total_power_kw == pytest.approx(solar + 60.0)
        assert not report.deficit

    def test_build_engine_is_reproducible(self) -> None:
        a = build_engine(DEFAULT_GRID_CONFIG, np.random.default_rng(11))
        b = build_engine(DEFAULT_GRID_CONFIG, np.random.default_rng(11))
        assert [a.run_cycle().total_power_kw for _ in range(3)] == [
            b.run_cycle().total_power_kw for _ in range(3)
        ]

    def test_cycle_on_source_added(self) -> None:
        cfg = GridConfig(
            sources=DEFAULT_GRID_CONFIG.sources,
            loads=DEFAULT_GRID_CONFIG.loads,
            settings=EngineSettings(cycle_on_source_added=True),
        )
        engine = build_engine(cfg, np.random.default_rng(0))
        assert engine.cycle_count == 2


class TestJson:
    def test_load_grid_config(self, tmp_path) -> None:
        path = tmp_path / "grid.json"
        path.write_text(
            json.dumps(
                {
                    "sources": [
                        {"name": "Hydro", "kind": "fixed", "output_kw": 40.0},
                        {"name": "Solar", "kind": "variable", "connected": False},
                    ],
                    "loads": [{"name": "Mill", "demand_kw": 25.0, "priority": 2}],
                    "settings": {"variable_output_min_kw": 5.0, "variable_output_max_kw": 10.0},
                }
            ),
            encoding="utf-8",
        )

        cfg = load_grid_config(path)
        engine = build_engine(cfg, np.random.default_rng(0))

        assert cfg.settings.variable_output_max_kw == pytest.approx(10.0)
        assert engine.list_loads()[0].priority == 2
        assert not engine.list_sources()[1].connected
        assert engine.run_cycle().total_power_kw == pytest.approx(40.0)

    def test_to_dict_is_accepted_back(self) -> None:
        data = grid_config_to_dict(DEFAULT_GRID_CONFIG)
        assert grid_config_from_dict(json.loads(json.dumps(data))) == DEFAULT_GRID_CONFIG

    def test_non_object_rejected(self, tmp_path) -> None:
        path = tmp_path / "grid.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_grid_config(path)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValueError):
            grid_config_from_dict({"loads": [{"name": "Mill", "demand_kw": 1.0, "phase": 3}]})


def test_package_docstring_imports_resolve() -> None:
    import gridsim

    lines = [l.strip()[2:] for l in gridsim.__doc__.splitlines() if l.strip().startswith("- from ")]
    assert lines
    for line in lines:
        exec(line, {})
