"""Конфиги сети.

- описания компонентов и настройки движка: `gridsim.config.grid`;
- сборка движка из конфига: `gridsim.engine.build_engine`.
"""

from __future__ import annotations

from .grid import (  # noqa: F401
    DEFAULT_GRID_CONFIG,
    EngineSettings,
    GridConfig,
    LoadSpec,
    SourceSpec,
    grid_config_from_dict,
    grid_config_to_dict,
    load_grid_config,
)

__all__ = [
    "DEFAULT_GRID_CONFIG",
    "EngineSettings",
    "GridConfig",
    "LoadSpec",
    "SourceSpec",
    "grid_config_from_dict",
    "grid_config_to_dict",
    "load_grid_config",
]
