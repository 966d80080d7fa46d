"""gridsim package.

Важно: пакет не должен иметь побочных эффектов при импорте.
Поэтому здесь нет eager-import'ов (numpy/h5py/pandas тянутся только нужными модулями).

Импортируй нужное напрямую:
- from gridsim.engine import BalancingEngine, build_engine
- from gridsim.config import DEFAULT_GRID_CONFIG
"""

from __future__ import annotations

__all__: list[str] = []
