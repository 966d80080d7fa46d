"""gridsim.core.units

Единицы мощности и номинальные значения по умолчанию.

Принцип: везде, где есть числа мощности, единица явная (например, 60 * KW).
Внутреннее представление мощности: кВт.
"""

from __future__ import annotations

# Base unit
KW: float = 1.0

# Derived units
W: float = 1e-3 * KW
MW: float = 1e3 * KW

# Variable (weather-driven) source defaults
VARIABLE_OUTPUT_MIN: float = 20.0 * KW
VARIABLE_OUTPUT_MAX: float = 50.0 * KW  # верхняя граница не включается
VARIABLE_INITIAL_OUTPUT: float = 50.0 * KW

# Load defaults
DEFAULT_LOAD_PRIORITY: int = 5
