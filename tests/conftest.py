"""Pytest configuration.

- repo root goes on sys.path, so `import gridsim` works without an editable
  install (flat layout, gridsim/ at repo root);
- `scripted_output` builds deterministic generators for variable sources.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterable, List

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


class ScriptedOutput:
    """Отдаёт заранее заданные значения мощности и считает вызовы."""

    def __init__(self, values: Iterable[float]) -> None:
        self._values: List[float] = [float(v) for v in values]
        self.calls = 0

    def __call__(self) -> float:
        self.calls += 1
        if not self._values:
            raise AssertionError("scripted output exhausted")
        return self._values.pop(0)


@pytest.fixture()
def scripted_output() -> Callable[..., ScriptedOutput]:
    def _make(*values: float) -> ScriptedOutput:
        return ScriptedOutput(values)

    return _make
