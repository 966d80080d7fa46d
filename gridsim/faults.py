"""Реестр ручных аварий.

Авария — объявленный оператором отказ компонента. Имя в реестре аварий
всегда означает сработавший автомат, но обратное неверно: автоматическое
отключение нагрузок тоже взводит автоматы, не добавляя аварий.

Порядок обхода аварий — по возрастанию (имя, вид); resolve по индексу
использует именно этот порядок.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Sequence, Set, Tuple
import re

import numpy as np

from gridsim.core.types import ComponentKey, ComponentKind
from gridsim.core.validation import ensure_index
from gridsim.errors import MalformedSelectorError


_SELECTOR_RE = re.compile(r"^([LS])(\d+)$")
_SELECTOR_KINDS = {"L": "load", "S": "source"}


def parse_selector(selector: str) -> Tuple[ComponentKind, int]:
    """Разобрать токен цели аварии: L<i> — i-я нагрузка, S<i> — i-й источник."""

    if not isinstance(selector, str):
        raise MalformedSelectorError(repr(selector))
    m = _SELECTOR_RE.match(selector.strip())
    if m is None:
        raise MalformedSelectorError(selector)
    kind: ComponentKind = _SELECTOR_KINDS[m.group(1)]  # type: ignore[assignment]
    return kind, int(m.group(2))


class FaultRegistry:
    def __init__(self) -> None:
        self._faults: Set[ComponentKey] = set()

    def add(self, key: ComponentKey) -> bool:
        """Добавить аварию; False, если она уже активна."""

        if key in self._faults:
            return False
        self._faults.add(key)
        return True

    def discard(self, key: ComponentKey) -> None:
        self._faults.discard(key)

    def ordered(self) -> List[ComponentKey]:
        return sorted(self._faults)

    def at(self, index: int) -> ComponentKey:
        ordered = self.ordered()
        return ordered[ensure_index("fault", index, len(ordered))]

    def names(self) -> List[str]:
        return [key.name for key in self.ordered()]

    def __contains__(self, key: object) -> bool:
        return key in self._faults

    def __iter__(self) -> Iterator[ComponentKey]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self._faults)

    def __repr__(self) -> str:
        return f"FaultRegistry({', '.join(str(k) for k in self.ordered())})"


@dataclass(frozen=True)
class FaultAction:
    """Случайное действие оператора на один шаг пакетного прогона."""

    inject: ComponentKey | None = None
    resolve_index: int | None = None

    @property
    def is_noop(self) -> bool:
        return self.inject is None and self.resolve_index is None

    @staticmethod
    def sample(
        rng: np.random.Generator,
        candidates: Sequence[ComponentKey],
        n_active: int,
        *,
        p_inject: float = 0.0,
        p_resolve: float = 0.5,
    ) -> "FaultAction":
        # разрешение: одна из активных аварий
        resolve_index = None
        if n_active > 0 and rng.random() < p_resolve:
            resolve_index = int(rng.integers(0, n_active))

        # новая авария: только среди компонентов без аварии
        inject = None
        if candidates and rng.random() < p_inject:
            inject = candidates[int(rng.integers(0, len(candidates)))]

        return FaultAction(inject=inject, resolve_index=resolve_index)
