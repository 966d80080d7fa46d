"""Защитные автоматы и их реестр.

Автомат — защёлка вкл/выкл на компонент. Сработавший автомат исключает
компонент из агрегации цикла независимо от флага подключения.

Реестр ключуется ComponentKey(name, kind): источники и нагрузки живут
в разных пространствах имён.
"""

from __future__ import annotations

from typing import Dict, Iterator

from gridsim.core.types import ComponentKey


class Breaker:
    """Автомат одного компонента."""

    __slots__ = ("id", "_tripped")

    def __init__(self, breaker_id: str) -> None:
        self.id = breaker_id
        self._tripped = False

    def trip(self) -> None:
        self._tripped = True

    def reset(self) -> None:
        self._tripped = False

    @property
    def is_tripped(self) -> bool:
        return self._tripped

    def __repr__(self) -> str:
        state = "TRIPPED" if self._tripped else "OK"
        return f"Breaker(id={self.id}, {state})"


class BreakerRegistry:
    """Один автомат на каждый зарегистрированный компонент."""

    def __init__(self) -> None:
        self._breakers: Dict[ComponentKey, Breaker] = {}

    def ensure(self, key: ComponentKey) -> Breaker:
        """Создать автомат для ключа, если его ещё нет; вернуть автомат."""

        breaker = self._breakers.get(key)
        if breaker is None:
            breaker = Breaker(key.name)
            self._breakers[key] = breaker
        return breaker

    def __getitem__(self, key: ComponentKey) -> Breaker:
        return self._breakers[key]

    def __contains__(self, key: object) -> bool:
        return key in self._breakers

    def __iter__(self) -> Iterator[ComponentKey]:
        return iter(self._breakers)

    def __len__(self) -> int:
        return len(self._breakers)

    def is_tripped(self, key: ComponentKey) -> bool:
        return self._breakers[key].is_tripped

    def kind_of(self, name: str) -> str | None:
        """Вид компонента, уже занявшего имя (или None)."""

        for key in self._breakers:
            if key.name == name:
                return key.kind
        return None

    def states(self) -> Dict[ComponentKey, bool]:
        """Состояния автоматов, отсортированные по ключу (имя, вид)."""

        return {key: self._breakers[key].is_tripped for key in sorted(self._breakers)}

    def __repr__(self) -> str:
        tripped = sum(1 for b in self._breakers.values() if b.is_tripped)
        return f"BreakerRegistry(n={len(self._breakers)}, tripped={tripped})"
