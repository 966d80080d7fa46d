"""Ошибки балансировщика.

Все ошибки операций движка наследуют GridError и одновременно встроенный
тип (IndexError/ValueError), чтобы вызывающий код мог ловить их привычно.
Ошибка означает, что операция отменена, а состояние движка не изменилось.
"""

from __future__ import annotations


class GridError(Exception):
    """Базовая ошибка gridsim."""


class InvalidIndexError(GridError, IndexError):
    """Индекс нагрузки/источника/аварии вне диапазона."""

    def __init__(self, what: str, index: int, size: int) -> None:
        self.what = what
        self.index = index
        self.size = size
        super().__init__(f"{what} index {index} out of range [0, {size})")


class MalformedSelectorError(GridError, ValueError):
    """Цель аварии не является ни нагрузкой, ни источником."""

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"fault target {selector!r} is neither a load nor a source reference")


class DuplicateRegistrationError(GridError, ValueError):
    """Имя уже занято зарегистрированным компонентом."""

    def __init__(self, name: str, existing_kind: str, new_kind: str) -> None:
        self.name = name
        self.existing_kind = existing_kind
        self.new_kind = new_kind
        super().__init__(
            f"cannot register {new_kind} {name!r}: name already registered as {existing_kind}"
        )
