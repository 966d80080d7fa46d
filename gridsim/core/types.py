"""gridsim.core.types

Общие типы: виды компонентов и составной ключ реестра.

Ключ реестра включает вид компонента, поэтому источник и нагрузка
с одинаковым именем не пересекаются в таблице автоматов.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal


ComponentKind = Literal["source", "load"]
SourceKind = Literal["fixed", "variable"]

# Любая функция без аргументов, возвращающая мощность (кВт).
OutputGenerator = Callable[[], float]

SOURCE_KINDS: tuple[SourceKind, ...] = ("fixed", "variable")


@dataclass(frozen=True, slots=True, order=True)
class ComponentKey:
    """Идентификатор зарегистрированного компонента.

    Порядок сравнения: сначала имя, затем вид.
    """

    name: str
    kind: ComponentKind

    @classmethod
    def source(cls, name: str) -> "ComponentKey":
        return cls(name=name, kind="source")

    @classmethod
    def load(cls, name: str) -> "ComponentKey":
        return cls(name=name, kind="load")

    def __str__(self) -> str:
        return f"{self.kind}:{self.name}"
