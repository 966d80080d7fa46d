"""Компоненты сети: источники и нагрузки.

Источник — один класс с тегом вида (fixed/variable) вместо иерархии:
- fixed: постоянная мощность, resample() ничего не меняет;
- variable: каждый шаг мощность берётся из внедрённого генератора.

Нагрузка — пассивный держатель данных (мощность, приоритет, подключение).
Меньшее значение приоритета = более важная нагрузка.

Случайность никогда не берётся из глобального состояния: генератор
передаётся снаружи (например, uniform_output(rng)).
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from gridsim.core import units
from gridsim.core.types import SOURCE_KINDS, OutputGenerator, SourceKind
from gridsim.core.validation import (
    ensure_int,
    ensure_non_empty,
    ensure_non_negative,
    ensure_range_ordered,
)


def uniform_output(
    rng: np.random.Generator,
    low_kw: float = units.VARIABLE_OUTPUT_MIN,
    high_kw: float = units.VARIABLE_OUTPUT_MAX,
) -> OutputGenerator:
    """Генератор мощности, равномерный на [low_kw, high_kw)."""

    ensure_range_ordered(low_kw, high_kw, "variable output range")
    lo = float(low_kw)
    hi = float(high_kw)

    def _draw() -> float:
        return float(rng.uniform(lo, hi))

    return _draw


@dataclass(frozen=True)
class SourceSnapshot:
    name: str
    kind: SourceKind
    output_kw: float
    renewable: bool
    connected: bool


@dataclass
class Source:
    """Источник генерации (tagged variant)."""

    name: str
    kind: SourceKind = "fixed"
    output_kw: float = 0.0
    renewable: bool = False
    connected: bool = True
    generator: OutputGenerator | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        ensure_non_empty(self.name, "source name")
        if self.kind not in SOURCE_KINDS:
            raise ValueError(f"source kind must be one of {SOURCE_KINDS}, got {self.kind!r}")
        ensure_non_negative(self.output_kw, f"{self.name}.output_kw")
        self.output_kw = float(self.output_kw)
        if self.kind == "variable" and self.generator is None:
            raise ValueError(f"variable source {self.name!r} requires an output generator")

    @classmethod
    def fixed(cls, name: str, output_kw: float, *, renewable: bool = False) -> "Source":
        return cls(name=name, kind="fixed", output_kw=output_kw, renewable=renewable)

    @classmethod
    def variable(
        cls,
        name: str,
        generator: OutputGenerator,
        *,
        renewable: bool = True,
        initial_output_kw: float = units.VARIABLE_INITIAL_OUTPUT,
    ) -> "Source":
        return cls(
            name=name,
            kind="variable",
            output_kw=initial_output_kw,
            renewable=renewable,
            generator=generator,
        )

    def resample(self) -> float:
        """Мощность на текущий шаг (кВт).

        Для variable берёт новое значение из генератора и сохраняет его.
        """

        if self.kind == "variable":
            if self.generator is None:
                raise ValueError(f"variable source {self.name!r} requires an output generator")
            value = float(self.generator())
            ensure_non_negative(value, f"{self.name} generated output")
            self.output_kw = value
        return self.output_kw

    def disconnect(self) -> None:
        self.connected = False

    def reconnect(self) -> None:
        self.connected = True

    def snapshot(self) -> SourceSnapshot:
        return SourceSnapshot(
            name=self.name,
            kind=self.kind,
            output_kw=self.output_kw,
            renewable=self.renewable,
            connected=self.connected,
        )


@dataclass(frozen=True)
class LoadSnapshot:
    name: str
    demand_kw: float
    priority: int
    connected: bool


@dataclass
class Load:
    """Потребитель: мощность (кВт), приоритет, флаг подключения."""

    name: str
    demand_kw: float
    priority: int = units.DEFAULT_LOAD_PRIORITY
    connected: bool = True

    def __post_init__(self) -> None:
        ensure_non_empty(self.name, "load name")
        ensure_non_negative(self.demand_kw, f"{self.name}.demand_kw")
        ensure_int(self.priority, f"{self.name}.priority")
        self.demand_kw = float(self.demand_kw)
        self.priority = int(self.priority)

    def disconnect(self) -> None:
        self.connected = False

    def reconnect(self) -> None:
        self.connected = True

    def snapshot(self) -> LoadSnapshot:
        return LoadSnapshot(
            name=self.name,
            demand_kw=self.demand_kw,
            priority=self.priority,
            connected=self.connected,
        )

    def __str__(self) -> str:
        state = "Yes" if self.connected else "No"
        return f"[Load] {self.name}: {self.demand_kw:g}kW, Priority: {self.priority}, Connected: {state}"
