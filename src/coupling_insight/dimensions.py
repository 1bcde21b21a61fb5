"""The three coupling dimensions: Strength, Distance and Volatility.

Each dimension is an ordered enumeration. The numeric weight attached to a
level lives in a ``WeightTable`` so that the balance formula can be tuned
from configuration without touching the enumerations themselves.

    Strength:   CONTRACT (0.25) < MODEL (0.50) < FUNCTIONAL (0.75) < INTRUSIVE (1.00)
    Distance:   SAME_FUNCTION (0.00) < SAME_MODULE (0.25)
                < DIFFERENT_MODULE (0.50) < DIFFERENT_CONTAINER (1.00)
    Volatility: LOW (0.00) < MEDIUM (0.50) < HIGH (1.00)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class _OrderedLevel(Enum):
    """Enum whose members compare by declaration order."""

    @property
    def rank(self) -> int:
        return list(type(self)).index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank >= other.rank

    @property
    def weight(self) -> float:
        return DEFAULT_WEIGHTS.weight_of(self)


class Strength(_OrderedLevel):
    """How much of the target's implementation the caller depends on."""

    CONTRACT = "contract"  # trait / interface only
    MODEL = "model"  # data type as parameter, return value or field
    FUNCTIONAL = "functional"  # calls concrete behavior
    INTRUSIVE = "intrusive"  # touches internal fields or representation


class Distance(_OrderedLevel):
    """Structural separation between two modules."""

    SAME_FUNCTION = "same_function"  # same scope
    SAME_MODULE = "same_module"  # parent / child modules
    DIFFERENT_MODULE = "different_module"  # elsewhere in the analyzed tree
    DIFFERENT_CONTAINER = "different_container"  # external crate


class Volatility(_OrderedLevel):
    """Observed change frequency of the depended-upon module."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _default_strength() -> dict[Strength, float]:
    return {
        Strength.CONTRACT: 0.25,
        Strength.MODEL: 0.50,
        Strength.FUNCTIONAL: 0.75,
        Strength.INTRUSIVE: 1.00,
    }


def _default_distance() -> dict[Distance, float]:
    return {
        Distance.SAME_FUNCTION: 0.00,
        Distance.SAME_MODULE: 0.25,
        Distance.DIFFERENT_MODULE: 0.50,
        Distance.DIFFERENT_CONTAINER: 1.00,
    }


def _default_volatility() -> dict[Volatility, float]:
    return {
        Volatility.LOW: 0.00,
        Volatility.MEDIUM: 0.50,
        Volatility.HIGH: 1.00,
    }


@dataclass(frozen=True)
class WeightTable:
    """Numeric weight of every dimension level.

    Weights must lie in [0, 1] and increase strictly with the level order,
    otherwise "worst case wins" aggregation and the balance formula stop
    agreeing with each other.
    """

    strength: dict[Strength, float] = field(default_factory=_default_strength)
    distance: dict[Distance, float] = field(default_factory=_default_distance)
    volatility: dict[Volatility, float] = field(default_factory=_default_volatility)

    def weight_of(self, level: _OrderedLevel) -> float:
        if isinstance(level, Strength):
            return self.strength[level]
        if isinstance(level, Distance):
            return self.distance[level]
        if isinstance(level, Volatility):
            return self.volatility[level]
        raise TypeError(f"not a coupling dimension: {level!r}")

    def problems(self) -> list[str]:
        """Describe every way this table is malformed (empty when valid)."""
        found = []
        for name, table, enum_cls in (
            ("strength", self.strength, Strength),
            ("distance", self.distance, Distance),
            ("volatility", self.volatility, Volatility),
        ):
            missing = [m.value for m in enum_cls if m not in table]
            if missing:
                found.append(f"{name} weights missing {', '.join(missing)}")
                continue
            values = [table[m] for m in enum_cls]
            if any(not 0.0 <= v <= 1.0 for v in values):
                found.append(f"{name} weights must lie in [0, 1]")
            if any(a >= b for a, b in zip(values, values[1:])):
                found.append(f"{name} weights must increase with level")
        return found

    @classmethod
    def from_mapping(cls, raw: dict) -> WeightTable:
        """Build from a ``{"strength": {"model": 0.5, ...}, ...}`` mapping.

        Levels not mentioned keep their default weight. Unknown level names
        raise ``ValueError``.
        """
        strength = _default_strength()
        distance = _default_distance()
        volatility = _default_volatility()
        for section, target, enum_cls in (
            ("strength", strength, Strength),
            ("distance", distance, Distance),
            ("volatility", volatility, Volatility),
        ):
            for key, value in (raw.get(section) or {}).items():
                target[enum_cls(key)] = float(value)
        unknown = set(raw) - {"strength", "distance", "volatility"}
        if unknown:
            raise ValueError(f"unknown weight sections: {', '.join(sorted(unknown))}")
        return cls(strength=strength, distance=distance, volatility=volatility)


DEFAULT_WEIGHTS = WeightTable()
