"""Strength classification of references.

The whole precedence rule lives in ``_STRENGTH_TABLE``: one row per
interaction kind, one column per target kind. When several interactions
are seen on the same expression the caller keeps the strongest result
(see ``strongest``).
"""

from __future__ import annotations

from collections.abc import Iterable

from ..dimensions import Strength
from .models import InteractionKind, TargetKind

_C, _I, _F, _U = (
    TargetKind.CONCRETE,
    TargetKind.INTERFACE,
    TargetKind.FUNCTION,
    TargetKind.UNKNOWN,
)

_STRENGTH_TABLE: dict[InteractionKind, dict[TargetKind, Strength]] = {
    # Reading or writing another type's field.
    InteractionKind.FIELD_ACCESS: {
        _C: Strength.INTRUSIVE,
        _I: Strength.INTRUSIVE,
        _F: Strength.INTRUSIVE,
        _U: Strength.INTRUSIVE,
    },
    # Building a value from its internal representation.
    InteractionKind.CONSTRUCTION: {
        _C: Strength.INTRUSIVE,
        _I: Strength.INTRUSIVE,
        _F: Strength.INTRUSIVE,
        _U: Strength.INTRUSIVE,
    },
    # Adding inherent methods to a type declared in another module.
    InteractionKind.INHERENT_IMPL: {
        _C: Strength.INTRUSIVE,
        _I: Strength.INTRUSIVE,
        _F: Strength.INTRUSIVE,
        _U: Strength.INTRUSIVE,
    },
    # Calling a type by name is tuple-struct construction.
    InteractionKind.CALL: {
        _C: Strength.INTRUSIVE,
        _I: Strength.CONTRACT,
        _F: Strength.FUNCTIONAL,
        _U: Strength.FUNCTIONAL,
    },
    InteractionKind.TYPE_USAGE: {
        _C: Strength.MODEL,
        _I: Strength.CONTRACT,
        _F: Strength.MODEL,
        _U: Strength.MODEL,
    },
    InteractionKind.INTERFACE_BOUND: {
        _C: Strength.CONTRACT,
        _I: Strength.CONTRACT,
        _F: Strength.CONTRACT,
        _U: Strength.CONTRACT,
    },
    InteractionKind.IMPORT: {
        _C: Strength.MODEL,
        _I: Strength.CONTRACT,
        _F: Strength.FUNCTIONAL,
        _U: Strength.MODEL,
    },
}


def classify(interaction: InteractionKind, target_kind: TargetKind) -> Strength:
    """Strength of one reference; a pure lookup."""
    return _STRENGTH_TABLE[interaction][target_kind]


def strongest(strengths: Iterable[Strength]) -> Strength:
    """Worst case wins: the maximum Strength, never an average.

    Raises:
        ValueError: If ``strengths`` is empty.
    """
    return max(strengths)
