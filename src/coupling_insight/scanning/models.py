"""Fact models produced by the scanning layer.

One SourceUnit per discovered ``.rs`` file. The Rust fact extractor turns
its syntax tree into Declarations (what the file defines) and References
(what the file depends on). All models are frozen: once a worker returns a
FileFacts value nothing downstream mutates it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..dimensions import Strength


class Visibility(Enum):
    """Rust visibility, grouped into private / container-visible / public."""

    PUBLIC = "pub"
    CRATE = "pub(crate)"
    SUPER = "pub(super)"
    RESTRICTED = "pub(in)"  # pub(in some::path)
    PRIVATE = "private"

    @property
    def is_public(self) -> bool:
        return self is Visibility.PUBLIC

    @property
    def is_container_visible(self) -> bool:
        return self in (Visibility.CRATE, Visibility.SUPER, Visibility.RESTRICTED)


class DeclarationKind(Enum):
    FUNCTION = "function"
    DATA_TYPE = "data_type"  # struct / enum / union / type alias
    INTERFACE = "interface"  # trait
    IMPLEMENTATION = "implementation"  # impl block


class InteractionKind(Enum):
    """How a reference touches its target."""

    FIELD_ACCESS = "field_access"
    CONSTRUCTION = "construction"
    INHERENT_IMPL = "inherent_impl"  # impl block for a type owned elsewhere
    CALL = "call"
    TYPE_USAGE = "type_usage"
    INTERFACE_BOUND = "interface_bound"
    IMPORT = "import"  # imported but not otherwise referenced


class TargetKind(Enum):
    """What the referenced symbol is, as far as it is known."""

    CONCRETE = "concrete"  # struct / enum / union / alias
    INTERFACE = "interface"  # trait
    FUNCTION = "function"  # free function, method or associated item
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SourceLocation:
    """A 1-indexed position inside a source unit."""

    path: str
    line: int
    column: int = 1

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class SourceUnit:
    """One source file.

    Attributes:
        path: POSIX path relative to the analysis root
        module_path: Canonical module path inside its crate; empty tuple for
            the crate root
        line_count: Total lines in the file
        crate: Owning workspace member; empty for the crate at the analysis root
    """

    path: str
    module_path: tuple[str, ...]
    line_count: int
    crate: str = ""

    @property
    def module_name(self) -> str:
        return render_module_path(self.module_path, self.crate)


@dataclass(frozen=True)
class Declaration:
    """An item defined by a source unit.

    Attributes:
        name: Item name (methods carry their owner in ``owner``)
        kind: Function / data type / interface / implementation block
        visibility: Declared visibility
        unit_path: Path of the owning SourceUnit
        location: Where the item starts
        test_only: Inside ``#[cfg(test)]``, ``mod tests`` or marked ``#[test]``
        owner: Self type of the enclosing impl block, for methods
        trait_name: Implemented trait, for trait impl blocks
        field_count: Number of fields (data types only)
        public_field_count: Number of ``pub`` fields (data types only)
        is_newtype: Tuple struct wrapping exactly one field
        derives_serde: Derives Serialize and/or Deserialize
        param_count: Parameters excluding ``self`` (functions only)
        primitive_param_count: Parameters of primitive type (functions only)
    """

    name: str
    kind: DeclarationKind
    visibility: Visibility
    unit_path: str
    location: SourceLocation
    test_only: bool = False
    owner: Optional[str] = None
    trait_name: Optional[str] = None
    field_count: int = 0
    public_field_count: int = 0
    is_newtype: bool = False
    derives_serde: bool = False
    param_count: int = 0
    primitive_param_count: int = 0

    @property
    def qualified_name(self) -> str:
        if self.owner:
            return f"{self.owner}::{self.name}"
        return self.name

    @property
    def is_method(self) -> bool:
        return self.kind is DeclarationKind.FUNCTION and self.owner is not None

    @property
    def is_trait_impl(self) -> bool:
        return self.kind is DeclarationKind.IMPLEMENTATION and self.trait_name is not None


@dataclass(frozen=True)
class Reference:
    """A dependency from one declaration onto a symbol.

    ``target`` is an absolute symbol path: it starts with ``crate`` for
    symbols inside the analyzed tree, with the crate name for external
    symbols, and is the path as written when only a glob import could
    explain it (``resolved`` is then False).

    Attributes:
        origin: Qualified name of the originating declaration (None for
            module-level ``use`` items)
        target: Absolute symbol path segments
        interaction: How the symbol is touched
        target_kind: What the symbol is, as far as the extractor knows
        location: Where the reference appears
        test_only: Originates in test-only code
        resolved: False when the name matched no import or local item
    """

    origin: Optional[str]
    target: tuple[str, ...]
    interaction: InteractionKind
    target_kind: TargetKind
    location: SourceLocation
    test_only: bool = False
    resolved: bool = True

    @property
    def strength(self) -> Strength:
        from .classify import classify

        return classify(self.interaction, self.target_kind)

    @property
    def is_internal(self) -> bool:
        return self.resolved and self.target[:1] == ("crate",)

    @property
    def target_name(self) -> str:
        return "::".join(self.target)


@dataclass(frozen=True)
class FileFacts:
    """Everything extracted from one source unit."""

    unit: SourceUnit
    declarations: tuple[Declaration, ...] = ()
    references: tuple[Reference, ...] = ()
    glob_imports: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class SkippedUnit:
    """A source unit excluded from the graph, with the reason."""

    path: str
    reason: str
    line: Optional[int] = None


@dataclass(frozen=True)
class UnitResult:
    """What one parse worker hands back: facts or a skip diagnostic."""

    path: str
    facts: Optional[FileFacts] = None
    skipped: Optional[SkippedUnit] = None

    @property
    def ok(self) -> bool:
        return self.facts is not None


ROOT_MODULE_NAME = "crate"


def render_module_path(module_path: tuple[str, ...], crate: str = "") -> str:
    """``("level", "enemy")`` -> ``"level::enemy"``; the root renders as ``crate``.

    Modules of a workspace member are prefixed with the member's crate name
    (``("util",)`` in crate ``a`` -> ``"a::util"``, its root -> ``"a"``).
    """
    if crate:
        return "::".join((crate,) + module_path)
    if not module_path:
        return ROOT_MODULE_NAME
    return "::".join(module_path)


def parse_module_name(name: str) -> tuple[str, ...]:
    if name == ROOT_MODULE_NAME:
        return ()
    return tuple(name.split("::"))


PRIMITIVE_TYPES = frozenset(
    {
        "bool",
        "char",
        "str",
        "String",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "f32",
        "f64",
    }
)

# Names the Rust prelude brings into every module. An unqualified use of one
# of these is never attributed to a glob import.
PRELUDE_NAMES = frozenset(
    {
        "Vec",
        "Box",
        "Option",
        "Some",
        "None",
        "Result",
        "Ok",
        "Err",
        "Clone",
        "Copy",
        "Send",
        "Sync",
        "Sized",
        "Unpin",
        "Drop",
        "Fn",
        "FnMut",
        "FnOnce",
        "Default",
        "Debug",
        "Iterator",
        "IntoIterator",
        "DoubleEndedIterator",
        "ExactSizeIterator",
        "Extend",
        "From",
        "Into",
        "TryFrom",
        "TryInto",
        "AsRef",
        "AsMut",
        "ToOwned",
        "ToString",
        "PartialEq",
        "Eq",
        "PartialOrd",
        "Ord",
        "Hash",
        "drop",
    }
)
