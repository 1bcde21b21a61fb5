"""Rust fact extraction: syntax tree -> Declarations + References.

Works in two passes over one file:

1. Name collection: items declared in the file and every ``use`` import
   (groups, aliases, globs, ``crate``/``self``/``super`` prefixes) so that
   later references can be turned into absolute symbol paths.
2. Item walk: declarations with their structural facts, and references from
   signatures, fields, bounds and function bodies.

Receiver types are tracked per function scope (parameters, annotated
``let`` bindings, ``let x = T::new()`` and ``let x = T { .. }``) so that
``x.field`` and ``x.method()`` are attributed to ``T``. Anything needing
real type inference is left alone; macro bodies are not expanded.

References to items declared in the same file are not emitted: they are
cohesion inside one module, not coupling between modules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from ..logging_config import get_logger
from .models import (
    PRELUDE_NAMES,
    PRIMITIVE_TYPES,
    Declaration,
    DeclarationKind,
    FileFacts,
    InteractionKind,
    Reference,
    SourceLocation,
    SourceUnit,
    TargetKind,
    Visibility,
)

logger = get_logger(__name__)

Node = Any
Path = tuple[str, ...]

_TEST_ATTR = re.compile(r"^#\[(?:\w+::)*test(?:\(.*\))?\]$")
_CFG_TEST = re.compile(r"cfg\((?:all\((?:[^()]*,)?)?test[,)]")
_SERDE_DERIVE = re.compile(r"derive\(.*\b(?:Serialize|Deserialize)\b")

_ITEM_KINDS = frozenset(
    {"struct_item", "union_item", "enum_item", "type_item", "trait_item", "function_item"}
)

_NESTED_ITEMS = frozenset(
    {
        "function_item",
        "struct_item",
        "union_item",
        "enum_item",
        "type_item",
        "trait_item",
        "impl_item",
        "mod_item",
        "const_item",
        "static_item",
    }
)

_SKIPPED_EXPRESSIONS = frozenset(
    {
        "macro_invocation",
        "line_comment",
        "block_comment",
        "string_literal",
        "raw_string_literal",
        "char_literal",
        "integer_literal",
        "float_literal",
        "boolean_literal",
        "identifier",
        "self",
    }
)

_TYPE_CONTEXTS = frozenset({"type_arguments", "generic_type", "reference_type", "array_type"})

# Smart pointers whose method calls and field accesses reach the pointee.
_TRANSPARENT_WRAPPERS = frozenset({"Box", "Rc", "Arc"})

# Never supplied by a glob import.
_UNGLOBBED = PRELUDE_NAMES | PRIMITIVE_TYPES


@dataclass
class _Scope:
    """Walk context. Copied, never shared, when entering nested scopes."""

    origin: Optional[str]
    test_only: bool
    inline_path: Path = ()
    self_type: Optional[Path] = None
    generics: frozenset[str] = frozenset()
    bindings: dict[str, Path] = field(default_factory=dict)

    def child(self, **changes) -> _Scope:
        changes.setdefault("bindings", dict(self.bindings))
        return replace(self, **changes)


def _text(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _field(node: Node, name: str) -> Optional[Node]:
    return node.child_by_field_name(name)


def _find_child(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def parse_visibility(text: str) -> Visibility:
    """``pub(crate)`` / ``pub ( super )`` / ... -> Visibility."""
    compact = re.sub(r"\s+", "", text)
    if compact == "pub":
        return Visibility.PUBLIC
    if compact in ("pub(crate)", "crate"):
        return Visibility.CRATE
    if compact == "pub(super)":
        return Visibility.SUPER
    if compact.startswith("pub(in"):
        return Visibility.RESTRICTED
    return Visibility.PRIVATE


def _visibility(node: Node) -> Visibility:
    modifier = _find_child(node, "visibility_modifier")
    if modifier is None:
        return Visibility.PRIVATE
    return parse_visibility(_text(modifier))


def is_test_attribute(attribute: str) -> bool:
    compact = re.sub(r"\s+", "", attribute)
    if compact.startswith("#!["):
        compact = "#[" + compact[3:]
    return bool(_TEST_ATTR.match(compact) or _CFG_TEST.search(compact))


def _path_segments(node: Optional[Node]) -> list[str]:
    """Flatten a path node (``a::b::C``, ``Foo<T>``, ``super::x``) into names."""
    if node is None:
        return []
    t = node.type
    if t in ("scoped_identifier", "scoped_type_identifier"):
        return _path_segments(_field(node, "path")) + [_text(_field(node, "name"))]
    if t in ("generic_type", "generic_type_with_turbofish"):
        return _path_segments(_field(node, "type"))
    if t == "bracketed_type":
        return []
    return [s for s in _text(node).split("::") if s]


def _generic_names(type_parameters: Optional[Node]) -> set[str]:
    names: set[str] = set()
    if type_parameters is None:
        return names
    for child in type_parameters.named_children:
        if child.type == "type_identifier":
            names.add(_text(child))
        elif child.type == "constrained_type_parameter":
            names.add(_text(_field(child, "left")))
        elif child.type in ("type_parameter", "optional_type_parameter", "const_parameter"):
            names.add(_text(_field(child, "name")))
    return names


def _is_primitive(type_node: Optional[Node]) -> bool:
    node = type_node
    while node is not None and node.type in ("reference_type", "pointer_type"):
        node = _field(node, "type")
    if node is None:
        return False
    if node.type == "primitive_type":
        return True
    return node.type == "type_identifier" and _text(node) in PRIMITIVE_TYPES


class RustFactExtractor:
    """Extracts the facts of one Rust source unit.

    An instance is single-use: create one per unit, call ``extract`` once.
    """

    def __init__(self, unit: SourceUnit):
        self.unit = unit
        self._module: Path = unit.module_path
        self._imports: dict[str, Path] = {}
        self._import_sites: dict[str, tuple[SourceLocation, bool]] = {}
        self._used_imports: set[str] = set()
        self._globs: list[Path] = []
        self._locals: dict[str, Path] = {}
        self._local_items: set[str] = set()
        self._declarations: list[Declaration] = []
        self._references: list[Reference] = []

    def extract(self, root: Node) -> FileFacts:
        file_test_only = any(
            c.type == "inner_attribute_item" and is_test_attribute(_text(c))
            for c in root.named_children
        )
        self._collect_names(root, ())
        self._collect_uses(root, (), file_test_only)
        self._visit_items(root, _Scope(origin=None, test_only=file_test_only))
        self._emit_unused_imports()
        logger.debug(
            f"{self.unit.path}: {len(self._declarations)} declarations, "
            f"{len(self._references)} references"
        )
        return FileFacts(
            unit=self.unit,
            declarations=tuple(self._declarations),
            references=tuple(self._references),
            glob_imports=tuple(dict.fromkeys(self._globs)),
        )

    # ── Pass 1: names and imports ─────────────────────────────────

    def _collect_names(self, container: Node, inline_path: Path) -> None:
        base = ("crate",) + self._module + inline_path
        for child in container.named_children:
            name = _text(_field(child, "name"))
            if not name:
                continue
            if child.type in _ITEM_KINDS:
                if not inline_path:
                    self._locals[name] = base + (name,)
                    self._local_items.add(name)
            elif child.type == "mod_item":
                body = _field(child, "body")
                if not inline_path:
                    self._locals[name] = base + (name,)
                if body is not None:
                    if not inline_path:
                        self._local_items.add(name)
                    self._collect_names(body, inline_path + (name,))

    def _collect_uses(self, container: Node, inline_path: Path, test_only: bool) -> None:
        attributes: list[str] = []
        for child in container.named_children:
            if child.type == "attribute_item":
                attributes.append(_text(child))
                continue
            if child.type in ("line_comment", "block_comment", "inner_attribute_item"):
                continue
            # Same test tagging as _visit_item: #[cfg(test)] or a `tests` module.
            item_test_only = test_only or any(is_test_attribute(a) for a in attributes)
            attributes = []
            if child.type == "use_declaration":
                self._collect_use(_field(child, "argument"), [], inline_path, item_test_only)
            elif child.type == "mod_item":
                body = _field(child, "body")
                if body is not None:
                    name = _text(_field(child, "name"))
                    self._collect_uses(
                        body, inline_path + (name,), item_test_only or name == "tests"
                    )

    def _collect_use(
        self, node: Optional[Node], prefix: list[str], inline_path: Path, test_only: bool
    ) -> None:
        if node is None:
            return
        t = node.type
        if t == "scoped_use_list":
            new_prefix = prefix + _path_segments(_field(node, "path"))
            self._collect_use(_field(node, "list"), new_prefix, inline_path, test_only)
        elif t == "use_list":
            for child in node.named_children:
                self._collect_use(child, prefix, inline_path, test_only)
        elif t == "use_wildcard":
            inner = node.named_children[0] if node.named_children else None
            path = self._absolute(prefix + _path_segments(inner), inline_path)
            if (
                path is not None
                and path[:1] == ("crate",)
                and path != ("crate",) + self._module
                and not self._is_local(path)
            ):
                self._globs.append(path)
        elif t == "use_as_clause":
            segments = prefix + _path_segments(_field(node, "path"))
            alias = _text(_field(node, "alias"))
            if alias == "_" and segments:
                alias = segments[-1]
            self._register_import(alias, segments, node, inline_path, test_only)
        else:
            segments = prefix + _path_segments(node)
            if segments and segments[-1] == "self":
                segments = segments[:-1]
            if segments:
                self._register_import(segments[-1], segments, node, inline_path, test_only)

    def _register_import(
        self, alias: str, segments: list[str], node: Node, inline_path: Path, test_only: bool
    ) -> None:
        path = self._absolute(segments, inline_path)
        if path is None or alias in ("crate", "self", "super"):
            return
        self._imports.setdefault(alias, path)
        self._import_sites.setdefault(alias, (self._location(node), test_only))

    # ── Name resolution ───────────────────────────────────────────

    def _absolute(
        self,
        segments: list[str],
        inline_path: Path,
        scope: Optional[_Scope] = None,
        mark_used: bool = False,
    ) -> Optional[Path]:
        if not segments:
            return None
        head, rest = segments[0], tuple(segments[1:])
        base = self._module + inline_path
        if head == "crate":
            return ("crate",) + rest
        if head == "self":
            return ("crate",) + base + rest
        if head == "super":
            depth = 0
            while depth < len(segments) and segments[depth] == "super":
                depth += 1
            if depth > len(base):
                return None
            return ("crate",) + base[: len(base) - depth] + tuple(segments[depth:])
        if head == "Self":
            if scope is not None and scope.self_type is not None:
                return scope.self_type + rest
            return None
        if head in self._imports:
            if mark_used:
                self._used_imports.add(head)
            return self._imports[head] + rest
        if head in self._locals:
            return self._locals[head] + rest
        if rest and head[:1].islower() and head not in PRIMITIVE_TYPES:
            # Crate names are snake_case; an unknown lowercase head is an
            # external crate path.
            return tuple(segments)
        return None

    def _is_local(self, path: Path) -> bool:
        n = len(self._module) + 1
        return (
            len(path) > n
            and path[:n] == ("crate",) + self._module
            and path[n] in self._local_items
        )

    def _reference(
        self,
        segments: list[str],
        node: Node,
        scope: _Scope,
        interaction: InteractionKind,
        kind: TargetKind = TargetKind.UNKNOWN,
    ) -> None:
        if not segments or segments == ["Self"]:
            return
        if len(segments) == 1 and (
            segments[0] in scope.generics or segments[0] in PRIMITIVE_TYPES
        ):
            return
        path = self._absolute(segments, scope.inline_path, scope, mark_used=True)
        if path is None:
            head = segments[0]
            if self._globs and head not in scope.generics and head not in _UNGLOBBED:
                self._references.append(
                    Reference(
                        origin=scope.origin,
                        target=tuple(segments),
                        interaction=interaction,
                        target_kind=kind,
                        location=self._location(node),
                        test_only=scope.test_only,
                        resolved=False,
                    )
                )
            return
        if self._is_local(path):
            return
        self._references.append(
            Reference(
                origin=scope.origin,
                target=path,
                interaction=interaction,
                target_kind=kind,
                location=self._location(node),
                test_only=scope.test_only,
            )
        )

    def _location(self, node: Node) -> SourceLocation:
        row, column = node.start_point[0], node.start_point[1]
        return SourceLocation(self.unit.path, row + 1, column + 1)

    def _emit_unused_imports(self) -> None:
        for alias in sorted(self._imports):
            if alias in self._used_imports:
                continue
            path = self._imports[alias]
            if self._is_local(path):
                continue
            location, test_only = self._import_sites[alias]
            self._references.append(
                Reference(
                    origin=None,
                    target=path,
                    interaction=InteractionKind.IMPORT,
                    target_kind=TargetKind.UNKNOWN,
                    location=location,
                    test_only=test_only,
                )
            )

    # ── Pass 2: items ─────────────────────────────────────────────

    def _visit_items(self, container: Node, scope: _Scope) -> None:
        attributes: list[str] = []
        for child in container.named_children:
            if child.type == "attribute_item":
                attributes.append(_text(child))
                continue
            if child.type in ("line_comment", "block_comment", "inner_attribute_item"):
                continue
            self._visit_item(child, scope, attributes)
            attributes = []

    def _visit_item(self, node: Node, scope: _Scope, attributes: list[str]) -> None:
        test_only = scope.test_only or any(is_test_attribute(a) for a in attributes)
        t = node.type
        if t == "function_item":
            self._visit_function(node, scope, test_only, owner=None)
        elif t in ("struct_item", "union_item"):
            self._visit_struct(node, scope, test_only, attributes)
        elif t == "enum_item":
            self._visit_enum(node, scope, test_only, attributes)
        elif t == "type_item":
            name = _text(_field(node, "name"))
            inner = scope.child(
                origin=name,
                test_only=test_only,
                generics=scope.generics | _generic_names(_field(node, "type_parameters")),
            )
            self._walk_type(_field(node, "type"), inner, InteractionKind.TYPE_USAGE)
            self._declare(node, name, DeclarationKind.DATA_TYPE, test_only)
        elif t == "trait_item":
            self._visit_trait(node, scope, test_only)
        elif t == "impl_item":
            self._visit_impl(node, scope, test_only)
        elif t == "mod_item":
            body = _field(node, "body")
            if body is not None:
                name = _text(_field(node, "name"))
                self._visit_items(
                    body,
                    scope.child(
                        inline_path=scope.inline_path + (name,),
                        test_only=test_only or name == "tests",
                    ),
                )
        elif t in ("const_item", "static_item"):
            inner = scope.child(origin=_text(_field(node, "name")), test_only=test_only)
            self._walk_type(_field(node, "type"), inner, InteractionKind.TYPE_USAGE)
            value = _field(node, "value")
            if value is not None:
                self._walk_expr(value, inner)

    def _declare(
        self, node: Node, name: str, kind: DeclarationKind, test_only: bool, **facts
    ) -> None:
        self._declarations.append(
            Declaration(
                name=name,
                kind=kind,
                visibility=_visibility(node),
                unit_path=self.unit.path,
                location=self._location(node),
                test_only=test_only,
                **facts,
            )
        )

    def _visit_function(
        self, node: Node, scope: _Scope, test_only: bool, owner: Optional[str]
    ) -> None:
        name = _text(_field(node, "name"))
        fscope = scope.child(
            origin=f"{owner}::{name}" if owner else name,
            test_only=test_only,
            generics=scope.generics | _generic_names(_field(node, "type_parameters")),
            bindings={},
        )
        self._visit_generics(node, fscope)

        param_count = 0
        primitive_count = 0
        parameters = _field(node, "parameters")
        for param in parameters.named_children if parameters is not None else ():
            if param.type != "parameter":
                continue
            param_type = _field(param, "type")
            param_count += 1
            if _is_primitive(param_type):
                primitive_count += 1
            self._walk_type(param_type, fscope, InteractionKind.TYPE_USAGE)
            pattern = _field(param, "pattern")
            if pattern is not None and pattern.type == "identifier":
                bound = self._binding_type(param_type, fscope)
                if bound is not None:
                    fscope.bindings[_text(pattern)] = bound

        self._walk_type(_field(node, "return_type"), fscope, InteractionKind.TYPE_USAGE)
        self._declare(
            node,
            name,
            DeclarationKind.FUNCTION,
            test_only,
            owner=owner,
            param_count=param_count,
            primitive_param_count=primitive_count,
        )

        body = _field(node, "body")
        if body is not None:
            self._walk_expr(body, fscope)

    def _visit_struct(
        self, node: Node, scope: _Scope, test_only: bool, attributes: list[str]
    ) -> None:
        name = _text(_field(node, "name"))
        sscope = scope.child(
            origin=name,
            test_only=test_only,
            generics=scope.generics | _generic_names(_field(node, "type_parameters")),
        )
        self._visit_generics(node, sscope)
        count, public, is_tuple = self._visit_fields(_field(node, "body"), sscope)
        self._declare(
            node,
            name,
            DeclarationKind.DATA_TYPE,
            test_only,
            field_count=count,
            public_field_count=public,
            is_newtype=is_tuple and count == 1,
            derives_serde=any(_SERDE_DERIVE.search(a) for a in attributes),
        )

    def _visit_enum(
        self, node: Node, scope: _Scope, test_only: bool, attributes: list[str]
    ) -> None:
        name = _text(_field(node, "name"))
        escope = scope.child(
            origin=name,
            test_only=test_only,
            generics=scope.generics | _generic_names(_field(node, "type_parameters")),
        )
        self._visit_generics(node, escope)
        body = _field(node, "body")
        for variant in body.named_children if body is not None else ():
            if variant.type == "enum_variant":
                self._visit_fields(_field(variant, "body"), escope)
        self._declare(
            node,
            name,
            DeclarationKind.DATA_TYPE,
            test_only,
            derives_serde=any(_SERDE_DERIVE.search(a) for a in attributes),
        )

    def _visit_fields(self, body: Optional[Node], scope: _Scope) -> tuple[int, int, bool]:
        """Walk field types; return (field count, public field count, is tuple)."""
        if body is None:
            return 0, 0, False
        count = public = 0
        if body.type == "field_declaration_list":
            for decl in body.named_children:
                if decl.type != "field_declaration":
                    continue
                count += 1
                if _visibility(decl).is_public:
                    public += 1
                self._walk_type(_field(decl, "type"), scope, InteractionKind.TYPE_USAGE)
            return count, public, False
        if body.type == "ordered_field_declaration_list":
            pending = Visibility.PRIVATE
            for child in body.named_children:
                if child.type == "visibility_modifier":
                    pending = parse_visibility(_text(child))
                    continue
                if child.type in ("attribute_item", "line_comment", "block_comment"):
                    continue
                count += 1
                if pending.is_public:
                    public += 1
                pending = Visibility.PRIVATE
                self._walk_type(child, scope, InteractionKind.TYPE_USAGE)
            return count, public, True
        return 0, 0, False

    def _visit_trait(self, node: Node, scope: _Scope, test_only: bool) -> None:
        name = _text(_field(node, "name"))
        tscope = scope.child(
            origin=name,
            test_only=test_only,
            generics=scope.generics | _generic_names(_field(node, "type_parameters")),
        )
        self._visit_generics(node, tscope)
        self._walk_type(
            _field(node, "bounds"), tscope, InteractionKind.INTERFACE_BOUND, TargetKind.INTERFACE
        )
        self._declare(node, name, DeclarationKind.INTERFACE, test_only)

        body = _field(node, "body")
        attributes: list[str] = []
        for item in body.named_children if body is not None else ():
            if item.type == "attribute_item":
                attributes.append(_text(item))
                continue
            item_test = test_only or any(is_test_attribute(a) for a in attributes)
            attributes = []
            if item.type in ("function_item", "function_signature_item"):
                self._visit_function(item, tscope, item_test, owner=name)
            elif item.type == "associated_type":
                self._walk_type(
                    _field(item, "bounds"),
                    tscope,
                    InteractionKind.INTERFACE_BOUND,
                    TargetKind.INTERFACE,
                )

    def _visit_impl(self, node: Node, scope: _Scope, test_only: bool) -> None:
        type_node = _field(node, "type")
        trait_node = _field(node, "trait")
        generics = scope.generics | _generic_names(_field(node, "type_parameters"))
        base_scope = scope.child(test_only=test_only, generics=generics)
        self_path = self._binding_type(type_node, base_scope)
        type_segments = _path_segments(type_node)
        self_name = type_segments[-1] if type_segments else _text(type_node)

        iscope = base_scope.child(origin=self_name, self_type=self_path)
        self._visit_generics(node, iscope)

        trait_name = None
        if trait_node is not None:
            trait_segments = _path_segments(trait_node)
            trait_name = trait_segments[-1] if trait_segments else _text(trait_node)
            self._walk_type(
                trait_node, iscope, InteractionKind.INTERFACE_BOUND, TargetKind.INTERFACE
            )
            self._walk_type(type_node, iscope, InteractionKind.TYPE_USAGE)
        elif type_segments and self_path is not None:
            self._reference(
                type_segments, type_node, iscope, InteractionKind.INHERENT_IMPL, TargetKind.CONCRETE
            )

        self._declare(
            node, self_name, DeclarationKind.IMPLEMENTATION, test_only, trait_name=trait_name
        )

        body = _field(node, "body")
        attributes: list[str] = []
        for item in body.named_children if body is not None else ():
            if item.type == "attribute_item":
                attributes.append(_text(item))
                continue
            item_test = test_only or any(is_test_attribute(a) for a in attributes)
            attributes = []
            if item.type == "function_item":
                self._visit_function(item, iscope, item_test, owner=self_name)
            elif item.type in ("const_item", "type_item"):
                self._walk_type(_field(item, "type"), iscope, InteractionKind.TYPE_USAGE)
                value = _field(item, "value")
                if value is not None:
                    self._walk_expr(value, iscope)

    def _visit_generics(self, node: Node, scope: _Scope) -> None:
        type_parameters = _field(node, "type_parameters")
        for param in type_parameters.named_children if type_parameters is not None else ():
            if param.type in ("constrained_type_parameter", "type_parameter"):
                self._walk_type(
                    _field(param, "bounds"),
                    scope,
                    InteractionKind.INTERFACE_BOUND,
                    TargetKind.INTERFACE,
                )
            if param.type in ("type_parameter", "optional_type_parameter"):
                self._walk_type(_field(param, "default_type"), scope, InteractionKind.TYPE_USAGE)
        where = _find_child(node, "where_clause")
        for predicate in where.named_children if where is not None else ():
            if predicate.type != "where_predicate":
                continue
            self._walk_type(_field(predicate, "left"), scope, InteractionKind.TYPE_USAGE)
            self._walk_type(
                _field(predicate, "bounds"),
                scope,
                InteractionKind.INTERFACE_BOUND,
                TargetKind.INTERFACE,
            )

    # ── Types ─────────────────────────────────────────────────────

    def _walk_type(
        self,
        node: Optional[Node],
        scope: _Scope,
        interaction: InteractionKind,
        kind: TargetKind = TargetKind.UNKNOWN,
    ) -> None:
        if node is None:
            return
        t = node.type
        if t in ("primitive_type", "lifetime", "line_comment", "block_comment"):
            return
        if t in ("type_identifier", "scoped_type_identifier", "scoped_identifier"):
            self._reference(_path_segments(node), node, scope, interaction, kind)
        elif t == "generic_type":
            self._walk_type(_field(node, "type"), scope, interaction, kind)
            self._walk_type(_field(node, "type_arguments"), scope, InteractionKind.TYPE_USAGE)
        elif t in ("dynamic_type", "abstract_type", "trait_bounds"):
            for child in node.named_children:
                self._walk_type(
                    child, scope, InteractionKind.INTERFACE_BOUND, TargetKind.INTERFACE
                )
        elif t == "type_binding":
            self._walk_type(_field(node, "type"), scope, InteractionKind.TYPE_USAGE)
        else:
            for child in node.named_children:
                self._walk_type(child, scope, interaction, kind)

    def _binding_type(self, type_node: Optional[Node], scope: _Scope) -> Optional[Path]:
        """Absolute path of the nominal type behind a binding annotation."""
        node = type_node
        while node is not None:
            if node.type in ("reference_type", "pointer_type"):
                node = _field(node, "type")
            elif node.type == "generic_type":
                base = _path_segments(_field(node, "type"))
                args = _field(node, "type_arguments")
                if base and base[-1] in _TRANSPARENT_WRAPPERS and args is not None:
                    node = args.named_children[0] if args.named_children else None
                else:
                    node = _field(node, "type")
            else:
                break
        if node is None or node.type not in ("type_identifier", "scoped_type_identifier"):
            return None
        segments = _path_segments(node)
        if len(segments) == 1 and segments[0] in scope.generics:
            return None
        return self._absolute(segments, scope.inline_path, scope)

    # ── Expressions ───────────────────────────────────────────────

    def _walk_expr(self, node: Node, scope: _Scope) -> None:
        t = node.type
        if t in _SKIPPED_EXPRESSIONS:
            return
        if t in _NESTED_ITEMS:
            self._visit_item(node, scope, [])
        elif t == "use_declaration":
            self._collect_use(_field(node, "argument"), [], scope.inline_path, scope.test_only)
        elif t == "block":
            inner = scope.child()
            for child in node.named_children:
                self._walk_expr(child, inner)
        elif t == "let_declaration":
            self._visit_let(node, scope)
        elif t == "call_expression":
            self._visit_call(node, scope)
        elif t == "field_expression":
            self._visit_field_access(node, scope)
        elif t == "struct_expression":
            name_node = _field(node, "name")
            self._reference(
                _path_segments(name_node),
                node,
                scope,
                InteractionKind.CONSTRUCTION,
                TargetKind.CONCRETE,
            )
            body = _field(node, "body")
            if body is not None:
                self._walk_expr(body, scope)
        elif t == "scoped_identifier":
            self._reference(_path_segments(node), node, scope, InteractionKind.TYPE_USAGE)
        elif t in ("tuple_struct_pattern", "struct_pattern"):
            type_node = _field(node, "type")
            self._reference(_path_segments(type_node), node, scope, InteractionKind.TYPE_USAGE)
            for child in node.named_children:
                if child != type_node:
                    self._walk_expr(child, scope)
        elif t == "type_cast_expression":
            self._walk_expr(_field(node, "value"), scope)
            self._walk_type(_field(node, "type"), scope, InteractionKind.TYPE_USAGE)
        elif t == "closure_expression":
            inner = scope.child()
            for child in node.named_children:
                self._walk_expr(child, inner)
        elif t == "parameter":
            self._walk_type(_field(node, "type"), scope, InteractionKind.TYPE_USAGE)
        elif t in _TYPE_CONTEXTS:
            self._walk_type(node, scope, InteractionKind.TYPE_USAGE)
        else:
            for child in node.named_children:
                self._walk_expr(child, scope)

    def _visit_let(self, node: Node, scope: _Scope) -> None:
        type_node = _field(node, "type")
        value = _field(node, "value")
        pattern = _field(node, "pattern")
        self._walk_type(type_node, scope, InteractionKind.TYPE_USAGE)
        if value is not None:
            self._walk_expr(value, scope)
        alternative = _field(node, "alternative")
        if alternative is not None:
            self._walk_expr(alternative, scope)
        if pattern is None:
            return
        if pattern.type == "identifier":
            if type_node is not None:
                bound = self._binding_type(type_node, scope)
            else:
                bound = self._binding_from_value(value, scope)
            if bound is not None:
                scope.bindings[_text(pattern)] = bound
            else:
                scope.bindings.pop(_text(pattern), None)
        else:
            self._walk_expr(pattern, scope)

    def _binding_from_value(self, value: Optional[Node], scope: _Scope) -> Optional[Path]:
        node = value
        while node is not None and node.type in ("reference_expression", "try_expression"):
            node = _field(node, "value") or (
                node.named_children[0] if node.named_children else None
            )
        if node is None:
            return None
        if node.type == "struct_expression":
            return self._absolute(
                _path_segments(_field(node, "name")), scope.inline_path, scope
            )
        if node.type == "call_expression":
            function = _field(node, "function")
            if function is not None and function.type == "scoped_identifier":
                segments = _path_segments(function)
                # `Type::constructor(..)` binds to Type
                if len(segments) >= 2 and segments[-2][:1].isupper():
                    return self._absolute(segments[:-1], scope.inline_path, scope)
        return None

    def _receiver_type(self, node: Optional[Node], scope: _Scope) -> Optional[Path]:
        while node is not None and node.type in ("reference_expression", "parenthesized_expression"):
            node = _field(node, "value") or (
                node.named_children[0] if node.named_children else None
            )
        if node is not None and node.type == "identifier":
            return scope.bindings.get(_text(node))
        return None

    def _visit_call(self, node: Node, scope: _Scope) -> None:
        function = _field(node, "function")
        if function is not None and function.type == "generic_function":
            self._walk_type(_field(function, "type_arguments"), scope, InteractionKind.TYPE_USAGE)
            function = _field(function, "function")

        if function is None:
            pass
        elif function.type == "identifier":
            name = _text(function)
            if name not in scope.bindings:
                self._reference([name], function, scope, InteractionKind.CALL)
        elif function.type == "scoped_identifier":
            self._reference(_path_segments(function), function, scope, InteractionKind.CALL)
        elif function.type == "field_expression":
            receiver = _field(function, "value")
            owner = self._receiver_type(receiver, scope)
            if owner is not None:
                method = _text(_field(function, "field"))
                self._record_member(owner, method, function, scope, InteractionKind.CALL)
            elif receiver is not None:
                self._walk_expr(receiver, scope)
        else:
            self._walk_expr(function, scope)

        arguments = _field(node, "arguments")
        if arguments is not None:
            self._walk_expr(arguments, scope)

    def _visit_field_access(self, node: Node, scope: _Scope) -> None:
        value = _field(node, "value")
        owner = self._receiver_type(value, scope)
        if owner is not None:
            member = _text(_field(node, "field"))
            self._record_member(owner, member, node, scope, InteractionKind.FIELD_ACCESS)
        elif value is not None:
            self._walk_expr(value, scope)

    def _record_member(
        self,
        owner: Path,
        member: str,
        node: Node,
        scope: _Scope,
        interaction: InteractionKind,
    ) -> None:
        path = owner + (member,)
        if self._is_local(path):
            return
        kind = TargetKind.FUNCTION if interaction is InteractionKind.CALL else TargetKind.CONCRETE
        self._references.append(
            Reference(
                origin=scope.origin,
                target=path,
                interaction=interaction,
                target_kind=kind,
                location=self._location(node),
                test_only=scope.test_only,
            )
        )


def extract_facts(unit: SourceUnit, root: Node) -> FileFacts:
    """Convenience wrapper: run a fresh extractor over ``root``."""
    return RustFactExtractor(unit).extract(root)
