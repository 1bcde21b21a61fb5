"""Structural smells read from declarations alone, not from edges.

GOD_MODULE             (Medium, High past 2x)  too many items in one module
PUBLIC_FIELD_EXPOSURE  (Low, hidden)           public type with public fields
PRIMITIVE_OBSESSION    (Low, hidden)           functions taking mostly primitives

Test-only declarations are ignored by all three.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...scanning.models import DeclarationKind
from ..models import Issue, IssueKind, Severity

if TYPE_CHECKING:
    from ...config import AnalysisConfig
    from ...graph.models import CouplingGraph, ModuleNode


class GodModuleDetector:
    """Modules with too many free functions, types or impl blocks."""

    kind = IssueKind.GOD_MODULE
    hidden = False
    BALANCE_SCORE = 0.5

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        t = config.thresholds
        issues = []
        for node in graph.internal_nodes:
            functions, types, impls = _production_counts(node)
            if functions <= t.max_functions and types <= t.max_types and impls <= t.max_impls:
                continue

            if functions > 2 * t.max_functions or types > 2 * t.max_types:
                severity = Severity.HIGH
            else:
                severity = Severity.MEDIUM
            issues.append(
                Issue(
                    kind=self.kind,
                    severity=severity,
                    subject=(node.name,),
                    description=(
                        f"{node.name} has too many responsibilities "
                        f"(functions: {functions}/{t.max_functions}, "
                        f"types: {types}/{t.max_types}, impls: {impls}/{t.max_impls})"
                    ),
                    suggestion=(
                        f"Split {node.name} into focused submodules, grouping the "
                        f"types with the functions that operate on them."
                    ),
                    balance_score=self.BALANCE_SCORE,
                )
            )
        return issues


class PublicFieldExposureDetector:
    kind = IssueKind.PUBLIC_FIELD_EXPOSURE
    hidden = True
    BALANCE_SCORE = 0.7

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        issues = []
        for node in graph.internal_nodes:
            for decl in node.declarations:
                if (
                    decl.test_only
                    or decl.kind is not DeclarationKind.DATA_TYPE
                    or not decl.visibility.is_public
                    or decl.public_field_count == 0
                    or decl.is_newtype
                    or decl.derives_serde  # plain data transfer objects
                ):
                    continue
                issues.append(
                    Issue(
                        kind=self.kind,
                        severity=Severity.LOW,
                        subject=(node.name, decl.name),
                        description=(
                            f"Type {decl.name} exposes {decl.public_field_count} of "
                            f"{decl.field_count} fields publicly"
                        ),
                        suggestion=(
                            f"Make the fields of {decl.name} private and add accessor "
                            f"methods for what callers actually read."
                        ),
                        balance_score=self.BALANCE_SCORE,
                        location=decl.location,
                    )
                )
        return issues


class PrimitiveObsessionDetector:
    kind = IssueKind.PRIMITIVE_OBSESSION
    hidden = True
    BALANCE_SCORE = 0.7

    def find(self, graph: CouplingGraph, config: AnalysisConfig) -> list[Issue]:
        t = config.thresholds
        issues = []
        for node in graph.internal_nodes:
            for decl in node.declarations:
                if decl.test_only or decl.kind is not DeclarationKind.FUNCTION:
                    continue
                if decl.param_count < t.min_primitive_params:
                    continue
                if decl.primitive_param_count / decl.param_count < t.primitive_param_ratio:
                    continue
                issues.append(
                    Issue(
                        kind=self.kind,
                        severity=Severity.LOW,
                        subject=(node.name, decl.qualified_name),
                        description=(
                            f"Function {decl.qualified_name} takes "
                            f"{decl.primitive_param_count} primitive parameters "
                            f"out of {decl.param_count}"
                        ),
                        suggestion=(
                            f"Introduce newtypes (e.g. `struct UserId(u64)`) or a "
                            f"`{_camel(decl.name)}Params` struct for the related values."
                        ),
                        balance_score=self.BALANCE_SCORE,
                        location=decl.location,
                    )
                )
        return issues


def _production_counts(node: ModuleNode) -> tuple[int, int, int]:
    functions = types = impls = 0
    for decl in node.declarations:
        if decl.test_only:
            continue
        if decl.kind is DeclarationKind.FUNCTION and decl.owner is None:
            functions += 1
        elif decl.kind is DeclarationKind.DATA_TYPE:
            types += 1
        elif decl.kind is DeclarationKind.IMPLEMENTATION:
            impls += 1
    return functions, types, impls


def _camel(snake: str) -> str:
    return "".join(part.capitalize() for part in snake.split("_"))
