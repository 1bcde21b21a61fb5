"""Issue detectors.

Each detector is a small class with a ``kind``, a ``hidden`` flag (hidden
detectors only run with ``show_hidden_issues``) and a
``find(graph, config) -> list[Issue]`` method. Detectors run over an
already scored graph and never mutate it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...logging_config import get_logger
from .cycles import CircularDependencyDetector
from .edges import (
    CascadingChangeRiskDetector,
    GlobalComplexityDetector,
    InappropriateIntimacyDetector,
)
from .fan import HighAfferentCouplingDetector, HighEfferentCouplingDetector, fan_counts
from .structure import GodModuleDetector, PrimitiveObsessionDetector, PublicFieldExposureDetector

if TYPE_CHECKING:
    from ...config import AnalysisConfig
    from ...graph.models import CouplingGraph
    from ..models import Issue

logger = get_logger(__name__)

ALL_DETECTORS = [
    CircularDependencyDetector(),
    GlobalComplexityDetector(),
    CascadingChangeRiskDetector(),
    HighEfferentCouplingDetector(),
    HighAfferentCouplingDetector(),
    InappropriateIntimacyDetector(),
    GodModuleDetector(),
    PublicFieldExposureDetector(),
    PrimitiveObsessionDetector(),
]


def run_detectors(
    graph: CouplingGraph, config: AnalysisConfig, detectors: list | None = None
) -> list[Issue]:
    """Run detectors and return issues, deduplicated by (kind, subject).

    When two issues share an identity the more severe one is kept. The
    result is sorted by ``Issue.sort_key``.
    """
    if detectors is None:
        detectors = ALL_DETECTORS

    kept: dict[tuple, Issue] = {}
    for detector in detectors:
        if detector.hidden and not config.show_hidden_issues:
            continue
        found = detector.find(graph, config)
        logger.debug(f"{detector.kind.value}: {len(found)} issues")
        for issue in found:
            previous = kept.get(issue.identity)
            if previous is None or issue.severity.rank > previous.severity.rank:
                kept[issue.identity] = issue

    return sorted(kept.values(), key=lambda issue: issue.sort_key)


__all__ = [
    "ALL_DETECTORS",
    "CascadingChangeRiskDetector",
    "CircularDependencyDetector",
    "GlobalComplexityDetector",
    "GodModuleDetector",
    "HighAfferentCouplingDetector",
    "HighEfferentCouplingDetector",
    "InappropriateIntimacyDetector",
    "PrimitiveObsessionDetector",
    "PublicFieldExposureDetector",
    "fan_counts",
    "run_detectors",
]
