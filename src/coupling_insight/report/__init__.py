"""Report aggregation, the serializable report model and analyses derived from it."""

from .builder import ReportBuilder, health_grade
from .hotspots import Hotspot, find_hotspots
from .impact import DependencyInfo, ImpactAnalysis, analyze_impact
from .models import AnalysisReport, ReportSummary
from .quality_gate import CheckResult, QualityGate, run_check

__all__ = [
    "AnalysisReport",
    "CheckResult",
    "DependencyInfo",
    "Hotspot",
    "ImpactAnalysis",
    "QualityGate",
    "ReportBuilder",
    "ReportSummary",
    "analyze_impact",
    "find_hotspots",
    "health_grade",
    "run_check",
]
