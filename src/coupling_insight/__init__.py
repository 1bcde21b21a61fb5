"""
Coupling Insight - Module Coupling Analysis for Rust

Measures every dependency between the modules of a crate along three
dimensions: integration strength, distance and volatility (from git
history). Combines them into a balance score per coupling, classifies it
and reports cycles, hub modules and boundary violations.
"""

__version__ = "0.1.0"
__author__ = "Naman Agarwal"

from .api import analyze
from .config import AnalysisConfig, ThresholdConfig, load_config
from .dimensions import Distance, Strength, Volatility
from .report import AnalysisReport

__all__ = [
    "analyze",  # Main entry point
    "AnalysisConfig",
    "AnalysisReport",
    "Distance",
    "Strength",
    "ThresholdConfig",
    "Volatility",
    "load_config",
]
