"""Change history: git log mining and volatility levels."""

from .history_miner import HistoryMiner
from .models import ChangeHistory, ChangeRecord
from .volatility import DEGRADED_VOLATILITY, build_change_records, classify_volatility

__all__ = [
    "ChangeHistory",
    "ChangeRecord",
    "HistoryMiner",
    "DEGRADED_VOLATILITY",
    "build_change_records",
    "classify_volatility",
]
