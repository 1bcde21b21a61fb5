"""Source file discovery.

Walks the analysis root for ``.rs`` files, skipping build output, VCS and
hidden directories, and anything matching the configured exclude globs.
"""

from __future__ import annotations

import os
from pathlib import Path

from ..config import matches_any
from ..exceptions import InvalidPathError
from ..logging_config import get_logger

logger = get_logger(__name__)

SKIP_DIRS = frozenset({"target", ".git", "node_modules", "vendor", ".cargo"})


def discover_source_files(root: Path, exclude_patterns: list[str] | None = None) -> list[str]:
    """Return POSIX paths (relative to ``root``) of every Rust source file.

    The result is sorted so that downstream processing order never depends
    on directory enumeration order.

    Raises:
        InvalidPathError: If ``root`` is not a directory.
    """
    if not root.is_dir():
        raise InvalidPathError(root, "analysis root must be a directory")

    exclude_patterns = exclude_patterns or []
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for filename in filenames:
            if not filename.endswith(".rs"):
                continue
            rel = Path(dirpath, filename).relative_to(root).as_posix()
            if matches_any(rel, exclude_patterns):
                logger.debug(f"Excluded by pattern: {rel}")
                continue
            found.append(rel)

    found.sort()
    logger.debug(f"Discovered {len(found)} Rust source files under {root}")
    return found
