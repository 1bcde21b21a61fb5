"""Analysis pipeline: discover -> (parse || mine history) -> build -> score -> report.

The history miner is started first so that git's I/O overlaps with parsing.
Source units are then parsed and turned into facts on a thread pool; each
worker returns an immutable UnitResult and shares nothing with the others.
The graph builder waits on both the pool and the miner before it starts,
and everything from there on is single-threaded so the report never
depends on worker scheduling.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from functools import cached_property
from pathlib import Path
from typing import Optional

from .balance import BalanceEngine
from .config import AnalysisConfig
from .exceptions import FileAccessError, InvalidPathError, ParsingError
from .graph import GraphBuilder
from .logging_config import get_logger
from .modules import (
    MANIFEST_NAME,
    CrateRoot,
    ModuleResolver,
    crate_alias_map,
    detect_crates,
    manifest_names,
    read_manifest,
)
from .report import AnalysisReport, ReportBuilder
from .scanning import (
    RustParser,
    SkippedUnit,
    SourceUnit,
    UnitResult,
    discover_source_files,
    extract_facts,
)
from .temporal import HistoryMiner, build_change_records

logger = get_logger(__name__)

# Below this many files a pool costs more than it saves.
_PARALLEL_MIN_FILES = 8
_MAX_AUTO_WORKERS = 8


class CouplingPipeline:
    """One analysis run over one source tree."""

    def __init__(self, root: Path, config: Optional[AnalysisConfig] = None):
        self.root = Path(root)
        self.config = config or AnalysisConfig()
        self.resolver = ModuleResolver()
        self.parser = RustParser()
        self.crates: list[CrateRoot] = []

    @cached_property
    def crate_aliases(self) -> frozenset[str]:
        """Names under which the root crate refers to itself (from Cargo.toml)."""
        return frozenset(manifest_names(read_manifest(self.root / MANIFEST_NAME)))

    def effective_workers(self, file_count: int) -> int:
        if self.config.workers is not None:
            return self.config.workers
        if file_count < _PARALLEL_MIN_FILES:
            return 1
        return min(os.cpu_count() or 1, _MAX_AUTO_WORKERS)

    def run(self) -> AnalysisReport:
        """Run the full analysis.

        Raises:
            InvalidPathError: If the root is not a directory.
            InvariantViolationError: If the assembled graph is inconsistent.
        """
        if not self.root.is_dir():
            raise InvalidPathError(self.root, "analysis root must be a directory")

        paths = discover_source_files(self.root, self.config.exclude_patterns)
        logger.info(f"Analyzing {len(paths)} Rust files under {self.root}")

        self.crates = detect_crates(self.root, paths)
        self.resolver = ModuleResolver(crates=self.crates)

        miner = HistoryMiner(
            self.root,
            months=self.config.history_months,
            timeout_seconds=self.config.history_timeout_seconds,
            enabled=self.config.history_enabled,
        )
        history_future = miner.start()

        results = self.process_units(paths)

        # Join point: both the pool and the miner are done past here.
        history = history_future.result()

        facts = [r.facts for r in results if r.facts is not None]
        skipped = [r.skipped for r in results if r.skipped is not None]
        if skipped:
            logger.warning(f"Skipped {len(skipped)} of {len(paths)} files (see report)")

        records = build_change_records((f.unit.path for f in facts), history, self.config)
        builder = GraphBuilder(self.config, crate_aliases=crate_alias_map(self.crates))
        graph = builder.build(facts, records)
        issues = BalanceEngine(self.config).analyze(graph)

        return (
            ReportBuilder(str(self.root), self.config)
            .add_graph(graph)
            .add_issues(issues)
            .add_skipped(skipped)
            .set_history(history)
            .build()
        )

    def process_units(self, paths: list[str]) -> list[UnitResult]:
        """Parse and extract every unit; results keep the order of ``paths``."""
        workers = self.effective_workers(len(paths))
        if workers == 1:
            return [self.process_unit(p) for p in paths]

        logger.debug(f"Parsing with {workers} workers")
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="parse") as pool:
            return list(pool.map(self.process_unit, paths))

    def process_unit(self, rel_path: str) -> UnitResult:
        """Read, parse and extract one unit. Per-file failures become skips."""
        try:
            source = self._read(rel_path)
            crate, module_path = self.resolver.locate(rel_path)
            unit = SourceUnit(
                path=rel_path,
                module_path=module_path,
                line_count=_line_count(source),
                crate=crate.name,
            )
            root_node = self.parser.parse(source, rel_path)
            return UnitResult(rel_path, facts=extract_facts(unit, root_node))
        except ParsingError as e:
            logger.debug(f"Skipping {rel_path}: {e.reason} (line {e.line})")
            return UnitResult(rel_path, skipped=SkippedUnit(rel_path, e.reason, e.line))
        except FileAccessError as e:
            logger.debug(f"Skipping {rel_path}: {e.reason}")
            return UnitResult(rel_path, skipped=SkippedUnit(rel_path, e.reason))

    def _read(self, rel_path: str) -> bytes:
        filepath = self.root / rel_path
        try:
            source = filepath.read_bytes()
        except OSError as e:
            raise FileAccessError(filepath, str(e))
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FileAccessError(filepath, f"not valid UTF-8: {e.reason}")
        return source


def _line_count(source: bytes) -> int:
    if not source:
        return 0
    return source.count(b"\n") + (0 if source.endswith(b"\n") else 1)
