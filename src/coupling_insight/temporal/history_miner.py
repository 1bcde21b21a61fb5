"""Mine git history into per-file commit counts.

``git log`` output is consumed as a line stream: a reader thread pushes
lines into a bounded queue and the accumulator pulls them with blocking
``get`` calls, so memory stays flat however long the history is and a
stalled consumer throttles the reader instead of buffering.

Any failure (not a repository, git missing, non-zero exit, timeout) is
turned into a degraded ChangeHistory rather than an exception.
"""

from __future__ import annotations

import queue
import subprocess
import threading
import time
from collections import Counter, deque
from concurrent.futures import Future
from pathlib import Path
from typing import IO, Optional

from ..exceptions import HistoryUnavailableError
from ..logging_config import get_logger
from .models import ChangeHistory

logger = get_logger(__name__)

# Prefix of the per-commit header line (ASCII record separator).
_COMMIT_MARKER = "\x1e"
_END = object()
# Lines of git stderr kept for the degraded-history reason.
_STDERR_TAIL = 20


class _HistoryTimeout(Exception):
    pass


class HistoryMiner:
    """Counts commits per ``.rs`` file within a time window."""

    _QUEUE_SIZE = 4096

    def __init__(
        self,
        root: Path,
        months: int = 6,
        timeout_seconds: float = 30.0,
        enabled: bool = True,
    ):
        self.root = Path(root).resolve()
        self.months = months
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled

    def start(self) -> Future:
        """Mine on a background thread; the future resolves to a ChangeHistory.

        The future never carries an exception for history problems, only for
        genuine defects.
        """
        future: Future = Future()

        def run() -> None:
            try:
                future.set_result(self.mine())
            except BaseException as e:  # surfaced at the join point
                future.set_exception(e)

        threading.Thread(target=run, name="history-miner", daemon=True).start()
        return future

    def mine(self) -> ChangeHistory:
        """Mine synchronously."""
        if not self.enabled:
            logger.info("History mining disabled: every file defaults to Medium volatility")
            return ChangeHistory.unavailable("history mining disabled", self.months)

        started = time.monotonic()
        try:
            self._check_repository()
            history = self._stream_log(started + self.timeout_seconds)
        except HistoryUnavailableError as e:
            logger.warning(f"{e.message}; every file defaults to Medium volatility")
            return ChangeHistory.unavailable(e.reason, self.months)

        history.elapsed_seconds = time.monotonic() - started
        logger.info(
            f"Mined {history.total_commits} commits touching {len(history.counts)} files "
            f"in {history.elapsed_seconds:.2f}s"
        )
        return history

    def _check_repository(self) -> None:
        try:
            result = subprocess.run(
                ["git", "-C", str(self.root), "rev-parse", "--is-inside-work-tree"],
                capture_output=True,
                text=True,
                timeout=min(5.0, self.timeout_seconds),
            )
        except FileNotFoundError:
            raise HistoryUnavailableError("git executable not found")
        except subprocess.TimeoutExpired:
            raise HistoryUnavailableError("git did not respond")
        if result.returncode != 0 or result.stdout.strip() != "true":
            raise HistoryUnavailableError("not a git work tree")

    def build_command(self) -> list[str]:
        return [
            "git",
            "-C",
            str(self.root),
            "log",
            f"--since={self.months} months ago",
            "--name-only",
            f"--format={_COMMIT_MARKER}%H",
            "--diff-filter=AMRC",
            "--relative",
            "--",
            "*.rs",
        ]

    def _stream_log(self, deadline: float) -> ChangeHistory:
        try:
            proc = subprocess.Popen(
                self.build_command(),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            raise HistoryUnavailableError("git executable not found")

        lines: queue.Queue = queue.Queue(maxsize=self._QUEUE_SIZE)
        reader = threading.Thread(
            target=_pump, args=(proc.stdout, lines), name="history-reader", daemon=True
        )
        reader.start()
        # stderr is drained concurrently so a chatty git never blocks on a full pipe.
        stderr_tail: deque = deque(maxlen=_STDERR_TAIL)
        errors = threading.Thread(
            target=_collect, args=(proc.stderr, stderr_tail), name="history-stderr", daemon=True
        )
        errors.start()

        try:
            try:
                counts, commits = self._accumulate(lines, deadline)
            except _HistoryTimeout:
                _kill(proc)
                _drain(lines)
                raise HistoryUnavailableError(
                    f"git log timed out after {self.timeout_seconds:g}s"
                )

            try:
                returncode = proc.wait(timeout=max(deadline - time.monotonic(), 0.1))
            except subprocess.TimeoutExpired:
                _kill(proc)
                raise HistoryUnavailableError(
                    f"git log timed out after {self.timeout_seconds:g}s"
                )
            if returncode != 0:
                errors.join(timeout=1.0)
                stderr = "".join(stderr_tail).strip()
                raise HistoryUnavailableError(stderr or f"git log exited with {returncode}")
        finally:
            reader.join(timeout=1.0)
            errors.join(timeout=1.0)
            if proc.stdout:
                proc.stdout.close()
            if proc.stderr:
                proc.stderr.close()

        return ChangeHistory(counts=dict(counts), total_commits=commits, window_months=self.months)

    @staticmethod
    def _accumulate(lines: queue.Queue, deadline: float) -> tuple[Counter, int]:
        counts: Counter = Counter()
        commits = 0
        in_commit: set[str] = set()
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise _HistoryTimeout()
            try:
                item = lines.get(timeout=remaining)
            except queue.Empty:
                raise _HistoryTimeout()
            if item is _END:
                return counts, commits

            line = item.strip()
            if item.startswith(_COMMIT_MARKER):
                commits += 1
                in_commit = set()
            elif line and line not in in_commit:
                in_commit.add(line)
                counts[line] += 1


def _pump(stream: Optional[IO[str]], lines: queue.Queue) -> None:
    try:
        if stream is not None:
            for line in stream:
                lines.put(line)
    except (OSError, ValueError) as e:
        # Stream closed underneath us after a kill.
        logger.debug(f"git log stream closed: {e}")
    finally:
        lines.put(_END)


def _drain(lines: queue.Queue) -> None:
    while lines.get() is not _END:
        pass


def _collect(stream: Optional[IO[str]], tail: deque) -> None:
    try:
        if stream is not None:
            for line in stream:
                tail.append(line)
    except (OSError, ValueError) as e:
        logger.debug(f"git log stderr closed: {e}")


def _kill(proc: subprocess.Popen) -> None:
    proc.kill()
    proc.wait()
