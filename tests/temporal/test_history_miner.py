"""Tests for git history mining (uses real temporary repositories)."""

import queue
import shutil
import subprocess
import time

import pytest
from factories import commit_file, git, init_repo, requires_git

from coupling_insight.exceptions import HistoryUnavailableError
from coupling_insight.temporal.history_miner import _END, HistoryMiner, _HistoryTimeout


class TestDisabledAndDegraded:
    def test_disabled_is_degraded(self, tmp_path):
        history = HistoryMiner(tmp_path, enabled=False).mine()
        assert history.degraded
        assert history.reason == "history mining disabled"
        assert history.counts == {}

    def test_start_resolves_to_history(self, tmp_path):
        future = HistoryMiner(tmp_path, enabled=False).start()
        assert future.result(timeout=5).degraded

    @requires_git
    def test_not_a_repository_degrades(self, tmp_path):
        history = HistoryMiner(tmp_path).mine()
        assert history.degraded
        assert history.status == "degraded"
        assert history.reason == "not a git work tree"


class TestCommand:
    def test_window_and_filters(self, tmp_path):
        command = HistoryMiner(tmp_path, months=3).build_command()
        assert command[:4] == ["git", "-C", str(tmp_path.resolve()), "log"]
        assert "--since=3 months ago" in command
        assert "--diff-filter=AMRC" in command
        assert command[-2:] == ["--", "*.rs"]


class TestAccumulate:
    def _queue(self, lines):
        q = queue.Queue()
        for line in lines:
            q.put(line)
        q.put(_END)
        return q

    def test_counts_commits_per_file(self):
        lines = [
            "\x1eaaa\n",
            "\n",
            "src/a.rs\n",
            "src/b.rs\n",
            "\x1ebbb\n",
            "\n",
            "src/a.rs\n",
        ]
        counts, commits = HistoryMiner._accumulate(self._queue(lines), deadline=float("inf"))
        assert commits == 2
        assert counts == {"src/a.rs": 2, "src/b.rs": 1}

    def test_file_listed_twice_in_one_commit_counts_once(self):
        lines = ["\x1eaaa\n", "src/a.rs\n", "src/a.rs\n"]
        counts, _ = HistoryMiner._accumulate(self._queue(lines), deadline=float("inf"))
        assert counts["src/a.rs"] == 1

    def test_expired_deadline_times_out(self):
        with pytest.raises(_HistoryTimeout):
            HistoryMiner._accumulate(queue.Queue(), deadline=0.0)


@requires_git
class TestMineRepository:
    @pytest.fixture
    def repo(self, tmp_path):
        init_repo(tmp_path)
        for i in range(12):
            commit_file(tmp_path, "src/hot.rs", f"// rev {i}\n")
        for i in range(4):
            commit_file(tmp_path, "src/warm.rs", f"// rev {i}\n")
        commit_file(tmp_path, "src/cold.rs", "// once\n")
        commit_file(tmp_path, "README.md", "not rust\n")
        return tmp_path

    def test_counts(self, repo):
        history = HistoryMiner(repo, months=6).mine()
        assert not history.degraded
        assert history.counts == {"src/hot.rs": 12, "src/warm.rs": 4, "src/cold.rs": 1}
        assert history.total_commits == 17
        assert history.window_months == 6

    def test_deleted_files_are_not_counted(self, repo):
        git(repo, "rm", "-q", "src/cold.rs")
        git(repo, "commit", "-q", "-m", "remove")
        history = HistoryMiner(repo).mine()
        assert history.counts["src/cold.rs"] == 1

    def test_paths_are_relative_to_analysis_root(self, repo):
        commit_file(repo, "crates/engine/src/lib.rs", "// engine\n")
        history = HistoryMiner(repo / "crates" / "engine").mine()
        assert history.counts == {"src/lib.rs": 1}


class _ScriptedMiner(HistoryMiner):
    """Runs a shell script in place of ``git log``."""

    def __init__(self, root, script, **kwargs):
        super().__init__(root, **kwargs)
        self.script = script

    def build_command(self):
        return ["sh", "-c", self.script]


requires_sh = pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available")


@requires_sh
class TestStreamProcess:
    def test_chatty_stderr_does_not_stall(self, tmp_path):
        # Far more than a pipe buffer of warnings before any stdout.
        script = (
            "i=0; while [ $i -lt 4000 ]; do "
            "echo 'warning: something noisy happened here' >&2; i=$((i+1)); done; "
            "printf '\\036abc\\nsrc/a.rs\\n'"
        )
        miner = _ScriptedMiner(tmp_path, script, timeout_seconds=20.0)
        history = miner._stream_log(time.monotonic() + 20.0)
        assert history.total_commits == 1
        assert history.counts == {"src/a.rs": 1}

    def test_failure_reports_stderr_tail(self, tmp_path):
        miner = _ScriptedMiner(tmp_path, "echo 'fatal: bad revision' >&2; exit 3")
        with pytest.raises(HistoryUnavailableError) as excinfo:
            miner._stream_log(time.monotonic() + 10.0)
        assert excinfo.value.reason == "fatal: bad revision"

    def test_silent_failure_reports_exit_code(self, tmp_path):
        miner = _ScriptedMiner(tmp_path, "exit 2")
        with pytest.raises(HistoryUnavailableError, match="exited with 2"):
            miner._stream_log(time.monotonic() + 10.0)

    def test_timeout_reaps_the_process(self, tmp_path, monkeypatch):
        started = []
        real_popen = subprocess.Popen

        def recording_popen(*args, **kwargs):
            proc = real_popen(*args, **kwargs)
            started.append(proc)
            return proc

        monkeypatch.setattr(subprocess, "Popen", recording_popen)
        miner = _ScriptedMiner(tmp_path, "exec sleep 30", timeout_seconds=0.3)
        with pytest.raises(HistoryUnavailableError, match="timed out"):
            miner._stream_log(time.monotonic() + 0.3)

        (proc,) = started
        assert proc.returncode is not None
