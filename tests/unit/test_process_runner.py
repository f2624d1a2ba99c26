"""Unit tests for GitRunner, GitStream and CancellationToken."""

import subprocess
import sys
import threading
from subprocess import DEVNULL, PIPE
from unittest.mock import Mock, patch

import pytest
from git import Git
from git.exc import GitCommandNotFound

from smell_history.errors import (
    CancelledError,
    UnexpectedProcessError,
    UnknownCommitError,
    UnknownRepositoryError,
)
from smell_history.services.process_runner import CancellationToken, GitRunner


def _python_process(code, with_input=False):
    """Start a real child process standing in for git."""
    return subprocess.Popen(
        [sys.executable, "-c", code],
        stdin=PIPE if with_input else DEVNULL,
        stdout=PIPE,
        stderr=PIPE,
    )


class TestCancellationToken:
    """Test cases for CancellationToken."""

    def test_cancel_runs_callbacks_once(self):
        token = CancellationToken()
        callback = Mock()
        token.register(callback)

        token.cancel()
        token.cancel()

        assert token.cancelled is True
        callback.assert_called_once_with()

    def test_unregistered_callback_is_not_run(self):
        token = CancellationToken()
        callback = Mock()
        unregister = token.register(callback)

        unregister()
        token.cancel()

        callback.assert_not_called()

    def test_register_after_cancel_runs_immediately(self):
        token = CancellationToken()
        token.cancel()
        callback = Mock()

        token.register(callback)

        callback.assert_called_once_with()


class TestGitRunnerRun:
    """Test cases for buffered runs."""

    def setup_method(self):
        """Set up test fixtures."""
        self.token = CancellationToken()

    def _runner(self, tmp_path, **kwargs):
        return GitRunner(tmp_path, repository="sample", cancellation=self.token, **kwargs)

    def test_run_returns_stdout(self, tmp_path):
        """Test that stdout is returned as raw bytes."""
        proc = _python_process("import sys; sys.stdout.buffer.write(b'a\\x00b\\n')")
        with patch.object(Git, "execute", return_value=Mock(proc=proc)) as mock_execute:
            result = self._runner(tmp_path).run(["rev-list", "HEAD"])

        assert result.stdout == b"a\x00b\n"
        assert result.status == 0
        command = mock_execute.call_args[0][0]
        assert command[1:] == ["rev-list", "HEAD"]
        assert mock_execute.call_args[1]["as_process"] is True
        assert mock_execute.call_args[1]["istream"] is None

    def test_run_feeds_input(self, tmp_path):
        """Test that input bytes reach the process's stdin."""
        proc = _python_process(
            "import sys; sys.stdout.buffer.write(sys.stdin.buffer.read().upper())",
            with_input=True,
        )
        with patch.object(Git, "execute", return_value=Mock(proc=proc)) as mock_execute:
            result = self._runner(tmp_path).run(["cat-file", "--batch"], input=b"abc\n")

        assert result.stdout == b"ABC\n"
        assert mock_execute.call_args[1]["istream"] == PIPE

    def test_unclassified_failure(self, tmp_path):
        """Test that an unknown failure keeps status and stderr."""
        proc = _python_process(
            "import sys; sys.stderr.write('fatal: something odd\\n'); sys.exit(128)"
        )
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            with pytest.raises(UnexpectedProcessError) as excinfo:
                self._runner(tmp_path).run(["show"])

        assert excinfo.value.status == 128
        assert excinfo.value.stderr == "fatal: something odd"

    def test_not_a_repository(self, tmp_path):
        proc = _python_process(
            "import sys; sys.stderr.write('fatal: not a git repository'); sys.exit(128)"
        )
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            with pytest.raises(UnknownRepositoryError):
                self._runner(tmp_path).run(["show"])

    def test_classifier_decides_first(self, tmp_path):
        """Test that the component's classifier maps stderr to a domain error."""
        proc = _python_process(
            "import sys; sys.stderr.write('fatal: not a tree object'); sys.exit(128)"
        )

        def classify(stderr):
            if stderr.startswith("fatal: not a tree object"):
                return UnknownCommitError("sample", "c" * 40)
            return None

        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            with pytest.raises(UnknownCommitError):
                self._runner(tmp_path).run(["ls-tree", "c" * 40], classify=classify)

    def test_missing_working_dir(self, tmp_path):
        """Test that a missing repository fails before git is spawned."""
        runner = GitRunner(tmp_path / "missing", repository="missing")
        with patch.object(Git, "execute") as mock_execute:
            with pytest.raises(UnknownRepositoryError):
                runner.run(["show"])
        mock_execute.assert_not_called()

    def test_spawn_failure(self, tmp_path):
        with patch.object(
            Git, "execute", side_effect=GitCommandNotFound("git", OSError("not found"))
        ):
            with pytest.raises(UnexpectedProcessError):
                self._runner(tmp_path).run(["show"])

    def test_cancelled_before_start(self, tmp_path):
        self.token.cancel()
        with patch.object(Git, "execute") as mock_execute:
            with pytest.raises(CancelledError):
                self._runner(tmp_path).run(["show"])
        mock_execute.assert_not_called()

    def test_cancel_while_running(self, tmp_path):
        """Test that cancelling kills the process and raises CancelledError."""
        proc = _python_process("import time; time.sleep(30)")
        timer = threading.Timer(0.2, self.token.cancel)
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            timer.start()
            try:
                with pytest.raises(CancelledError):
                    self._runner(tmp_path).run(["log"])
            finally:
                timer.cancel()

        assert proc.poll() is not None


class TestGitStream:
    """Test cases for streamed runs."""

    def test_stream_yields_all_output(self, tmp_path):
        proc = _python_process(
            "import sys\n"
            "for i in range(3):\n"
            "    sys.stdout.buffer.write(b'chunk%d\\x00' % i)\n"
            "    sys.stdout.flush()\n"
        )
        runner = GitRunner(tmp_path, chunk_size=4)
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            stream = runner.stream(["log"])
            data = b"".join(stream)

        assert data == b"chunk0\x00chunk1\x00chunk2\x00"
        assert stream.closed is True

    def test_close_terminates_process(self, tmp_path):
        """Test that closing early kills a process that is still producing."""
        proc = _python_process(
            "import sys, time\n"
            "sys.stdout.buffer.write(b'first\\n')\n"
            "sys.stdout.flush()\n"
            "time.sleep(30)\n"
        )
        runner = GitRunner(tmp_path)
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            with runner.stream(["log"]) as stream:
                assert next(stream) == b"first\n"

        assert proc.poll() is not None
        assert stream.closed is True

    def test_failure_raised_after_output(self, tmp_path):
        proc = _python_process(
            "import sys; sys.stderr.write('fatal: bad object abc'); sys.exit(128)"
        )

        def classify(stderr):
            return UnknownCommitError("sample", "abc") if "bad object" in stderr else None

        runner = GitRunner(tmp_path)
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            stream = runner.stream(["log"], classify=classify)
            with pytest.raises(UnknownCommitError):
                list(stream)

    def test_cancel_stream(self, tmp_path):
        token = CancellationToken()
        proc = _python_process("import time; time.sleep(30)")
        runner = GitRunner(tmp_path, cancellation=token)
        with patch.object(Git, "execute", return_value=Mock(proc=proc)):
            stream = runner.stream(["log"])
            token.cancel()
            with pytest.raises(CancelledError):
                list(stream)

        assert proc.poll() is not None
