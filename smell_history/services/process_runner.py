"""
Git process execution for smell-history.

Every logical operation maps to exactly one git process. A process is
either run to completion with its output buffered (``GitRunner.run``) or
exposed as a live, pull-consumed pipe (``GitRunner.stream``). Both go
through GitPython's ``Git.execute(..., as_process=True)`` so the process
handle stays available for cancellation.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from subprocess import PIPE
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union

from git import Git
from git.exc import GitCommandNotFound

from ..errors import (
    CancelledError,
    SmellHistoryError,
    UnexpectedProcessError,
    UnknownRepositoryError,
)

LOG = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65536

NOT_A_REPOSITORY = "fatal: not a git repository"

# Maps a failed process's stderr to a domain error, or None when the
# component has no specific classification for it.
Classifier = Callable[[str], Optional[SmellHistoryError]]


class CancellationToken:
    """
    Cooperative cancellation signal shared between a caller and its processes.

    Processes register a kill callback while they run; ``cancel`` fires
    every registered callback once. Thread-safe.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_key = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback to run on cancellation and return its unregister function."""
        with self._lock:
            if not self._cancelled:
                key = self._next_key
                self._next_key += 1
                self._callbacks[key] = callback
                return lambda: self._callbacks.pop(key, None)
        # Already cancelled
        callback()
        return lambda: None


@dataclass
class GitResult:
    """Buffered result of a git invocation that exited successfully."""

    command: List[str]
    status: int
    stdout: bytes
    stderr: bytes

    @property
    def text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


class GitRunner:
    """Runs git inside one repository directory."""

    def __init__(
        self,
        working_dir: Union[str, Path],
        repository: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.working_dir = Path(working_dir)
        self.repository = repository or self.working_dir.name
        self.cancellation = cancellation
        self.chunk_size = chunk_size
        self._git = Git(str(self.working_dir))

    def run(
        self,
        args: Sequence[str],
        input: Optional[bytes] = None,
        classify: Optional[Classifier] = None,
    ) -> GitResult:
        """Run git with args to completion and return its buffered output."""

        command = self._command(args)
        handle = self._spawn(command, with_input=input is not None)
        proc = handle.proc
        unregister = self._watch(proc)
        try:
            stdout, stderr = proc.communicate(input)
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            unregister()

        if proc.returncode != 0:
            self.raise_for_status(command, proc.returncode, stderr, classify)
        return GitResult(
            command=command, status=proc.returncode, stdout=stdout, stderr=stderr
        )

    def stream(
        self, args: Sequence[str], classify: Optional[Classifier] = None
    ) -> "GitStream":
        """Start git with args and return a live stream over its stdout."""

        command = self._command(args)
        handle = self._spawn(command, with_input=False)
        unregister = self._watch(handle.proc)
        return GitStream(self, command, handle, unregister, classify)

    def raise_for_status(
        self,
        command: List[str],
        status: int,
        stderr: bytes,
        classify: Optional[Classifier],
    ) -> None:
        """Classify a failed process exactly once and raise the result."""

        if self.cancellation is not None and self.cancellation.cancelled:
            raise CancelledError(f"git command cancelled: {' '.join(command)}")

        message = stderr.decode("utf-8", errors="replace").strip()
        LOG.debug("git exited with status %s: %s", status, message)

        error = classify(message) if classify is not None else None
        if error is None and message.startswith(NOT_A_REPOSITORY):
            error = UnknownRepositoryError(self.repository)
        if error is None:
            error = UnexpectedProcessError(command, status, message)
        raise error

    def _command(self, args: Sequence[str]) -> List[str]:
        return [Git.GIT_PYTHON_GIT_EXECUTABLE or "git", *args]

    def _spawn(self, command: List[str], with_input: bool) -> Git.AutoInterrupt:
        if self.cancellation is not None and self.cancellation.cancelled:
            raise CancelledError(f"git command cancelled: {' '.join(command)}")
        # GitPython silently falls back to the process cwd for a missing
        # working directory, so check it here.
        if not self.working_dir.is_dir():
            raise UnknownRepositoryError(self.repository)

        LOG.debug("Running git command: %s", " ".join(command))
        try:
            return self._git.execute(
                command,
                istream=PIPE if with_input else None,
                as_process=True,
            )
        except GitCommandNotFound as exc:
            raise UnexpectedProcessError(command, None, str(exc)) from exc
        except OSError as exc:
            raise UnexpectedProcessError(command, None, str(exc)) from exc

    def _watch(self, proc) -> Callable[[], None]:
        if self.cancellation is None:
            return lambda: None
        return self.cancellation.register(proc.kill)


class GitStream:
    """
    Live stdout of a running git process, consumed as raw byte chunks.

    The process is killed and reaped by ``close``, which runs on normal
    exhaustion, on error and on context manager exit. After the pipe is
    drained the exit status is checked and failures are raised as
    classified errors.
    """

    def __init__(
        self,
        runner: GitRunner,
        command: List[str],
        handle: Git.AutoInterrupt,
        unregister: Callable[[], None],
        classify: Optional[Classifier],
    ):
        self.command = command
        self.process = handle.proc
        self._runner = runner
        self._handle = handle
        self._unregister = unregister
        self._classify = classify
        self._closed = False
        stdout = self.process.stdout
        self._read = getattr(stdout, "read1", stdout.read)

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._closed:
            raise StopIteration
        try:
            chunk = self._read(self._runner.chunk_size)
        except BaseException:
            self.close()
            raise
        if chunk:
            return chunk
        self._finish()
        raise StopIteration

    def __enter__(self) -> "GitStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Terminate the process if it is still running and release its pipes."""
        if self._closed:
            return
        self._closed = True
        try:
            if self.process.poll() is None:
                self.process.kill()
            self.process.wait()
        finally:
            self._release()

    def _finish(self) -> None:
        # stdout hit EOF: collect stderr, reap and check the status
        self._closed = True
        try:
            stderr = self.process.stderr.read() if self.process.stderr else b""
            status = self.process.wait()
        finally:
            self._release()
        if status != 0:
            self._runner.raise_for_status(self.command, status, stderr, self._classify)

    def _release(self) -> None:
        self._unregister()
        for pipe in (self.process.stdout, self.process.stderr):
            if pipe is not None:
                pipe.close()
