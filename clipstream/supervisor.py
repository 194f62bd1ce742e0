"""Transcode supervisor — runs ffmpeg and pipes its stdout to the response.

The supervisor owns one child process and one scratch file. ``prime()`` starts
the process and waits for the first chunk, which lets failures that happen
before any output surface as a normal error response. ``stream()`` then yields
the remaining output lazily, and ``cancel()`` is the single way to stop early:
it kills the process and releases the scratch file. Every terminal state
releases the scratch file; releasing twice is harmless.
"""

import logging
import subprocess
import threading
from enum import Enum
from typing import Iterator

from clipstream.errors import ProcessFailedError, SpawnError
from clipstream.scratch import ScratchFile

logger = logging.getLogger(__name__)


class ProcessState(str, Enum):
    CREATED = "created"
    SPAWNED = "spawned"
    STREAMING = "streaming"
    EXITED = "exited"
    SPAWN_FAILED = "spawn_failed"
    KILLED = "killed"


TERMINAL_STATES = frozenset(
    {ProcessState.EXITED, ProcessState.SPAWN_FAILED, ProcessState.KILLED}
)


class TranscodeSupervisor:
    def __init__(
        self,
        cmd: list[str],
        scratch: ScratchFile,
        chunk_size: int = 64 * 1024,
        stderr_limit: int = 4096,
        detail_chars: int = 300,
    ):
        self.cmd = cmd
        self.scratch = scratch
        self.chunk_size = chunk_size
        self.stderr_limit = stderr_limit
        self.detail_chars = detail_chars
        self.state = ProcessState.CREATED
        self.returncode: int | None = None
        self._proc: subprocess.Popen | None = None
        self._stderr = b""
        self._stderr_thread: threading.Thread | None = None

    @property
    def stderr_tail(self) -> str:
        return self._stderr.decode("utf-8", errors="replace")

    def start(self) -> None:
        if self.state is not ProcessState.CREATED:
            raise RuntimeError(f"Cannot start supervisor in state {self.state.value}")
        try:
            self._proc = subprocess.Popen(
                self.cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            self.state = ProcessState.SPAWN_FAILED
            self.scratch.release()
            logger.error("[%s] could not start %s: %s", self.scratch.owner, self.cmd[0], e)
            raise SpawnError(f"Failed to start {self.cmd[0]}", detail=str(e)) from e

        self.state = ProcessState.SPAWNED
        self._stderr_thread = threading.Thread(target=self._drain_stderr, daemon=True)
        self._stderr_thread.start()
        logger.info("[%s] spawned %s (pid %d)", self.scratch.owner, self.cmd[0], self._proc.pid)

    def _drain_stderr(self) -> None:
        # Keeps only the most recent bytes; ffmpeg stalls if stderr fills up
        for chunk in iter(lambda: self._proc.stderr.read(4096), b""):
            self._stderr = (self._stderr + chunk)[-self.stderr_limit:]

    def _read(self) -> bytes:
        return self._proc.stdout.read(self.chunk_size)

    def _close_pipes(self) -> None:
        if self._stderr_thread is not None:
            self._stderr_thread.join(timeout=5)
        for pipe in (self._proc.stdout, self._proc.stderr):
            if pipe is not None:
                pipe.close()

    def _reap(self) -> None:
        self.returncode = self._proc.wait()
        self._close_pipes()
        self.state = ProcessState.EXITED
        self.scratch.release()
        if self.returncode == 0:
            logger.info("[%s] %s finished", self.scratch.owner, self.cmd[0])
        else:
            logger.error(
                "[%s] %s exited %d: %s",
                self.scratch.owner, self.cmd[0], self.returncode, self.stderr_tail[-500:],
            )

    def prime(self) -> bytes:
        """Start the process and block until it writes output or exits.

        Raises ProcessFailedError if it exits non-zero before writing anything.
        """
        if self.state is ProcessState.CREATED:
            self.start()
        chunk = self._read()
        if chunk:
            return chunk
        self._reap()
        if self.returncode != 0:
            raise ProcessFailedError(
                f"{self.cmd[0]} failed",
                detail=self.stderr_tail[-self.detail_chars:] or None,
                returncode=self.returncode,
            )
        return b""

    def stream(self, first: bytes = b"") -> Iterator[bytes]:
        """Yield stdout chunks as they are produced. Consumable once.

        Closing the iterator early cancels the process.
        """
        try:
            if self.state in TERMINAL_STATES:
                return
            if self.state is ProcessState.CREATED:
                self.start()
            self.state = ProcessState.STREAMING
            if first:
                yield first
            while True:
                chunk = self._read()
                if not chunk:
                    break
                yield chunk
            self._reap()
        finally:
            self.cancel()

    def cancel(self) -> None:
        """Stop the process if it is still running and release scratch."""
        if self.state in TERMINAL_STATES:
            self.scratch.release()
            return
        if self._proc is None:
            self.state = ProcessState.KILLED
            self.scratch.release()
            return

        if self._proc.poll() is None:
            self._proc.kill()
            self.state = ProcessState.KILLED
            logger.info("[%s] client went away, killed %s", self.scratch.owner, self.cmd[0])
        else:
            self.state = ProcessState.EXITED
        self.returncode = self._proc.wait()
        self._close_pipes()
        self.scratch.release()
