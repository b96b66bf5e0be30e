# src/hostexec/executor/local.py
from __future__ import annotations
import os, signal, subprocess, threading
from typing import IO, Iterable, Mapping, Optional

import structlog

from .base import Cmd, Context, Executor
from ..core.errors import CommandCancelled, ExitError

log = structlog.get_logger(__name__)

_POLL_INTERVAL_S = 0.05
_STOP_GRACE_S = 10


class LocalCmd(Cmd):
    """
    A command on the local host, backed by subprocess.Popen.

    The child gets its own session so that stop() and cancellation reach
    everything it forks. With a context attached, a watcher thread kills the
    child as soon as the context is set.
    """

    def __init__(self, program: str, args: Iterable[str], ctx: Optional[Context] = None):
        self.program = program
        self.args = tuple(args)
        self._ctx = ctx

        self._dir: Optional[str] = None
        self._env: Optional[dict[str, str]] = None
        self._stdin = None
        self._stdout = None
        self._stderr = None

        self._proc: subprocess.Popen | None = None
        self._watcher: threading.Thread | None = None
        self._cancelled = False

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    # ------------ setup ------------

    def set_dir(self, path: str) -> None:
        self._dir = os.fspath(path)

    def set_env(self, env: Mapping[str, str]) -> None:
        self._env = {str(k): str(v) for k, v in env.items()}

    def set_stdin(self, stream: Optional[IO]) -> None:
        self._stdin = stream

    def set_stdout(self, stream: Optional[IO]) -> None:
        self._stdout = stream

    def set_stderr(self, stream: Optional[IO]) -> None:
        self._stderr = stream

    # ------------ lifecycle ------------

    def start(self) -> None:
        if self._proc is not None:
            raise RuntimeError("command already started")
        if self._ctx is not None and self._ctx.is_set():
            raise CommandCancelled(f"context cancelled before starting {self.program!r}")

        self._proc = subprocess.Popen(
            self.argv,
            cwd=self._dir,
            env=self._env,
            stdin=self._stdin,
            stdout=self._stdout,
            stderr=self._stderr,
            start_new_session=True,
        )

        if self._ctx is not None:
            self._watcher = threading.Thread(
                target=self._watch, name=f"hostexec-watch-{self._proc.pid}", daemon=True)
            self._watcher.start()

    def _watch(self) -> None:
        proc, ctx = self._proc, self._ctx
        while proc.poll() is None:
            if ctx.wait(_POLL_INTERVAL_S):
                if proc.poll() is None:
                    self._cancelled = True
                    log.info("hostexec.cancelled", program=self.program, pid=proc.pid)
                    self._signal(signal.SIGKILL)
                return

    def _signal(self, sig: int) -> None:
        try:
            os.killpg(self._proc.pid, sig)
        except ProcessLookupError:
            pass

    def _finish(self, stdout: Optional[bytes] = None, stderr: Optional[bytes] = None) -> None:
        if self._watcher is not None:
            self._watcher.join()
        rc = self._proc.returncode
        # the child may have exited on its own while the watcher was killing it
        if self._cancelled and rc == -signal.SIGKILL:
            raise CommandCancelled(f"context cancelled while running {self.program!r}")
        if rc != 0:
            raise ExitError(self.argv, rc, stdout, stderr)

    def wait(self) -> None:
        if self._proc is None:
            raise RuntimeError("command not started")
        self._proc.wait()
        self._finish()

    def run(self) -> None:
        self.start()
        self.wait()

    def output(self) -> bytes:
        if self._stdout is not None:
            raise RuntimeError("stdout already set")
        self._stdout = subprocess.PIPE
        # keep stderr for the ExitError when the caller did not redirect it
        if self._stderr is None:
            self._stderr = subprocess.PIPE
        self.start()
        out, err = self._proc.communicate()
        self._finish(out, err)
        return out

    def combined_output(self) -> bytes:
        if self._stdout is not None or self._stderr is not None:
            raise RuntimeError("stdout or stderr already set")
        self._stdout = subprocess.PIPE
        self._stderr = subprocess.STDOUT
        self.start()
        out, _ = self._proc.communicate()
        self._finish(out)
        return out

    def stop(self) -> None:
        """SIGTERM the process group, SIGKILL it if still alive after a grace period."""
        if self._proc is None or self._proc.poll() is not None:
            return
        self._signal(signal.SIGTERM)
        try:
            self._proc.wait(timeout=_STOP_GRACE_S)
        except subprocess.TimeoutExpired:
            self._signal(signal.SIGKILL)
            self._proc.wait()


class LocalExecutor(Executor):
    def command(self, program: str, *args: str) -> LocalCmd:
        return LocalCmd(program, args)

    def command_context(self, ctx: Context, program: str, *args: str) -> LocalCmd:
        if ctx is None:
            raise ValueError("command_context requires a context")
        return LocalCmd(program, args, ctx)
