from __future__ import annotations
from typing import Optional, Sequence


class ConfigError(ValueError):
    """Invalid static configuration handed to a CommandWrapper."""


class ExitError(RuntimeError):
    """A spawned command exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], exit_status: int,
                 stdout: Optional[bytes] = None, stderr: Optional[bytes] = None):
        super().__init__(f"command {argv[0]!r} exited with status {exit_status}")
        self.argv = tuple(argv)
        self.exit_status = exit_status
        self.stdout = stdout
        self.stderr = stderr


class CommandCancelled(RuntimeError):
    """The context attached to a command was cancelled."""
