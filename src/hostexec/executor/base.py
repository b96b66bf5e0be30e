from __future__ import annotations
from typing import IO, Mapping, Optional, Protocol


class Context(Protocol):
    """Cancellation signal; threading.Event satisfies it."""

    def is_set(self) -> bool: ...
    def wait(self, timeout: Optional[float] = None) -> bool: ...


class Cmd:
    def set_dir(self, path: str) -> None: ...
    def set_env(self, env: Mapping[str, str]) -> None: ...
    def set_stdin(self, stream: Optional[IO]) -> None: ...
    def set_stdout(self, stream: Optional[IO]) -> None: ...
    def set_stderr(self, stream: Optional[IO]) -> None: ...
    def start(self) -> None: ...
    def wait(self) -> None: ...
    def run(self) -> None: ...
    def output(self) -> bytes: ...
    def combined_output(self) -> bytes: ...
    def stop(self) -> None: ...


class Executor:
    def command(self, program: str, *args: str) -> Cmd: ...
    def command_context(self, ctx: Context, program: str, *args: str) -> Cmd: ...
