from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Tuple

# search order for commands given without a path
DEFAULT_SEARCH_PATH: Tuple[str, ...] = (
    "/usr/local/sbin",
    "/usr/local/bin",
    "/usr/sbin",
    "/usr/bin",
    "/sbin",
    "/bin",
)

ENV_HELPER = "/usr/bin/env"
CHROOT_BIN = "/usr/sbin/chroot"


@dataclass(frozen=True)
class WrapResult:
    program: str
    args: Tuple[str, ...]

    def __iter__(self) -> Iterator:
        # allows: program, args = wrapper.wrap(...)
        yield self.program
        yield self.args

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]
