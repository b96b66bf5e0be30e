# src/hostexec/executor/hostexec.py
from __future__ import annotations
import os
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple

import structlog

from .base import Cmd, Context, Executor
from .local import LocalExecutor
from ..core.errors import ConfigError
from ..core.models import CHROOT_BIN, DEFAULT_SEARCH_PATH, ENV_HELPER, WrapResult

log = structlog.get_logger(__name__)

Argv = Tuple[str, Tuple[str, ...]]


class CommandWrapper(Executor):
    """
    Rewrites commands so they run inside a chroot with a fixed PATH.

    Pipeline, in this order:
      - resolve_command: logical name -> real command (command_map)
      - normalize_environment: `/usr/bin/env -i PATH=...` or, when the root has
        no env, the first match in search_path
      - apply_chroot: `/usr/sbin/chroot <root> ...`

    The chroot binary is addressed from the host, everything behind it from
    inside the root, which is why chroot wrapping comes last.
    """

    def __init__(
        self,
        command_map: Optional[Mapping[str, str]] = None,
        chroot_dir: str | os.PathLike | None = "",
        *,
        executor: Optional[Executor] = None,
        search_path: Sequence[str] = DEFAULT_SEARCH_PATH,
    ):
        chroot_dir = os.fspath(chroot_dir) if chroot_dir else ""
        if chroot_dir and not os.path.isdir(chroot_dir):
            raise ConfigError(f"chroot path missing or not a directory: {chroot_dir}")

        self.command_map: Mapping[str, str] = MappingProxyType(dict(command_map or {}))
        self.chroot_dir: str = chroot_dir
        self.search_path: Tuple[str, ...] = tuple(search_path)
        self.executor: Executor = executor if executor is not None else LocalExecutor()

        log.debug("hostexec.configured", chroot_dir=self.chroot_dir or None,
                  mapped=sorted(self.command_map), search_path=list(self.search_path))

    @classmethod
    def from_settings(cls, settings, executor: Optional[Executor] = None) -> "CommandWrapper":
        return cls(settings.command_map, settings.chroot_dir,
                   executor=executor, search_path=settings.search_path)

    # ---------- pipeline stages ----------

    def resolve_command(self, name: str, args: Tuple[str, ...]) -> Argv:
        real = self.command_map.get(name)
        if not real:
            return name, args
        return real, args

    def _in_root(self, path: str) -> str:
        # plain concatenation: the configured root is kept verbatim
        return self.chroot_dir + path if self.chroot_dir else path

    def _env_helper_present(self) -> bool:
        try:
            os.stat(self._in_root(ENV_HELPER))
        except FileNotFoundError:
            return False
        except OSError:
            # present but not stat-able from the host (EACCES...): env may still run inside the root
            return True
        return True

    def normalize_environment(self, name: str, args: Tuple[str, ...]) -> Argv:
        if "/" in name:
            return name, args

        if self._env_helper_present():
            path_var = "PATH=" + ":".join(self.search_path)
            return ENV_HELPER, ("-i", path_var, name, *args)

        # minimal roots (Talos, distroless...) ship without env: look the command up ourselves
        log.debug("hostexec.env_helper_missing", env=self._in_root(ENV_HELPER))
        for directory in self.search_path:
            candidate = directory + "/" + name
            if os.path.isfile(self._in_root(candidate)):
                return candidate, args

        # the chrooted process may still see what the host could not
        log.debug("hostexec.unresolved", command=name, chroot_dir=self.chroot_dir or None)
        return name, args

    def apply_chroot(self, name: str, args: Tuple[str, ...]) -> Argv:
        if not self.chroot_dir:
            return name, args
        return CHROOT_BIN, (self.chroot_dir, name, *args)

    def wrap(self, name: str, args: Iterable[str] = ()) -> WrapResult:
        args = tuple(args)
        program, final = self.resolve_command(name, args)
        program, final = self.normalize_environment(program, final)
        program, final = self.apply_chroot(program, final)
        log.debug("hostexec.wrapped", requested=[name, *args], argv=[program, *final])
        return WrapResult(program, final)

    # ---------- execution ----------

    def command(self, name: str, *args: str) -> Cmd:
        program, final = self.wrap(name, args)
        return self.executor.command(program, *final)

    def command_context(self, ctx: Context, name: str, *args: str) -> Cmd:
        program, final = self.wrap(name, args)
        return self.executor.command_context(ctx, program, *final)
