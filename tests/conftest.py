from __future__ import annotations
from pathlib import Path

import pytest
import structlog

from hostexec.executor.base import Cmd, Executor


class RecordedCmd(Cmd):
    def __init__(self, program, args, ctx=None):
        self.program = program
        self.args = tuple(args)
        self.ctx = ctx


class RecordingExecutor(Executor):
    def __init__(self):
        self.calls = []

    def command(self, program, *args):
        self.calls.append(("command", program, args))
        return RecordedCmd(program, args)

    def command_context(self, ctx, program, *args):
        self.calls.append(("command_context", program, args))
        return RecordedCmd(program, args, ctx)


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def root(tmp_path: Path) -> Path:
    r = tmp_path / "root"
    r.mkdir()
    return r


@pytest.fixture
def touch():
    def _touch(base: Path, rel: str) -> Path:
        p = base / rel.lstrip("/")
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("#!/bin/sh\n")
        return p
    return _touch


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
