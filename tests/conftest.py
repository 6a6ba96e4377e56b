import subprocess
from pathlib import Path

import pytest

import fedora_fresh_install as ffi


class CommandRecorder:
    """Stand-in for run_command that records argv lists instead of running them.

    handlers maps a program name to a callable taking the argv list; its return
    value becomes stdout. fail_on holds argv prefixes that exit with status 1.
    """

    def __init__(self):
        self.calls = []
        self.handlers = {}
        self.fail_on = []

    def __call__(self, cmd, capture_output=False, check=True, timeout=None, input_text=None):
        cmd = list(cmd)
        self.calls.append(cmd)
        returncode = 0
        for prefix in self.fail_on:
            if tuple(cmd[: len(prefix)]) == tuple(prefix):
                returncode = 1
        stdout = ""
        if returncode == 0 and cmd[0] in self.handlers:
            stdout = self.handlers[cmd[0]](cmd) or ""
        if check and returncode:
            raise subprocess.CalledProcessError(returncode, cmd)
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    def programs(self):
        return [c[0] if c[0] != "sudo" else " ".join(c[:2]) for c in self.calls]

    def ran(self, program):
        """True if program was executed, directly or through sudo."""
        return any(c[0] == program or c[:2] == ["sudo", program] for c in self.calls)


@pytest.fixture
def commands(monkeypatch):
    recorder = CommandRecorder()
    monkeypatch.setattr(ffi, "run_command", recorder)
    monkeypatch.setattr(ffi, "command_exists", lambda cmd: True)
    monkeypatch.setattr(ffi.os, "geteuid", lambda: 1000)
    return recorder


@pytest.fixture
def make_config(tmp_path):
    def _make(**overrides):
        values = {
            "WORK_DIR": tmp_path,
            "FONT_DIR": tmp_path / "fonts",
            "LOG_FILE": tmp_path / "setup.log",
        }
        values.update(overrides)
        return ffi.Config(**values)

    return _make


@pytest.fixture
def never_confirm():
    def _confirm(question):
        raise AssertionError(f"unexpected prompt: {question}")

    return _confirm


def snapshot(root: Path):
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))
