"""Shared fixtures"""

import io
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from ethnode.config.deployment import DeploymentConfig
from ethnode.installer.runner import Shell

DATA_DIR = Path(__file__).parent / "data"


class FakeShell(Shell):
    """Shell that records commands instead of running them.

    File writes still happen, so point the config at a temporary root.
    """

    def __init__(self, **kwargs):
        super().__init__(console=Console(file=io.StringIO(), width=200), **kwargs)
        self.calls = []
        self.envs = []
        self.failures = {}
        self.outputs = {}

    def fail(self, *prefix, returncode=1):
        self.failures[tuple(prefix)] = returncode

    def output(self, *cmd, stdout=""):
        self.outputs[tuple(cmd)] = stdout

    def ran(self, *prefix):
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)

    @property
    def text(self):
        return self.console.file.getvalue()

    def envs_for(self, *prefix):
        return [env for call, env in self.envs if tuple(call[: len(prefix)]) == prefix]

    def _execute(self, cmd, cwd=None, capture=True, input=None, text=True, env=None):
        self.calls.append(list(cmd))
        self.envs.append((list(cmd), env))

        for prefix, code in self.failures.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                stderr = "boom" if text else b"boom"
                return subprocess.CompletedProcess(cmd, code, "" if text else b"", stderr)

        stdout = self.outputs.get(tuple(cmd), "")
        if not text:
            stdout = stdout.encode()
        return subprocess.CompletedProcess(cmd, 0, stdout, "" if text else b"")


@pytest.fixture
def config(tmp_path):
    """Default deployment rooted in a temporary directory"""
    return DeploymentConfig(root_dir=str(tmp_path / "ethereum"))


@pytest.fixture
def shell():
    return FakeShell()


@pytest.fixture
def dry_run_shell():
    return FakeShell(dry_run=True)


@pytest.fixture
def deployed_compose():
    """The compose file as deployed by hand before this tool existed"""
    return (DATA_DIR / "docker-compose.yml").read_text()
