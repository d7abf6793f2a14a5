"""Tests for the step runner and shell"""

import io
import sys

import pytest
from rich.console import Console

from ethnode.installer.runner import CommandError, Shell, Step, StepFailedError, StepRunner


@pytest.fixture
def runner():
    return StepRunner(Console(file=io.StringIO(), width=200))


def output(runner):
    return runner.console.file.getvalue()


class TestStepRunner:
    """Test ordering and failure handling"""

    def test_runs_in_order(self, runner):
        seen = []
        steps = [Step(str(i), f"step {i}", lambda i=i: seen.append(i)) for i in range(3)]

        runner.run(steps)

        assert seen == [0, 1, 2]
        assert "[1/3] step 0" in output(runner)
        assert "[3/3] step 2" in output(runner)

    def test_fatal_failure_stops_pipeline(self, runner):
        seen = []

        def broken():
            raise CommandError(["apt-get", "install"], 100)

        steps = [
            Step("First", "first", lambda: seen.append("first")),
            Step("Dependencies installation", "deps", broken),
            Step("Last", "last", lambda: seen.append("last")),
        ]

        with pytest.raises(StepFailedError) as exc:
            runner.run(steps)

        assert seen == ["first"]
        assert exc.value.label == "Dependencies installation"
        assert exc.value.returncode == 100
        assert "Error: Dependencies installation failed" in output(runner)

    def test_sub_stage_label_is_reported(self, runner):
        def broken():
            raise StepFailedError("Docker test", 125)

        with pytest.raises(StepFailedError) as exc:
            runner.run([Step("Docker installation", "docker", broken)])

        assert exc.value.label == "Docker test"
        assert "Error: Docker test failed" in output(runner)

    def test_os_error_fails_step(self, runner):
        def broken():
            raise PermissionError("denied")

        with pytest.raises(StepFailedError) as exc:
            runner.run([Step("Directory creation", "dirs", broken)])

        assert exc.value.returncode == 1

    def test_optional_failure_continues(self, runner):
        seen = []

        def broken():
            raise CommandError(["netstat"], 127)

        runner.run([Step("Port check", "ports", broken, fatal=False), Step("Next", "next", lambda: seen.append(1))])

        assert seen == [1]
        assert "Port check" in output(runner)

    def test_interrupt_ends_optional_step_only(self, runner):
        seen = []

        def follow():
            raise KeyboardInterrupt

        runner.run([Step("Log tail", "logs", follow, fatal=False), Step("Next", "next", lambda: seen.append(1))])

        assert seen == [1]

    def test_interrupt_in_fatal_step_propagates(self, runner):
        def interrupted():
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            runner.run([Step("Container startup", "up", interrupted)])


class TestShell:
    """Test command execution"""

    def make_shell(self, **kwargs):
        return Shell(console=Console(file=io.StringIO(), width=200), **kwargs)

    def test_success(self):
        result = self.make_shell().run([sys.executable, "-c", "print('hi')"])
        assert result.returncode == 0
        assert result.stdout.strip() == "hi"

    def test_failure_raises(self):
        shell = self.make_shell()
        with pytest.raises(CommandError) as exc:
            shell.run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert exc.value.returncode == 3

    def test_failure_ignored_without_check(self):
        result = self.make_shell().run([sys.executable, "-c", "import sys; sys.exit(3)"], check=False)
        assert result.returncode == 3

    def test_environment_passed(self):
        env = {"ETHNODE_TEST_VALUE": "noninteractive"}
        script = "import os; print(os.environ['ETHNODE_TEST_VALUE'])"

        result = self.make_shell().run([sys.executable, "-c", script], env=env)

        assert result.stdout.strip() == "noninteractive"

    def test_missing_executable(self):
        with pytest.raises(CommandError) as exc:
            self.make_shell().run(["ethnode-no-such-binary"])
        assert exc.value.returncode == 127

    def test_dry_run_executes_nothing(self, tmp_path):
        shell = self.make_shell(dry_run=True)

        result = shell.run(["ethnode-no-such-binary"])
        shell.write_file(tmp_path / "file.txt", "data")
        shell.make_dirs(tmp_path / "dir")

        assert result.returncode == 0
        assert not (tmp_path / "file.txt").exists()
        assert not (tmp_path / "dir").exists()
        assert "Running: ethnode-no-such-binary" in shell.console.file.getvalue()

    def test_write_file_mode(self, tmp_path):
        path = tmp_path / "sub" / "secret"
        self.make_shell().write_file(path, "x", mode=0o600)

        assert path.read_text() == "x"
        assert path.stat().st_mode & 0o777 == 0o600
