"""Sequential step runner and command execution for the installer."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

console = Console()


class ProvisioningError(RuntimeError):
    """A provisioning action could not be completed"""

    def __init__(self, message: str, returncode: int = 1):
        super().__init__(message)
        self.returncode = returncode


class CommandError(ProvisioningError):
    """An external command exited non-zero"""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = ""):
        super().__init__(f"Command failed: {' '.join(cmd)}", returncode)
        self.cmd = list(cmd)
        self.stderr = stderr


class StepFailedError(RuntimeError):
    """A fatal step failed; the pipeline stops here"""

    def __init__(self, label: str, returncode: int = 1):
        super().__init__(f"{label} failed")
        self.label = label
        self.returncode = returncode


class Shell:
    """Runs host commands and file writes, or only prints them in dry-run mode."""

    def __init__(self, dry_run: bool = False, verbose: bool = False, console: Console = console):
        self.dry_run = dry_run
        self.verbose = verbose
        self.console = console

    def run(
        self,
        cmd: List[str],
        cwd: Optional[Path] = None,
        check: bool = True,
        capture: bool = True,
        input: Any = None,
        text: bool = True,
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        """Run a command and return the result.

        With ``capture=False`` the command writes straight to the terminal.
        """
        self.console.print(f"[dim]Running: {escape(' '.join(cmd))}[/dim]")

        if self.dry_run:
            empty = "" if text else b""
            return subprocess.CompletedProcess(cmd, 0, empty, empty)

        result = self._execute(cmd, cwd=cwd, capture=capture, input=input, text=text, env=env)

        if self.verbose and capture and text and result.stdout:
            self.console.print(escape(result.stdout.rstrip()))

        if check and result.returncode != 0:
            self.console.print(f"[red]Command failed with code {result.returncode}[/red]")
            if capture and result.stderr:
                stderr = result.stderr if text else result.stderr.decode(errors="replace")
                self.console.print(f"[red]stderr: {escape(stderr.rstrip())}[/red]")
            raise CommandError(cmd, result.returncode, result.stderr if text else "")

        return result

    def inspect(self, cmd: List[str]) -> subprocess.CompletedProcess:
        """Run a read-only check. Executed even in dry-run mode."""
        if self.verbose:
            self.console.print(f"[dim]Checking: {escape(' '.join(cmd))}[/dim]")
        return self._execute(cmd, capture=True, text=True)

    def succeeds(self, cmd: List[str]) -> bool:
        return self.inspect(cmd).returncode == 0

    def write_file(self, path: Path, content: str, mode: Optional[int] = None) -> None:
        if self.dry_run:
            self.console.print(f"[dim]Would write: {path}[/dim]")
            return
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if mode is not None:
            path.chmod(mode)

    def make_dirs(self, *paths: Path) -> None:
        for path in paths:
            if self.dry_run:
                self.console.print(f"[dim]Would create: {path}[/dim]")
                continue
            Path(path).mkdir(parents=True, exist_ok=True)

    def _execute(
        self,
        cmd: List[str],
        cwd: Optional[Path] = None,
        capture: bool = True,
        input: Any = None,
        text: bool = True,
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                cmd, cwd=cwd, capture_output=capture, input=input, text=text, env=env, check=False
            )
        except FileNotFoundError:
            message = f"{cmd[0]}: command not found"
            return subprocess.CompletedProcess(cmd, 127, "" if text else b"", message if text else message.encode())


@dataclass
class Step:
    """A named pipeline step.

    ``label`` names the step in the failure message, ``description`` is the
    progress line. Non-fatal steps report problems and let the run continue.
    """

    label: str
    description: str
    action: Callable[[], Any]
    fatal: bool = True
    style: str = "yellow"


class StepRunner:
    """Run steps strictly in order, stopping at the first fatal failure.

    Nothing is retried and nothing already done is rolled back.
    """

    def __init__(self, console: Console = console):
        self.console = console

    def run(self, steps: List[Step]) -> None:
        total = len(steps)
        for index, step in enumerate(steps, start=1):
            self.console.print(f"[{step.style}]\\[{index}/{total}] {escape(step.description)}[/{step.style}]")

            if step.fatal:
                self._run_fatal(step)
            else:
                self._run_optional(step)

    def _run_fatal(self, step: Step) -> None:
        try:
            step.action()
        except StepFailedError as e:
            self._report(e.label)
            raise
        except ProvisioningError as e:
            self._report(step.label)
            raise StepFailedError(step.label, e.returncode) from e
        except OSError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]")
            self._report(step.label)
            raise StepFailedError(step.label, 1) from e

    def _run_optional(self, step: Step) -> None:
        try:
            step.action()
        except KeyboardInterrupt:
            self.console.print(f"[dim]Interrupted: {escape(step.label)}[/dim]")
        except (ProvisioningError, OSError) as e:
            self.console.print(f"[yellow]⚠ {escape(step.label)}: {escape(str(e))}[/yellow]")

    def _report(self, label: str) -> None:
        self.console.print(f"[red]Error: {escape(label)} failed[/red]")
