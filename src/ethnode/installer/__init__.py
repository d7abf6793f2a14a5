"""Installation orchestrator for ethnode."""

from .bootstrap import build_steps, full_install
from .runner import CommandError, ProvisioningError, Shell, Step, StepFailedError, StepRunner

__all__ = [
    "build_steps",
    "full_install",
    "CommandError",
    "ProvisioningError",
    "Shell",
    "Step",
    "StepFailedError",
    "StepRunner",
]
