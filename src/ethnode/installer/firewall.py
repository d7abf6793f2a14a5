"""Idempotent ufw rule management"""

from dataclasses import dataclass, field
from typing import Set, Tuple

from ethnode.installer.runner import Shell

# ufw service names as they appear in `ufw status`
RULE_ALIASES = {"ssh": "22/tcp"}


@dataclass
class FirewallStatus:
    active: bool = False
    # (rule, direction) pairs, direction is "in" or "out"
    rules: Set[Tuple[str, str]] = field(default_factory=set)

    def has_rule(self, rule: str, direction: str = "in") -> bool:
        rule = RULE_ALIASES.get(rule, rule)
        if (rule, direction) in self.rules:
            return True
        # A bare port rule ("22") covers both protocols.
        port = rule.split("/", 1)[0]
        return (port, direction) in self.rules


def parse_status(output: str) -> FirewallStatus:
    """Parse the output of ``ufw status``"""
    status = FirewallStatus()

    for line in output.splitlines():
        line = line.strip()
        if line.lower().startswith("status:"):
            status.active = line.split(":", 1)[1].strip().lower() == "active"
            continue

        if "ALLOW" not in line or line.startswith("To "):
            continue

        target, _, rest = line.partition("ALLOW")
        target = target.replace("(v6)", "").strip()
        direction = "out" if rest.strip().startswith("OUT") else "in"
        if target:
            status.rules.add((target, direction))

    return status


def firewall_status(shell: Shell) -> FirewallStatus:
    result = shell.inspect(["ufw", "status"])
    if result.returncode != 0:
        return FirewallStatus()
    return parse_status(result.stdout)


def allow(shell: Shell, status: FirewallStatus, rule: str, direction: str = "in") -> bool:
    """Add an allow rule unless present. Returns True if a rule was added."""
    if status.has_rule(rule, direction):
        shell.console.print(f"  [dim]✓ {rule} ({direction}) already allowed[/dim]")
        return False

    cmd = ["ufw", "allow"]
    if direction == "out":
        cmd.append("out")
    shell.run(cmd + [rule])
    status.rules.add((RULE_ALIASES.get(rule, rule), direction))
    return True


def enable(shell: Shell, status: FirewallStatus) -> bool:
    if status.active:
        shell.console.print("  [dim]✓ firewall already active[/dim]")
        return False

    # --force skips the interactive "may disrupt existing ssh connections" prompt
    shell.run(["ufw", "--force", "enable"])
    status.active = True
    return True
