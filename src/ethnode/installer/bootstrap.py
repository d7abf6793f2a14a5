"""Automated provisioning of a Geth + Prysm node."""

import os
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import List, Optional

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ethnode.api.client import check_endpoint
from ethnode.compose import write_compose
from ethnode.config.deployment import DeploymentConfig
from ethnode.installer import firewall
from ethnode.installer.ports import parse_listening
from ethnode.installer.runner import ProvisioningError, Shell, Step, StepFailedError, StepRunner
from ethnode.secret import generate_secret, is_valid_secret

DOCKER_CONFLICTS = ["docker.io", "docker-doc", "docker-compose", "podman-docker", "containerd", "runc"]
DOCKER_PREREQUISITES = ["ca-certificates", "curl", "gnupg"]
DOCKER_PACKAGES = ["docker-ce", "docker-ce-cli", "containerd.io", "docker-buildx-plugin", "docker-compose-plugin"]
DOCKER_GPG_URL = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_REPO_URL = "https://download.docker.com/linux/ubuntu"

KEYRING_DIR = Path("/etc/apt/keyrings")
DOCKER_KEYRING = KEYRING_DIR / "docker.gpg"
DOCKER_SOURCES = Path("/etc/apt/sources.list.d/docker.list")
OS_RELEASE = Path("/etc/os-release")
APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}

PORT_NAMES = ["Geth P2P", "Geth HTTP RPC", "Geth WebSocket", "Geth Engine API", "Prysm RPC", "Prysm HTTP API"]


@contextmanager
def stage(label: str):
    """Report a failure inside a multi-command step under its own label"""
    try:
        yield
    except ProvisioningError as e:
        raise StepFailedError(label, e.returncode) from e
    except OSError as e:
        raise StepFailedError(label, 1) from e


def read_codename(path: Optional[Path] = None) -> str:
    """VERSION_CODENAME from os-release"""
    path = Path(path or OS_RELEASE)
    for line in path.read_text().splitlines():
        key, _, value = line.partition("=")
        if key.strip() == "VERSION_CODENAME":
            return value.strip().strip('"')
    raise ProvisioningError(f"VERSION_CODENAME not found in {path}")


def apt(shell: Shell, *args: str, check: bool = True):
    """Run apt-get without prompts, streaming its output to the terminal"""
    return shell.run(["apt-get", *args], check=check, capture=False, env={**os.environ, **APT_ENV})


def apt_install(shell: Shell, packages: List[str]) -> None:
    apt(shell, "install", "-y", *packages)


# Step actions


def update_system(config: DeploymentConfig, shell: Shell) -> None:
    apt(shell, "update")
    apt(shell, "upgrade", "-y")


def install_dependencies(config: DeploymentConfig, shell: Shell) -> None:
    apt_install(shell, config.packages)


def setup_docker(config: DeploymentConfig, shell: Shell) -> None:
    if shell.succeeds(["docker", "compose", "version"]):
        shell.console.print("  [green]✓[/green] Docker with the compose plugin is already installed")
        with stage("Docker service"):
            shell.run(["systemctl", "enable", "--now", "docker"])
        return

    for package in DOCKER_CONFLICTS:
        apt(shell, "remove", "-y", package, check=False)

    with stage("Docker prerequisites"):
        apt(shell, "update")
        apt_install(shell, DOCKER_PREREQUISITES)

    with stage("Docker repository"):
        shell.run(["install", "-m", "0755", "-d", str(KEYRING_DIR)])
        key = shell.run(["curl", "-fsSL", DOCKER_GPG_URL], text=False)
        shell.run(["gpg", "--dearmor", "--yes", "-o", str(DOCKER_KEYRING)], input=key.stdout, text=False)
        shell.run(["chmod", "a+r", str(DOCKER_KEYRING)])
        arch = shell.run(["dpkg", "--print-architecture"]).stdout.strip() or "<arch>"
        codename = "<codename>" if shell.dry_run else read_codename()
        source = f"deb [arch={arch} signed-by={DOCKER_KEYRING}] {DOCKER_REPO_URL} {codename} stable\n"
        shell.write_file(DOCKER_SOURCES, source)

    with stage("Docker installation"):
        apt(shell, "update")
        apt_install(shell, DOCKER_PACKAGES)

    with stage("Docker test"):
        shell.run(["docker", "run", "hello-world"], capture=False)

    with stage("Docker service"):
        shell.run(["systemctl", "enable", "docker"])
        shell.run(["systemctl", "restart", "docker"])


def create_directories(config: DeploymentConfig, shell: Shell) -> None:
    shell.make_dirs(config.execution_dir, config.consensus_dir)


def create_secret(config: DeploymentConfig, shell: Shell) -> None:
    path = Path(config.jwt_path)
    if path.exists() and is_valid_secret(path.read_text()):
        shell.console.print(f"  [green]✓[/green] Keeping existing secret at {path}")
        return

    shell.write_file(path, generate_secret(), mode=0o600)


def write_compose_file(config: DeploymentConfig, shell: Shell, check_endpoints: bool = False) -> None:
    if check_endpoints:
        with stage("Checkpoint endpoint check"):
            urls = dict.fromkeys([config.consensus.checkpoint_sync_url, config.consensus.genesis_beacon_api_url])
            for url in urls:
                if not check_endpoint(url):
                    raise ProvisioningError(f"Endpoint not reachable: {url}")
                shell.console.print(f"  [green]✓[/green] {url}")

    if not write_compose(config, config.compose_path, write=shell.write_file):
        shell.console.print(f"  [green]✓[/green] {config.compose_path} is up to date")


def install_net_tools(config: DeploymentConfig, shell: Shell) -> None:
    apt(shell, "update")
    apt_install(shell, ["net-tools"])


def check_ports(config: DeploymentConfig, shell: Shell) -> None:
    result = shell.run(["netstat", "-tuln"])
    listening = parse_listening(result.stdout, config.service_ports())

    table = Table(show_header=True)
    table.add_column("Port", style="cyan")
    table.add_column("Service")
    table.add_column("Status")

    for name, port in zip(PORT_NAMES, config.service_ports()):
        status = "[yellow]in use[/yellow]" if listening[port] else "[green]free[/green]"
        table.add_row(str(port), name, status)

    shell.console.print(table)


def start_services(config: DeploymentConfig, shell: Shell) -> None:
    shell.run(["docker", "compose", "up", "-d"], cwd=Path(config.root))


def tail_logs(config: DeploymentConfig, shell: Shell, follow: bool = True) -> None:
    # Blocks until interrupted when following
    flags = "-fn" if follow else "-n"
    shell.run(["docker", "compose", "logs", flags, "100"], cwd=Path(config.root), capture=False)


def setup_firewall(config: DeploymentConfig, shell: Shell) -> None:
    status = firewall.firewall_status(shell)
    firewall.allow(shell, status, str(config.firewall.ssh_port))
    firewall.allow(shell, status, "ssh")
    firewall.enable(shell, status)


def allow_node_ports(config: DeploymentConfig, shell: Shell) -> None:
    status = firewall.firewall_status(shell)
    for rule in config.firewall_rules():
        firewall.allow(shell, status, rule, "in")
        firewall.allow(shell, status, rule, "out")


def print_guidance(config: DeploymentConfig, shell: Shell) -> None:
    ex, cl = config.execution, config.consensus
    payload = '{"jsonrpc":"2.0","method":"eth_syncing","params":[],"id":1}'

    lines = [
        "[bold]1. Check Geth sync status:[/bold]",
        f"   curl -X POST -H \"Content-Type: application/json\" --data '{payload}' http://localhost:{ex.http_port}",
        "",
        "[bold]2. Check Prysm sync status:[/bold]",
        f"   curl http://localhost:{cl.gateway_port}/eth/v1/node/syncing",
        "",
        "[bold]3. View container logs:[/bold]",
        f"   cd {config.root} && docker compose logs -fn 100",
        "",
        "[bold]4. Check running containers:[/bold]",
        "   docker ps",
        "",
        "[bold]5. Both sync states at once:[/bold]",
        "   ethnode status",
    ]
    body = "\n".join(line if line.startswith("[bold]") else escape(line) for line in lines)

    shell.console.print(Panel(body, title="Monitoring Commands", border_style="yellow"))
    shell.console.print("\n[green]Your Ethereum node is now running![/green]")


def build_steps(
    config: DeploymentConfig,
    shell: Shell,
    follow_logs: bool = True,
    check_endpoints: bool = False,
) -> List[Step]:
    """The provisioning pipeline in execution order"""

    def step(label, description, func, fatal=True, **kwargs):
        return Step(label, description, partial(func, config, shell, **kwargs), fatal=fatal)

    head = [
        step("System update", "Updating system packages...", update_system),
        step("Dependencies installation", "Installing dependencies...", install_dependencies),
        step("Docker installation", "Setting up Docker...", setup_docker),
        step("Directory creation", "Creating Ethereum directories...", create_directories),
        step("JWT generation", "Generating JWT secret...", create_secret),
        step(
            "docker-compose.yml creation",
            "Creating docker-compose.yml...",
            write_compose_file,
            check_endpoints=check_endpoints,
        ),
        step("net-tools installation", "Installing net-tools...", install_net_tools),
        step("Port check", "Checking ports...", check_ports, fatal=False),
    ]
    services = [
        step("Container startup", "Starting containers...", start_services),
        step("Log tail", "Viewing initial logs...", tail_logs, fatal=False, follow=follow_logs),
    ]
    firewall_steps = [
        step("Firewall basic setup", "Configuring firewall...", setup_firewall),
        step("Firewall Ethereum ports", "Allowing Ethereum ports...", allow_node_ports),
    ]
    done = Step("Monitoring guidance", "Setup complete!", partial(print_guidance, config, shell), fatal=False, style="green")

    if config.firewall.before_services:
        return head + firewall_steps + services + [done]
    return head + services + firewall_steps + [done]


def full_install(
    config: DeploymentConfig,
    shell: Optional[Shell] = None,
    follow_logs: bool = True,
    check_endpoints: bool = False,
) -> None:
    """Run the whole pipeline. Raises StepFailedError on the first fatal failure."""
    shell = shell or Shell()
    steps = build_steps(config, shell, follow_logs=follow_logs, check_endpoints=check_endpoints)
    StepRunner(shell.console).run(steps)
