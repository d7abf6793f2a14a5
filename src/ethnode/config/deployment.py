"""Deployment parameters for the Ethereum node"""

import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import PurePosixPath
from typing import Any, Dict, List

import yaml

NETWORKS = ("mainnet", "sepolia", "holesky", "hoodi")
SYNC_MODES = ("snap", "full")

DEFAULT_PACKAGES = [
    "curl",
    "iptables",
    "build-essential",
    "git",
    "wget",
    "lz4",
    "jq",
    "make",
    "gcc",
    "nano",
    "automake",
    "autoconf",
    "tmux",
    "htop",
    "nvme-cli",
    "libgbm1",
    "pkg-config",
    "libssl-dev",
    "libleveldb-dev",
    "tar",
    "clang",
    "bsdmainutils",
    "ncdu",
    "unzip",
]

_URL_RE = re.compile(r"^https?://[^/\s]+")
_SIZE_RE = re.compile(r"^[0-9]+[kmg]$")
_NAME_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")


class ConfigError(ValueError):
    """Invalid deployment configuration"""

    pass


@dataclass
class ExecutionClientConfig:
    image: str = "ethereum/client-go:stable"
    container_name: str = "geth"
    p2p_port: int = 30303
    http_port: int = 8545
    ws_port: int = 8546
    authrpc_port: int = 8551
    http_api: List[str] = field(default_factory=lambda: ["eth", "net", "web3"])
    sync_mode: str = "snap"


@dataclass
class ConsensusClientConfig:
    image: str = "gcr.io/prysmaticlabs/prysm/beacon-chain"
    container_name: str = "prysm"
    rpc_port: int = 4000
    gateway_port: int = 3500
    min_sync_peers: int = 7
    checkpoint_sync_url: str = "https://checkpoint-sync.sepolia.ethpandaops.io"
    genesis_beacon_api_url: str = "https://checkpoint-sync.sepolia.ethpandaops.io"


@dataclass
class LoggingConfig:
    driver: str = "json-file"
    max_size: str = "10m"
    max_file: int = 3


@dataclass
class FirewallConfig:
    ssh_port: int = 22
    # Open the firewall before `docker compose up` instead of after it.
    before_services: bool = False


@dataclass
class DeploymentConfig:
    """Everything the provisioning pipeline needs to know about the node"""

    root_dir: str = "/root/ethereum"
    network: str = "sepolia"
    execution: ExecutionClientConfig = field(default_factory=ExecutionClientConfig)
    consensus: ConsensusClientConfig = field(default_factory=ConsensusClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    firewall: FirewallConfig = field(default_factory=FirewallConfig)
    packages: List[str] = field(default_factory=lambda: list(DEFAULT_PACKAGES))

    @property
    def root(self) -> PurePosixPath:
        return PurePosixPath(self.root_dir)

    @property
    def execution_dir(self) -> PurePosixPath:
        return self.root / "execution"

    @property
    def consensus_dir(self) -> PurePosixPath:
        return self.root / "consensus"

    @property
    def jwt_path(self) -> PurePosixPath:
        return self.root / "jwt.hex"

    @property
    def compose_path(self) -> PurePosixPath:
        return self.root / "docker-compose.yml"

    def service_ports(self) -> List[int]:
        """Ports bound by the two containers, in compose order"""
        ex, cl = self.execution, self.consensus
        return [ex.p2p_port, ex.http_port, ex.ws_port, ex.authrpc_port, cl.rpc_port, cl.gateway_port]

    def firewall_rules(self) -> List[str]:
        """ufw rule specs opened for the node's public surface"""
        ex, cl = self.execution, self.consensus
        return [
            f"{ex.http_port}/tcp",
            f"{cl.gateway_port}/tcp",
            f"{ex.p2p_port}/tcp",
            f"{ex.p2p_port}/udp",
        ]

    def validate(self) -> "DeploymentConfig":
        """Raise ConfigError if any field is out of range"""
        if not self.root.is_absolute():
            raise ConfigError(f"root_dir must be an absolute path, got {self.root_dir!r}")

        if self.network not in NETWORKS:
            raise ConfigError(f"Unknown network {self.network!r} (expected one of {', '.join(NETWORKS)})")

        if self.execution.sync_mode not in SYNC_MODES:
            raise ConfigError(f"Unknown sync mode {self.execution.sync_mode!r}")

        _check_names("execution.http_api", self.execution.http_api)

        names = (self.execution.container_name, self.consensus.container_name)
        for name in names:
            if not isinstance(name, str) or not _NAME_RE.match(name) or yaml.safe_load(name) != name:
                raise ConfigError(f"Invalid container name: {name!r}")
        if names[0] == names[1]:
            raise ConfigError(f"Container names must differ, both are {names[0]!r}")

        ports = self.service_ports() + [self.firewall.ssh_port]
        for port in ports:
            if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
                raise ConfigError(f"Invalid port: {port!r}")
        service_ports = self.service_ports()
        if len(set(service_ports)) != len(service_ports):
            raise ConfigError(f"Service ports must be distinct: {service_ports}")

        if not isinstance(self.consensus.min_sync_peers, int) or self.consensus.min_sync_peers < 0:
            raise ConfigError("consensus.min_sync_peers must be a non-negative integer")

        for name in ("checkpoint_sync_url", "genesis_beacon_api_url"):
            url = getattr(self.consensus, name)
            if not isinstance(url, str) or not _URL_RE.match(url):
                raise ConfigError(f"consensus.{name} must be an http(s) URL, got {url!r}")

        if not _SIZE_RE.match(str(self.logging.max_size)):
            raise ConfigError(f"logging.max_size must look like '10m', got {self.logging.max_size!r}")
        if not isinstance(self.logging.max_file, int) or self.logging.max_file < 1:
            raise ConfigError("logging.max_file must be a positive integer")

        _check_names("packages", self.packages)

        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        """Build and validate a config from a (possibly partial) mapping"""
        data = dict(data or {})
        sections = {
            "execution": ExecutionClientConfig,
            "consensus": ConsensusClientConfig,
            "logging": LoggingConfig,
            "firewall": FirewallConfig,
        }

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in sections:
                kwargs[key] = _build_section(sections[key], key, value)
            elif key in {f.name for f in fields(cls)}:
                kwargs[key] = value
            else:
                raise ConfigError(f"Unknown configuration key: {key}")

        return cls(**kwargs).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _check_names(field_name: str, values: Any) -> None:
    if not isinstance(values, list) or not values:
        raise ConfigError(f"{field_name} must be a non-empty list")
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"{field_name} entries must be non-empty strings, got {value!r}")


def _build_section(section_cls, name: str, value: Any):
    if value is None:
        return section_cls()
    if not isinstance(value, dict):
        raise ConfigError(f"Section {name!r} must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(value) - known
    if unknown:
        raise ConfigError(f"Unknown key(s) in {name}: {', '.join(sorted(unknown))}")

    return section_cls(**value)
