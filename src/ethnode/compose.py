"""Docker Compose document for the execution + consensus client pair.

``build_compose`` returns the document as plain data and ``render_compose``
writes it out in a fixed hand-written layout (two-space indent, block lists,
a blank line between services, quoted log options). For the default
``DeploymentConfig`` the rendered text is byte-identical to the compose file
node operators have been running, so existing deployments see no diff.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml

from ethnode.config.deployment import DeploymentConfig

# Keys whose scalar values are always double-quoted in the rendered file.
QUOTED_KEYS = {"driver", "max-size", "max-file"}


def execution_command(config: DeploymentConfig) -> List[str]:
    ex = config.execution
    return [
        f"--{config.network}",
        "--http",
        f"--http.api={','.join(ex.http_api)}",
        "--http.addr=0.0.0.0",
        "--authrpc.addr=0.0.0.0",
        "--authrpc.vhosts=*",
        "--authrpc.jwtsecret=/data/jwt.hex",
        f"--authrpc.port={ex.authrpc_port}",
        f"--syncmode={ex.sync_mode}",
        "--datadir=/data",
    ]


def consensus_command(config: DeploymentConfig) -> List[str]:
    ex, cl = config.execution, config.consensus
    return [
        f"--{config.network}",
        "--accept-terms-of-use",
        "--datadir=/data",
        "--disable-monitoring",
        "--rpc-host=0.0.0.0",
        f"--execution-endpoint=http://{ex.container_name}:{ex.authrpc_port}",
        "--jwt-secret=/data/jwt.hex",
        f"--rpc-port={cl.rpc_port}",
        "--grpc-gateway-corsdomain=*",
        "--grpc-gateway-host=0.0.0.0",
        f"--grpc-gateway-port={cl.gateway_port}",
        f"--min-sync-peers={cl.min_sync_peers}",
        f"--checkpoint-sync-url={cl.checkpoint_sync_url}",
        f"--genesis-beacon-api-url={cl.genesis_beacon_api_url}",
    ]


def _logging_section(config: DeploymentConfig) -> Dict[str, Any]:
    return {
        "driver": config.logging.driver,
        "options": {
            "max-size": str(config.logging.max_size),
            "max-file": str(config.logging.max_file),
        },
    }


def build_compose(config: DeploymentConfig) -> Dict[str, Any]:
    """Return the compose document as a plain dict"""
    ex, cl = config.execution, config.consensus
    jwt_mount = f"{config.jwt_path}:/data/jwt.hex"

    execution_service = {
        "image": ex.image,
        "container_name": ex.container_name,
        "restart": "unless-stopped",
        "ports": [
            f"{ex.p2p_port}:{ex.p2p_port}",
            f"{ex.p2p_port}:{ex.p2p_port}/udp",
            f"{ex.http_port}:{ex.http_port}",
            f"{ex.ws_port}:{ex.ws_port}",
            f"{ex.authrpc_port}:{ex.authrpc_port}",
        ],
        "volumes": [f"{config.execution_dir}:/data", jwt_mount],
        "command": execution_command(config),
        "logging": _logging_section(config),
    }

    consensus_service = {
        "image": cl.image,
        "container_name": cl.container_name,
        "restart": "unless-stopped",
        "volumes": [f"{config.consensus_dir}:/data", jwt_mount],
        "depends_on": [ex.container_name],
        "ports": [
            f"{cl.rpc_port}:{cl.rpc_port}",
            f"{cl.gateway_port}:{cl.gateway_port}",
        ],
        "command": consensus_command(config),
        "logging": _logging_section(config),
    }

    return {
        "services": {
            ex.container_name: execution_service,
            cl.container_name: consensus_service,
        }
    }


def _scalar(value: Any, quoted: bool = False) -> str:
    text = str(value)
    if not quoted:
        try:
            if yaml.safe_load(text) == text:
                return text
        except yaml.YAMLError:
            pass
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _emit(node: Union[Dict[str, Any], List[Any]], indent: int, lines: List[str]) -> None:
    pad = "  " * indent
    if isinstance(node, list):
        for item in node:
            lines.append(f"{pad}- {_scalar(item)}")
        return

    for key, value in node.items():
        if isinstance(value, (dict, list)):
            lines.append(f"{pad}{key}:")
            _emit(value, indent + 1, lines)
        else:
            lines.append(f"{pad}{key}: {_scalar(value, quoted=key in QUOTED_KEYS)}")


def render_compose(config: DeploymentConfig) -> str:
    """Render the compose document as YAML text"""
    document = build_compose(config)
    lines = ["services:"]

    for index, (name, service) in enumerate(document["services"].items()):
        if index:
            lines.append("")
        lines.append(f"  {name}:")
        _emit(service, 2, lines)

    return "\n".join(lines) + "\n"


def write_compose(
    config: DeploymentConfig,
    path: Path = None,
    write: Optional[Callable[[Path, str], None]] = None,
) -> bool:
    """Write the compose file if its content changed. Returns True if written.

    ``write`` replaces the plain file write, e.g. with a dry-run aware one.
    """
    path = Path(path or config.compose_path)
    content = render_compose(config)

    if path.exists() and path.read_text() == content:
        return False

    (write or _write_text)(path, content)
    return True


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
