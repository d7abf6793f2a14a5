"""Tests for the compose document"""

from pathlib import Path

import yaml

from ethnode.compose import build_compose, render_compose, write_compose
from ethnode.config.deployment import DeploymentConfig


class TestRender:
    """Test rendering"""

    def test_default_matches_deployed_file(self, deployed_compose):
        """Default config renders byte-for-byte the existing compose file"""
        assert render_compose(DeploymentConfig()) == deployed_compose

    def test_render_is_stable(self):
        config = DeploymentConfig()
        assert render_compose(config) == render_compose(config)

    def test_rendered_text_parses_to_document(self):
        config = DeploymentConfig()
        assert yaml.safe_load(render_compose(config)) == build_compose(config)

    def test_custom_values_still_parse(self):
        """Values YAML would read as numbers get quoted"""
        config = DeploymentConfig()
        config.execution.p2p_port = 22
        config.consensus.min_sync_peers = 3

        text = render_compose(config)

        assert '- "22:22"' in text
        assert yaml.safe_load(text) == build_compose(config)


class TestDocument:
    """Test document structure"""

    def test_services(self):
        services = build_compose(DeploymentConfig())["services"]

        assert list(services) == ["geth", "prysm"]
        assert services["prysm"]["depends_on"] == ["geth"]
        for service in services.values():
            assert service["restart"] == "unless-stopped"
            assert "/root/ethereum/jwt.hex:/data/jwt.hex" in service["volumes"]
            assert service["logging"]["options"] == {"max-size": "10m", "max-file": "3"}

    def test_parameters_flow_into_commands(self):
        config = DeploymentConfig(root_dir="/srv/eth", network="holesky")
        config.consensus.checkpoint_sync_url = "https://checkpoint.example.org"
        config.execution.authrpc_port = 9551

        services = build_compose(config)["services"]
        geth, prysm = services["geth"]["command"], services["prysm"]["command"]

        assert geth[0] == "--holesky"
        assert "--authrpc.port=9551" in geth
        assert "--execution-endpoint=http://geth:9551" in prysm
        assert "--checkpoint-sync-url=https://checkpoint.example.org" in prysm
        assert services["geth"]["volumes"][0] == "/srv/eth/execution:/data"


class TestWrite:
    """Test writing the file"""

    def test_writes_only_when_changed(self, config):
        path = Path(config.compose_path)

        assert write_compose(config) is True
        assert write_compose(config) is False

        config.consensus.min_sync_peers = 10
        assert write_compose(config) is True
        assert "--min-sync-peers=10" in path.read_text()
