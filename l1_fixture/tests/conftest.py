"""
Pytest configuration and fixtures for the L1 fixture tests.

Provides a FixtureConfig rooted in a temporary working directory, a mock
docker client standing in for the container runtime, and a generator for
fake deployer scripts that behave like the real binary.

Usage:
    def test_something(fixture_config, mock_docker):
        builder = FixtureBuilder(fixture_config, docker_client=mock_docker)
        ...
"""

import sys
import textwrap
from pathlib import Path
from unittest.mock import MagicMock, Mock

import docker
import pytest

from l1_fixture.utils.config_manager import FixtureConfig

TX_HASH = "0x" + "ab" * 32
IMAGE_ID = "sha256:" + "cd" * 32


@pytest.fixture
def fixture_config(tmp_path):
    """Config rooted in tmp_path with fast timings and no chown"""
    return FixtureConfig(
        working_dir=tmp_path,
        rpc_timeout=5.0,
        rpc_poll_interval=0.01,
        deploy_retry_delay=0.0,
        fix_ownership=False,
        deployer_command=["true"],
    )


@pytest.fixture
def mock_container():
    """Running node container whose console calls succeed"""
    container = MagicMock()
    container.short_id = "abc123"
    container.exec_run.return_value = Mock(
        exit_code=0, output=f'"{TX_HASH}"\n'.encode()
    )
    container.commit.return_value = Mock(id=IMAGE_ID)
    return container


@pytest.fixture
def mock_docker(mock_container):
    """Docker client with no stale container and a tag-able committed image"""
    client = MagicMock()
    client.containers.get.side_effect = docker.errors.NotFound("No such container")
    client.containers.run.return_value = mock_container
    image = Mock()
    image.tag.return_value = True
    client.images.get.return_value = image
    return client


@pytest.fixture
def make_deployer(tmp_path):
    """
    Factory for fake deployer commands.

    The script fails `fails` times before writing `lines` to the --out file.
    Every invocation is counted in <script>.count.
    """
    def _make(fails: int = 0, lines=("L1_CONTRACT_ADDRESS=0x5FbDB2315678afecb367f032d93F642f64180aa3",)):
        script = tmp_path / f"deployer_{fails}.py"
        script.write_text(textwrap.dedent(f"""
            import pathlib
            import sys

            args = sys.argv[1:]
            out = pathlib.Path(args[args.index("--out") + 1])
            counter = pathlib.Path(__file__).with_suffix(".count")
            calls = int(counter.read_text()) + 1 if counter.exists() else 1
            counter.write_text(str(calls))
            if calls <= {fails}:
                sys.stderr.write("provider not ready\\n")
                sys.exit(1)
            out.write_text({chr(10).join(lines)!r} + "\\n")
        """))
        return [sys.executable, str(script)]

    return _make


def deployer_calls(command) -> int:
    """Number of times a make_deployer command has run"""
    counter = Path(command[-1]).with_suffix(".count")
    return int(counter.read_text()) if counter.exists() else 0
