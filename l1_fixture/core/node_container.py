"""
Node container lifecycle

Wraps the docker SDK for the single reserved-name container the fixture is
built in. The container is released on every exit path by using
NodeContainer as a context manager:

    with NodeContainer(config) as node:
        node.remove_stale()
        node.start()
        ...
        node.stop()
        image_id = node.commit()
        node.tag(image_id, config.image_tag)
    # container stopped and removed here, even after an exception
"""

import logging
from typing import List, Optional, Tuple

import docker
import requests

from ..utils.config_manager import FixtureConfig
from ..utils.exceptions import ContainerError, ErrorCodes

LOG = logging.getLogger(__name__)

# Paths inside the node container
NODE_DATA_DIR = "/data"
NODE_RPC_PORT = 8545
NODE_IPC_PATH = f"{NODE_DATA_DIR}/geth.ipc"

# Errors the runtime can surface; all are suppressed during cleanup
RUNTIME_ERRORS = (docker.errors.DockerException, requests.exceptions.RequestException)


def node_command(block_period: int) -> List[str]:
    """geth arguments for a dev-mode node producing a block every block_period seconds"""
    return [
        "--dev",
        f"--dev.period={block_period}",
        f"--datadir={NODE_DATA_DIR}",
        "--http",
        "--http.addr=0.0.0.0",
        f"--http.port={NODE_RPC_PORT}",
        "--http.api=eth,net,web3,debug,txpool",
        "--http.corsdomain=*",
        "--http.vhosts=*",
    ]


class NodeContainer:
    """
    The fixture's node container, identified by its reserved name.

    At most one container with that name exists at a time: remove_stale()
    clears leftovers from an earlier run before start() creates a new one.
    """

    def __init__(self, config: FixtureConfig, client: Optional[docker.DockerClient] = None):
        self.config = config
        self.name = config.container_name
        self._client = client
        self._container = None

    @property
    def client(self) -> docker.DockerClient:
        """Docker client, connected on first use"""
        if self._client is None:
            try:
                self._client = docker.from_env()
            except docker.errors.DockerException as e:
                raise ContainerError(
                    f"Container runtime unavailable: {e}",
                    container_name=self.name,
                    code=ErrorCodes.CONTAINER_RUNTIME_UNAVAILABLE
                )
        return self._client

    def __enter__(self) -> "NodeContainer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return None

    def remove_stale(self) -> None:
        """
        Force-remove any container left under the reserved name.

        Raises:
            ContainerError: The runtime could not be queried
        """
        try:
            stale = self.client.containers.get(self.name)
        except docker.errors.NotFound:
            return
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"Could not look up stale container {self.name}: {e}",
                container_name=self.name,
                code=ErrorCodes.CONTAINER_RUNTIME_UNAVAILABLE
            )
        LOG.info(f"Removing stale container {self.name}")
        try:
            stale.remove(force=True)
        except RUNTIME_ERRORS as e:
            # start() reports the name conflict if the container survived
            LOG.debug(f"Ignoring error removing stale container {self.name}: {e}")

    def start(self) -> None:
        """Launch the node detached with the data directory bind-mounted"""
        data_dir = self.config.data_dir
        LOG.info(
            f"Starting {self.config.node_image} as {self.name} "
            f"(block period {self.config.block_period}s, RPC port {self.config.rpc_port})"
        )
        try:
            self._container = self.client.containers.run(
                self.config.node_image,
                command=node_command(self.config.block_period),
                name=self.name,
                detach=True,
                ports={f"{NODE_RPC_PORT}/tcp": self.config.rpc_port},
                volumes={str(data_dir): {"bind": NODE_DATA_DIR, "mode": "rw"}},
            )
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"Failed to start node container: {e}",
                container_name=self.name,
                code=ErrorCodes.CONTAINER_START_FAILED
            )
        LOG.info(f"Node container started: {self._container.short_id}")

    def _require_container(self):
        if self._container is None:
            raise ContainerError(
                "Node container is not running",
                container_name=self.name,
                code=ErrorCodes.CONTAINER_EXEC_FAILED
            )
        return self._container

    def exec(self, cmd: List[str]) -> Tuple[int, str]:
        """Run cmd inside the container, returning (exit code, combined output)"""
        container = self._require_container()
        try:
            result = container.exec_run(cmd)
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"exec failed in {self.name}: {e}",
                container_name=self.name,
                code=ErrorCodes.CONTAINER_EXEC_FAILED
            )
        output = result.output.decode("utf-8", errors="replace") if result.output else ""
        return result.exit_code, output

    def stop(self) -> None:
        container = self._require_container()
        LOG.info(f"Stopping node container {self.name}")
        try:
            container.stop()
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"Failed to stop {self.name}: {e}",
                container_name=self.name,
                code=ErrorCodes.CONTAINER_STOP_FAILED
            )

    def commit(self) -> str:
        """Snapshot the (stopped) container into an image, returning its id"""
        container = self._require_container()
        try:
            image = container.commit()
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"Failed to commit {self.name}: {e}",
                container_name=self.name,
                code=ErrorCodes.IMAGE_COMMIT_FAILED
            )
        LOG.info(f"Committed container {self.name} to image {image.id}")
        return image.id

    def tag(self, image_id: str, tag: str) -> None:
        """Tag image_id, replacing whatever image held the tag before"""
        repository, _, version = tag.rpartition(":")
        if not repository or "/" in version:
            repository, version = tag, None
        try:
            image = self.client.images.get(image_id)
            if not image.tag(repository, tag=version):
                raise ContainerError(
                    f"Docker refused to tag {image_id} as {tag}",
                    container_name=self.name,
                    code=ErrorCodes.IMAGE_COMMIT_FAILED
                )
        except RUNTIME_ERRORS as e:
            raise ContainerError(
                f"Failed to tag {image_id} as {tag}: {e}",
                container_name=self.name,
                code=ErrorCodes.IMAGE_COMMIT_FAILED
            )
        LOG.info(f"Tagged {image_id} as {tag}")

    def cleanup(self) -> None:
        """Force-remove the reserved-name container; never raises"""
        self._container = None
        try:
            client = self.client
        except ContainerError as e:
            LOG.debug(f"Skipping cleanup of {self.name}: {e}")
            return
        try:
            container = client.containers.get(self.name)
        except docker.errors.NotFound:
            return
        except RUNTIME_ERRORS as e:
            LOG.debug(f"Skipping cleanup of {self.name}: {e}")
            return

        # remove(force=True) also kills a running container
        LOG.info(f"Removing container {self.name}")
        try:
            container.remove(force=True)
        except RUNTIME_ERRORS as e:
            LOG.debug(f"Ignoring error removing {self.name}: {e}")
