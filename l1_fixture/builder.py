"""
Fixture builder

Drives the node container, the funding transactions and the external
deployer through a fixed sequence and snapshots the result:

1. create the data directory (it must not exist yet)
2. remove any stale container under the reserved name
3. start the node and wait for its RPC endpoint
4. fund each recipient from the coinbase account
5. run the deployer, then append the block period to its env file
6. stop, commit and tag the container
7. hand the data directory back to the invoking user

The container is force-removed on every exit path, including
errors and interrupts raised while a step is blocking.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import docker

from .core.deployer import append_env_line, run_deployer
from .core.funding import fund_account
from .core.node_container import NodeContainer
from .core.node_probe import wait_for_rpc
from .core.ownership import fix_ownership
from .utils.config_manager import BLOCK_PERIOD_ENV, FixtureConfig
from .utils.exceptions import (
    ContainerError,
    DeploymentError,
    FundingError,
    PreconditionError,
)
from .utils.retry import Retry

LOG = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Artifacts of a successful build"""
    image_id: str
    image_tag: str
    env_file: Path
    data_dir: Path
    deploy_attempts: int
    funding_tx_hashes: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "image_id": self.image_id,
            "image_tag": self.image_tag,
            "env_file": str(self.env_file),
            "data_dir": str(self.data_dir),
            "deploy_attempts": self.deploy_attempts,
            "funding_tx_hashes": list(self.funding_tx_hashes),
        }


class FixtureBuilder:
    """Builds the L1 fixture image described by a FixtureConfig"""

    def __init__(
        self,
        config: FixtureConfig,
        docker_client: Optional[docker.DockerClient] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.config = config
        self.docker_client = docker_client
        self.sleep = sleep

    def check_preconditions(self) -> None:
        data_dir = self.config.data_dir
        if data_dir.exists():
            raise PreconditionError(
                f"Data directory {data_dir} already exists; remove it to rebuild the fixture",
                path=str(data_dir)
            )

    def build(self) -> BuildResult:
        """
        Run the whole build.

        Raises:
            PreconditionError: The data directory already exists (nothing was touched)
            NodeStartupError: The node RPC never became live
            FundingError / DeploymentError: Retries exhausted
            ContainerError: Any other container runtime failure
        """
        config = self.config
        self.check_preconditions()

        LOG.info(f"Creating data directory {config.data_dir}")
        config.data_dir.mkdir(parents=True)

        if config.env_file.exists():
            LOG.info(f"Removing env file from a previous run: {config.env_file}")
            config.env_file.unlink()

        with NodeContainer(config, client=self.docker_client) as node:
            node.remove_stale()
            node.start()

            wait_for_rpc(
                config.rpc_url,
                timeout=config.rpc_timeout,
                interval=config.rpc_poll_interval,
                sleep=self.sleep
            )

            tx_hashes = [
                self._fund(node, recipient) for recipient in config.recipients
            ]

            deploy_attempts = self._deploy()

            LOG.info(f"Recording block period in {config.env_file}")
            append_env_line(config.env_file, BLOCK_PERIOD_ENV, config.block_period)

            node.stop()
            image_id = node.commit()
            node.tag(image_id, config.image_tag)

        if config.fix_ownership:
            fix_ownership(config.data_dir)
        else:
            LOG.info(f"Skipping ownership fix-up of {config.data_dir}")

        result = BuildResult(
            image_id=image_id,
            image_tag=config.image_tag,
            env_file=config.env_file,
            data_dir=config.data_dir,
            deploy_attempts=deploy_attempts,
            funding_tx_hashes=tx_hashes,
        )
        LOG.info(f"Fixture image {config.image_tag} built ({image_id})")
        return result

    def _fund(self, node: NodeContainer, recipient: str) -> str:
        # Transactions can fail until block production settles after startup
        retry = Retry(
            max_retries=self.config.funding_retries,
            delay=self.config.block_period,
            retry_on=(FundingError, ContainerError),
            sleep=self.sleep,
            description=f"Funding {recipient}"
        )
        return retry.execute(
            fund_account, node, recipient, self.config.funding_amount_wei
        )

    def _deploy(self) -> int:
        """Run the deployer with retries, returning the number of attempts used"""
        retry = Retry(
            max_retries=self.config.deploy_retries,
            delay=self.config.deploy_retry_delay,
            retry_on=(DeploymentError,),
            sleep=self.sleep,
            description="Contract deployment"
        )
        retry.execute(
            run_deployer,
            self.config.deployer_command,
            self.config.rpc_url,
            self.config.env_file,
            cwd=self.config.working_dir
        )
        return retry.attempts
