"""
External contract deployer and the environment file it produces

The deployer binary is invoked as

    <command> --rpc-url <url> --out <env file>

and writes KEY=VALUE lines (contract addresses, chain config) to the env
file. The builder appends its own lines afterwards.
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..utils.exceptions import DeploymentError

LOG = logging.getLogger(__name__)


def deployer_invocation(command: List[str], rpc_url: str, env_file: Path) -> List[str]:
    return [*command, "--rpc-url", rpc_url, "--out", str(env_file)]


def run_deployer(
    command: List[str],
    rpc_url: str,
    env_file: Path,
    cwd: Optional[Path] = None
) -> None:
    """
    Run the deployer once against rpc_url.

    A relative command path resolves against cwd (default: the current
    directory), the root of the consuming project.

    Raises:
        DeploymentError: The binary is missing or exited non-zero
    """
    cmd = deployer_invocation(command, rpc_url, env_file)
    LOG.info(f"Deploying contracts: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    except OSError as e:
        raise DeploymentError(f"Could not run deployer {command[0]}: {e}")

    if result.stdout:
        LOG.debug(f"Deployer output:\n{result.stdout}")
    if result.returncode != 0:
        LOG.error(f"Deployer failed:\n{result.stderr}")
        raise DeploymentError(
            f"Deployer exited with status {result.returncode}",
            returncode=result.returncode,
            stderr=result.stderr
        )
    LOG.info(f"Deployment output written to {env_file}")


def append_env_line(path: Union[str, Path], key: str, value) -> None:
    """Append KEY=value to an env file, starting on a fresh line"""
    path = Path(path)
    prefix = ""
    if path.exists() and path.stat().st_size > 0:
        with open(path, 'rb') as f:
            f.seek(-1, 2)
            if f.read(1) != b"\n":
                prefix = "\n"
    with open(path, 'a') as f:
        f.write(f"{prefix}{key}={value}\n")


def read_env_file(path: Union[str, Path]) -> Dict[str, str]:
    """Parse KEY=VALUE lines, skipping blanks and comments; later keys win"""
    values: Dict[str, str] = {}
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            key, _, value = line.partition("=")
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]
            values[key.strip()] = value
    return values
