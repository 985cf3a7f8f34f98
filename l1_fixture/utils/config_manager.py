"""
Configuration for the fixture builder

Every constant the build depends on lives in FixtureConfig. Values are
layered, lowest precedence first:

1. dataclass defaults
2. an optional YAML file (--config)
3. L1_FIXTURE_<FIELD> environment variables (parsed as YAML scalars/lists)
4. L1_BLOCK_PERIOD, the block period override downstream tooling sets
5. explicit overrides from the command line

Downstream consumers expect the default recipients to be funded, so the
addresses must not change without coordinating with them.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from web3 import Web3

from .exceptions import ConfigurationError, ErrorCodes

LOG = logging.getLogger(__name__)

ENV_PREFIX = "L1_FIXTURE_"
BLOCK_PERIOD_ENV = "L1_BLOCK_PERIOD"

# Well-known dev accounts 0 and 1 of the standard test mnemonic
DEFAULT_RECIPIENTS = [
    "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266",
    "0x70997970C51812dc3A010C7d01b50e0d17dc79C8",
]


@dataclass
class FixtureConfig:
    """Validated build configuration"""
    rpc_port: int = 8545
    block_period: int = 1
    image_tag: str = "l1-fixture:dev"
    container_name: str = "l1-fixture-build"
    node_image: str = "ethereum/client-go:v1.13.15"
    recipients: List[str] = field(default_factory=lambda: list(DEFAULT_RECIPIENTS))
    funding_amount_eth: int = 1000
    data_dir_name: str = ".l1-fixture-data"
    env_file_name: str = ".env.l1-fixture"
    deployer_command: List[str] = field(
        default_factory=lambda: ["target/release/deploy"]
    )
    funding_retries: int = 5
    deploy_retries: int = 5
    deploy_retry_delay: float = 1.0
    rpc_timeout: Optional[float] = 120.0
    rpc_poll_interval: float = 1.0
    fix_ownership: bool = True
    working_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        self.working_dir = Path(self.working_dir).absolute()
        if isinstance(self.deployer_command, str):
            self.deployer_command = self.deployer_command.split()

    @property
    def rpc_url(self) -> str:
        return f"http://localhost:{self.rpc_port}"

    @property
    def data_dir(self) -> Path:
        return self.working_dir / self.data_dir_name

    @property
    def env_file(self) -> Path:
        return self.working_dir / self.env_file_name

    @property
    def funding_amount_wei(self) -> int:
        return Web3.to_wei(self.funding_amount_eth, "ether")

    def validate(self) -> "FixtureConfig":
        """Raise ConfigurationError on the first invalid field"""
        if not 1 <= self.rpc_port <= 65535:
            raise ConfigurationError(
                f"RPC port {self.rpc_port} out of range 1-65535", field="rpc_port"
            )
        for name in ("block_period", "funding_retries", "deploy_retries"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be a positive integer", field=name)
        if self.rpc_timeout is not None and self.rpc_timeout <= 0:
            raise ConfigurationError("rpc_timeout must be positive", field="rpc_timeout")
        if self.rpc_poll_interval <= 0:
            raise ConfigurationError(
                "rpc_poll_interval must be positive", field="rpc_poll_interval"
            )
        if self.funding_amount_eth <= 0:
            raise ConfigurationError(
                "funding_amount_eth must be positive", field="funding_amount_eth"
            )
        if not self.recipients:
            raise ConfigurationError("At least one recipient is required", field="recipients")
        for address in self.recipients:
            if not Web3.is_address(address):
                raise ConfigurationError(
                    f"Invalid recipient address: {address}", field="recipients"
                )
        if not self.deployer_command:
            raise ConfigurationError(
                "deployer_command must not be empty", field="deployer_command"
            )
        return self


_FIELD_NAMES = {f.name for f in dataclasses.fields(FixtureConfig)}
_INT_FIELDS = {"rpc_port", "block_period", "funding_amount_eth",
               "funding_retries", "deploy_retries"}
_FLOAT_FIELDS = {"deploy_retry_delay", "rpc_poll_interval"}
_SCALAR_FIELDS = _INT_FIELDS | _FLOAT_FIELDS | {"rpc_timeout", "fix_ownership"}


def _coerce(name: str, value: Any, source: str) -> Any:
    """Convert a raw YAML/env value to the type FixtureConfig expects"""
    try:
        if name in _INT_FIELDS:
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise ValueError(value)
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
        if name == "rpc_timeout":
            return None if value is None else float(value)
        if name == "fix_ownership":
            if not isinstance(value, bool):
                raise ValueError(value)
            return value
        if name in ("recipients", "deployer_command"):
            if isinstance(value, str):
                return value.split()
            if not isinstance(value, list):
                raise ValueError(value)
            return [str(v) for v in value]
        if name == "working_dir":
            return Path(value)
        return str(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid value for {name} from {source}: {value!r}",
            config_file=source if source != "environment" else None,
            field=name
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            config_file=str(path),
            code=ErrorCodes.CONFIG_FILE_NOT_FOUND
        )
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file {path}: {e}",
            config_file=str(path)
        )
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping",
            config_file=str(path)
        )
    return data


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for key, raw in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name not in _FIELD_NAMES:
            LOG.warning(f"Ignoring unknown configuration variable {key}")
            continue
        if name not in _SCALAR_FIELDS:
            # YAML would read "0x..." addresses as integers
            overrides[name] = raw
            continue
        try:
            overrides[name] = yaml.safe_load(raw)
        except yaml.YAMLError:
            overrides[name] = raw

    period = env.get(BLOCK_PERIOD_ENV)
    if period is not None and period != "":
        overrides["block_period"] = period
    return overrides


def load_config(
    config_file: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **overrides
) -> FixtureConfig:
    """
    Build a validated FixtureConfig.

    Args:
        config_file: Optional YAML file with FixtureConfig field names as keys
        env: Environment mapping (defaults to os.environ)
        **overrides: Highest precedence values, None entries are ignored

    Raises:
        ConfigurationError: Unknown keys, bad values or unreadable file
    """
    env = os.environ if env is None else env
    values: Dict[str, Any] = {}

    if config_file:
        path = Path(config_file)
        for name, value in _load_yaml(path).items():
            if name not in _FIELD_NAMES:
                raise ConfigurationError(
                    f"Unknown configuration key '{name}'",
                    config_file=str(path),
                    field=name
                )
            values[name] = _coerce(name, value, str(path))

    for name, value in _env_overrides(env).items():
        values[name] = _coerce(name, value, "environment")

    for name, value in overrides.items():
        if value is None:
            continue
        if name not in _FIELD_NAMES:
            raise ConfigurationError(f"Unknown configuration key '{name}'", field=name)
        values[name] = _coerce(name, value, "command line")

    config = FixtureConfig(**values).validate()
    LOG.debug(f"Loaded configuration: {config}")
    return config
