"""
Treasury DAO Configuration

Values are resolved in three layers, later layers winning:
1. Built-in defaults (a local development deployment)
2. An optional YAML file (``DAO_CONFIG_FILE`` or an explicit path)
3. ``DAO_*`` environment variables

Amounts in whole units (token supply, dev account balance) are plain
numbers; the quorum is given in token base units, as the contract takes it.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from .units import parse_units

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


DEFAULT_QUORUM = parse_units(500_000) + 1


@dataclass
class DAOConfig:
    environment: str = "development"

    # Governance token
    token_name: str = "Treasury DAO Token"
    token_symbol: str = "TDAO"
    token_supply: int = 1_000_000

    # Governance
    quorum: int = DEFAULT_QUORUM

    # Local development chain
    dev_accounts: int = 20
    dev_account_balance: int = 10_000

    # Node API
    node_host: str = "127.0.0.1"
    node_port: int = 8080
    node_url: str = "http://127.0.0.1:8080"
    api_keys: List[str] = field(default_factory=list)

    # Dashboard
    dashboard_port: int = 8090

    # Logging / persistence
    log_level: str = "INFO"
    log_file: Optional[str] = None
    event_log_path: Optional[str] = None

    def validate(self) -> None:
        if self.quorum <= 0:
            raise ConfigurationError("quorum must be positive")
        if self.token_supply <= 0:
            raise ConfigurationError("token_supply must be positive")
        if self.dev_accounts < 1:
            raise ConfigurationError("dev_accounts must be at least 1")
        if self.dev_account_balance < 0:
            raise ConfigurationError("dev_account_balance cannot be negative")
        if not 0 < self.node_port < 65536 or not 0 < self.dashboard_port < 65536:
            raise ConfigurationError("ports must be between 1 and 65535")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")


_INT_FIELDS = {
    "token_supply",
    "quorum",
    "dev_accounts",
    "dev_account_balance",
    "node_port",
    "dashboard_port",
}


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in _INT_FIELDS:
        try:
            return int(str(value).replace("_", "").strip())
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if name == "api_keys":
        if isinstance(value, str):
            return [key.strip() for key in value.split(",") if key.strip()]
        return [str(key).strip() for key in value if str(key).strip()]
    return str(value)


def _from_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Optional[str] = None, env: Optional[Dict[str, str]] = None) -> DAOConfig:
    """
    Build a DAOConfig from defaults, an optional YAML file and the environment.

    Args:
        path: YAML file to read; falls back to ``DAO_CONFIG_FILE``
        env: Environment mapping (defaults to ``os.environ``)

    Raises:
        ConfigurationError: If a value is malformed or out of range
    """
    env = os.environ if env is None else env
    known = {f.name for f in fields(DAOConfig)}
    values: Dict[str, Any] = {}

    path = path or env.get("DAO_CONFIG_FILE", "").strip() or None
    if path:
        for key, value in _from_file(path).items():
            if key not in known:
                logger.warning(
                    "Ignoring unknown config key %s",
                    key,
                    extra={"event": "config.unknown_key", "key": key},
                )
                continue
            values[key] = _coerce(key, value)

    for name in known:
        raw = env.get(f"DAO_{name.upper()}")
        if raw is not None and raw.strip() != "":
            values[name] = _coerce(name, raw)

    config = DAOConfig(**values)
    if "node_url" not in values and ("node_host" in values or "node_port" in values):
        config.node_url = f"http://{config.node_host}:{config.node_port}"
    config.validate()
    return config
