"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonitorConfig:
    sync_interval_minutes: int = 60
    max_concurrent_lookups: int = 8


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class BaseAssetConfig:
    symbol: str = ""
    address: str = ""
    decimals: int = 18
    price_feed: str = ""


@dataclass(frozen=True)
class InstanceConfig:
    instance_id: str = ""
    chain: str = ""
    proxy: str = ""
    debounce_seconds: float = 90.0
    start_block: int = 0
    log_chunk_size: int = 0
    base_asset: BaseAssetConfig = field(default_factory=BaseAssetConfig)


@dataclass(frozen=True)
class AppConfig:
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    chains: dict[str, ChainConfig] = field(default_factory=dict)
    instances: tuple[InstanceConfig, ...] = ()

    def get_instance(self, instance_id: str) -> InstanceConfig | None:
        for instance in self.instances:
            if instance.instance_id == instance_id:
                return instance
        return None


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _missing_env(value: Any) -> list[str]:
    """Names of ${VAR} references that are unset or empty, in order of appearance."""
    missing: list[str] = []
    if isinstance(value, str):
        for name in _ENV_VAR_RE.findall(value):
            if not os.environ.get(name) and name not in missing:
                missing.append(name)
    elif isinstance(value, dict):
        for v in value.values():
            missing.extend(n for n in _missing_env(v) if n not in missing)
    elif isinstance(value, list):
        for item in value:
            missing.extend(n for n in _missing_env(item) if n not in missing)
    return missing


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        sync_interval_minutes=int(raw.get("sync_interval_minutes", 60)),
        max_concurrent_lookups=int(raw.get("max_concurrent_lookups", 8)),
    )


def _build_server(raw: dict[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=str(raw.get("host", "0.0.0.0")),
        port=int(raw.get("port", 3000)),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    chains: dict[str, ChainConfig] = {}
    for name, cfg in raw.items():
        chains[name] = ChainConfig(
            rpc_endpoints=tuple(e for e in cfg.get("rpc_endpoints", []) if e),
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
        )
    return chains


def _build_base_asset(raw: dict[str, Any]) -> BaseAssetConfig:
    return BaseAssetConfig(
        symbol=raw.get("symbol", ""),
        address=raw.get("address", ""),
        decimals=int(raw.get("decimals", 18)),
        price_feed=raw.get("price_feed", ""),
    )


def _build_instances(raw: dict[str, Any]) -> tuple[InstanceConfig, ...]:
    instances: list[InstanceConfig] = []
    for instance_id, cfg in raw.items():
        instances.append(
            InstanceConfig(
                instance_id=str(instance_id),
                chain=cfg.get("chain", ""),
                proxy=cfg.get("proxy", ""),
                debounce_seconds=float(cfg.get("debounce_seconds", 90.0)),
                start_block=int(cfg.get("start_block", 0)),
                log_chunk_size=int(cfg.get("log_chunk_size", 0)),
                base_asset=_build_base_asset(cfg.get("base_asset", {})),
            )
        )
    return tuple(instances)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Every ``${VAR}`` referenced by the YAML must be set; the node endpoint
    URL is normally supplied this way.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).

    Raises:
        FileNotFoundError: the config file does not exist.
        ConfigError: a referenced environment variable is missing or the
            configuration is invalid.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    missing = _missing_env(raw)
    if missing:
        raise ConfigError(
            f"{', '.join(missing)} environment variable required. "
            "Get a JSON RPC URL for free at infura.io or alchemy.com."
        )

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        monitor=_build_monitor(raw.get("monitor", {})),
        server=_build_server(raw.get("server", {})),
        chains=_build_chains(raw.get("chains", {})),
        instances=_build_instances(raw.get("instances", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise ConfigError on invalid configuration."""
    if not cfg.instances:
        raise ConfigError("At least one instance must be configured")

    if cfg.monitor.max_concurrent_lookups < 1:
        raise ConfigError("max_concurrent_lookups must be at least 1")

    for instance in cfg.instances:
        name = instance.instance_id
        if not instance.proxy:
            raise ConfigError(f"Instance '{name}' has no proxy address")
        if instance.chain not in cfg.chains:
            raise ConfigError(
                f"Instance '{name}' references unknown chain '{instance.chain}'"
            )
        if not cfg.chains[instance.chain].rpc_endpoints:
            raise ConfigError(f"Chain '{instance.chain}' has no RPC endpoints")
        base = instance.base_asset
        if not (base.symbol and base.address and base.price_feed):
            raise ConfigError(
                f"Instance '{name}' base asset needs symbol, address and price_feed"
            )
        if instance.debounce_seconds < 0:
            raise ConfigError(f"Instance '{name}' has a negative debounce")
        if instance.log_chunk_size < 0:
            raise ConfigError(f"Instance '{name}' has a negative log_chunk_size")
