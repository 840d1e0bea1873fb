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

from .chains.evm.addresses import parse_uint256
from .errors import ConfigurationError, InputError
from .models import MarketVersion, MonitorAddressEntry

logger = logging.getLogger(__name__)

DEFAULT_V3_MARKET_NAME = "cUSDCv3"
DEFAULT_ADDRESSES_FILE = "monitor_address.json"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MarketConfig:
    version: MarketVersion = MarketVersion.V2
    address: str = ""
    name: str | None = None


@dataclass(frozen=True)
class ChainConfig:
    rpc_url: str = ""
    rpc_timeout: int = 30
    chain_id: int = 1
    receipt_timeout: int = 300


@dataclass(frozen=True)
class MonitorConfig:
    poll_interval_secs: int = 60
    liquidity_threshold: int = 0


@dataclass(frozen=True)
class NotificationsConfig:
    enabled: bool = True
    webhook_url: str = ""
    timeout: int = 10


@dataclass(frozen=True)
class WalletConfig:
    private_key: str | None = None


@dataclass(frozen=True)
class AppConfig:
    market: MarketConfig = field(default_factory=MarketConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)


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


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a top-level mapping; an empty (null) section counts as ``{}``."""
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _int(raw: dict[str, Any], key: str, default: int, section: str) -> int:
    value = raw.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{section}.{key} must be an integer, got {value!r}"
        ) from None


def _bool(raw: dict[str, Any], key: str, default: bool, section: str) -> bool:
    # Env interpolation leaves strings such as "false" behind.
    value = raw.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ConfigurationError(f"{section}.{key} must be true or false, got {value!r}")


def _parse_version(raw: Any) -> MarketVersion:
    try:
        return MarketVersion(str(raw).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown market version '{raw}' (expected 'v2' or 'v3')"
        ) from None


def _build_market(raw: dict[str, Any]) -> MarketConfig:
    return MarketConfig(
        version=_parse_version(raw.get("version") or "v2"),
        address=str(raw.get("address", "") or ""),
        name=raw.get("name") or None,
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_url=str(raw.get("rpc_url", "") or ""),
        rpc_timeout=_int(raw, "rpc_timeout", 30, "chain"),
        chain_id=_int(raw, "chain_id", 1, "chain"),
        receipt_timeout=_int(raw, "receipt_timeout", 300, "chain"),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    threshold_raw = raw.get("liquidity_threshold")
    if threshold_raw is None or threshold_raw == "":
        raise ConfigurationError("monitor.liquidity_threshold is required")
    try:
        threshold = parse_uint256(str(threshold_raw), "liquidity threshold")
    except InputError as e:
        raise ConfigurationError(str(e)) from e

    return MonitorConfig(
        poll_interval_secs=_int(raw, "poll_interval_secs", 60, "monitor"),
        liquidity_threshold=threshold,
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    return NotificationsConfig(
        enabled=_bool(raw, "enabled", True, "notifications"),
        webhook_url=str(raw.get("webhook_url", "") or ""),
        timeout=_int(raw, "timeout", 10, "notifications"),
    )


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(private_key=raw.get("private_key") or None)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")
    raw = _interpolate_env(raw)

    cfg = AppConfig(
        market=_build_market(_section(raw, "market")),
        chain=_build_chain(_section(raw, "chain")),
        monitor=_build_monitor(_section(raw, "monitor")),
        notifications=_build_notifications(_section(raw, "notifications")),
        wallet=_build_wallet(_section(raw, "wallet")),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.market.address:
        raise ConfigurationError("market.address is required")

    if not cfg.chain.rpc_url:
        raise ConfigurationError("chain.rpc_url is required")

    if cfg.monitor.poll_interval_secs <= 0:
        raise ConfigurationError("monitor.poll_interval_secs must be positive")

    if cfg.notifications.enabled and not cfg.notifications.webhook_url:
        raise ConfigurationError(
            "notifications.webhook_url is required when notifications are enabled"
        )


def load_monitor_addresses(path: str | Path | None = None) -> tuple[MonitorAddressEntry, ...]:
    """Load the {name, address} list used by batch balance checks.

    The file may be YAML or JSON; both parse with ``yaml.safe_load``.
    """
    path = Path(path or DEFAULT_ADDRESSES_FILE)
    if not path.exists():
        raise FileNotFoundError(f"Address list not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain an 'addresses' mapping")

    entries: list[MonitorAddressEntry] = []
    for i, item in enumerate(raw.get("addresses", []) or []):
        item = item if isinstance(item, dict) else {}
        name = item.get("name")
        address = item.get("address")
        if not name or not address:
            raise ConfigurationError(
                f"Address entry #{i} in {path} needs both 'name' and 'address'"
            )
        entries.append(MonitorAddressEntry(name=str(name), address=str(address)))

    return tuple(entries)
