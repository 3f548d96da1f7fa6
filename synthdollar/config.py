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

logger = logging.getLogger(__name__)

DEFAULT_STALENESS_TIMEOUT = 3 * 60 * 60

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollateralConfig:
    token: str = ""
    price_feed: str = ""


@dataclass(frozen=True)
class EngineConfig:
    address: str = "synthdollar-engine"
    collateral: tuple[CollateralConfig, ...] = ()


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OracleConfig:
    staleness_timeout_seconds: int = DEFAULT_STALENESS_TIMEOUT
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)

    @property
    def collateral_tokens(self) -> tuple[str, ...]:
        return tuple(c.token for c in self.engine.collateral)

    @property
    def price_feeds(self) -> tuple[str, ...]:
        return tuple(c.price_feed for c in self.engine.collateral)


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


def _build_collateral(raw: list[dict[str, Any]]) -> tuple[CollateralConfig, ...]:
    collateral: list[CollateralConfig] = []
    for c in raw:
        collateral.append(
            CollateralConfig(
                token=str(c.get("token", "")),
                price_feed=str(c.get("price_feed", "")),
            )
        )
    return tuple(collateral)


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        address=raw.get("address", EngineConfig.address),
        collateral=_build_collateral(raw.get("collateral", [])),
    )


def _build_oracle(raw: dict[str, Any]) -> OracleConfig:
    pyth_raw = raw.get("pyth", {})
    return OracleConfig(
        staleness_timeout_seconds=int(
            raw.get("staleness_timeout_seconds", DEFAULT_STALENESS_TIMEOUT)
        ),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url") or PythConfig.hermes_url,
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


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

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        engine=_build_engine(raw.get("engine", {})),
        oracle=_build_oracle(raw.get("oracle", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.engine.address:
        raise ValueError("Engine address must not be empty")

    if not cfg.engine.collateral:
        raise ValueError("At least one collateral asset must be configured")

    seen: set[str] = set()
    for entry in cfg.engine.collateral:
        if not entry.token:
            raise ValueError("Collateral entry has no token")
        if not entry.price_feed:
            raise ValueError(f"Collateral '{entry.token}' has no price feed")
        if entry.token in seen:
            raise ValueError(f"Collateral '{entry.token}' is configured twice")
        seen.add(entry.token)

    if cfg.oracle.staleness_timeout_seconds <= 0:
        raise ValueError("Oracle staleness timeout must be positive")
