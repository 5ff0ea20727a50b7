"""
scaleplus.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the static parts of the program: its display
name, the tier table and whether demo members are seeded on first start.
Secrets and infrastructure (``DATABASE_URL``) come from the environment.

Usage::

    from scaleplus.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.program_name)      # "Scale+ Rewards"
    print(cfg.tiers[1].name)     # "Silver"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from scaleplus.constants import DEFAULT_TIERS
from scaleplus.engine.records import Tier
from scaleplus.engine.tiers import validate_tiers
from scaleplus.exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ScaleplusConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    program_name: str
    tiers: tuple[Tier, ...]
    seed_demo_data: bool = False


def _parse_tiers(raw: object) -> tuple[Tier, ...]:
    if raw is None:
        return DEFAULT_TIERS
    if not isinstance(raw, list):
        raise ConfigurationError("'tiers' must be a list of mappings")
    try:
        tiers = [Tier.from_dict(item) for item in raw]
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed tier entry: {exc}") from exc
    return validate_tiers(tiers)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> ScaleplusConfig:
    """Read *path* and return a :class:`ScaleplusConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.
        Defaults to ``config.yaml`` in the current working directory.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    ConfigurationError
        If the file is not a mapping or the tier table is malformed
        (e.g. no zero-floor tier).
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path.name} must contain a mapping at the top level")

    return ScaleplusConfig(
        program_name=raw.get("program_name", "Scale+ Rewards"),
        tiers=_parse_tiers(raw.get("tiers")),
        seed_demo_data=bool(raw.get("seed_demo_data", False)),
    )
