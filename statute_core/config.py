import os
from dataclasses import dataclass, fields
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from rich.console import Console

console = Console()

load_dotenv()

OPENLAWS_BASE_URL: str = "https://api.openlaws.us/api/v1"

DEFAULT_CONFIG: dict[str, Any] = {
    "openlaws": {
        "base_url": OPENLAWS_BASE_URL,
        "max_api_calls": 50,
        "max_depth": 6,
    },
    "cache": {"enabled": True, "db_path": "statutes.db"},
    "law_keys": {},
}


@dataclass(frozen=True)
class ResolverConfig:
    """Tunables for the divisions traversal and its HTTP layer."""

    # Hard cap on remote calls per resolution
    MAX_API_CALLS: int = 50
    MAX_DEPTH: int = 6

    # Compilations searched in phase 1
    HINTED_CANDIDATES: int = 2
    UNHINTED_CANDIDATES: int = 5

    # Pause PACE_DELAY seconds after every PACE_EVERY calls
    PACE_EVERY: int = 5
    PACE_DELAY: float = 0.2

    # Retry policy
    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY: float = 1.0
    NETWORK_RETRY_DELAY: float = 1.0

    # Pause between top-level citations in batch resolution
    BATCH_DELAY: float = 0.25

    API_TIMEOUT: float = 30.0
    HEALTH_CHECK_TIMEOUT: float = 5.0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ResolverConfig":
        """Build from the ``openlaws:`` section of config.yaml (lowercase keys)."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        overrides = {
            key.upper(): value
            for key, value in data.items()
            if key.upper() in known
        }
        return cls(**overrides)


DEFAULT_RESOLVER_CONFIG = ResolverConfig()


def load_config(config_path: str = "config.yaml") -> dict[str, Any]:
    """
    From config.yaml

    Args:
        config_path: Path to config file (default: config.yaml)

    Returns:
        Configuration dictionary
    """
    try:
        with open(config_path, "r") as f:
            return yaml.safe_load(f) or DEFAULT_CONFIG
    except FileNotFoundError:
        console.print(f"[yellow]Warning: {config_path} not found. Using default config.[/yellow]")
        return DEFAULT_CONFIG


def get_api_keys() -> dict[str, str]:
    return {
        "openlaws": os.getenv("OPENLAWS_API_KEY", ""),
    }


def get_base_url(config: Optional[dict[str, Any]] = None) -> str:
    env_url = os.getenv("OPENLAWS_API_URL")
    if env_url:
        return env_url
    section = (config or {}).get("openlaws", {}) or {}
    return section.get("base_url", OPENLAWS_BASE_URL)
