"""
Credential configuration
========================
Each known credential is resolved from an ordered list of sources; the first
source with a non-empty value wins and its name is reported as the source:

  env     - the process environment
  dotenv  - a .env file in the working directory (python-dotenv)
  config  - ~/.defitools/config.json, managed by `defitools config set`

DEFITOOLS_CONFIG_DIR overrides the config directory.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

CONFIG_VERSION = 1


@dataclass(frozen=True)
class KnownKey:
    name: str
    description: str


KNOWN_KEYS: tuple[KnownKey, ...] = (
    KnownKey("COINMARKETCAL_API_KEY", "CoinMarketCal event tools"),
    KnownKey("FIREWORKS_API_KEY", "Fireworks AI image generation"),
    KnownKey("PINATA_JWT", "Pinata IPFS pinning"),
)

_KNOWN_NAMES = {k.name for k in KNOWN_KEYS}


@dataclass(frozen=True)
class ResolvedKey:
    name: str
    description: str
    value: Optional[str]
    source: Optional[str]


def is_known_key(name: str) -> bool:
    return name in _KNOWN_NAMES


# ---------------------------------------------------------------------------
# Config file I/O
# ---------------------------------------------------------------------------

def config_dir() -> Path:
    return Path(os.environ.get("DEFITOOLS_CONFIG_DIR") or Path.home() / ".defitools")


def config_path() -> Path:
    return config_dir() / "config.json"


def _default_config() -> dict:
    return {"version": CONFIG_VERSION, "keys": {}}


def read_config() -> dict:
    """Unreadable or malformed files read as an empty config."""
    path = config_path()
    if not path.exists():
        return _default_config()
    try:
        parsed = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return _default_config()
    if not isinstance(parsed, dict):
        return _default_config()
    keys = parsed.get("keys")
    return {
        "version": parsed.get("version") if isinstance(parsed.get("version"), int) else CONFIG_VERSION,
        "keys": keys if isinstance(keys, dict) else {},
    }


def write_config(config: dict) -> None:
    directory = config_dir()
    directory.mkdir(mode=0o700, parents=True, exist_ok=True)
    path = config_path()
    path.write_text(json.dumps(config, indent=2) + "\n", encoding="utf-8")
    path.chmod(0o600)


# ---------------------------------------------------------------------------
# Sources, in priority order
# ---------------------------------------------------------------------------

class EnvSource:
    name = "env"

    def get(self, key: str) -> Optional[str]:
        return os.environ.get(key)


class DotenvSource:
    name = "dotenv"

    def __init__(self, path: Optional[Path] = None):
        path = path or Path.cwd() / ".env"
        self.values = dotenv_values(path) if path.is_file() else {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)


class ConfigFileSource:
    name = "config"

    def __init__(self):
        self.keys = read_config()["keys"]

    def get(self, key: str) -> Optional[str]:
        value = self.keys.get(key)
        return value if isinstance(value, str) else None


def default_sources() -> list:
    return [EnvSource(), DotenvSource(), ConfigFileSource()]


def resolve_all_keys(sources: Optional[list] = None) -> list[ResolvedKey]:
    sources = default_sources() if sources is None else sources
    resolved = []
    for key in KNOWN_KEYS:
        value, source = None, None
        for src in sources:
            candidate = src.get(key.name)
            if candidate:
                value, source = candidate, src.name
                break
        resolved.append(ResolvedKey(key.name, key.description, value, source))
    return resolved


def resolve_keys(sources: Optional[list] = None) -> dict[str, Optional[str]]:
    return {r.name: r.value for r in resolve_all_keys(sources)}


def redact_value(value: str) -> str:
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}...{value[-4:]}"
