"""TOML configuration loader.

Loads client settings from defaults.toml (or a user-supplied file) into
a validated ClientConfig.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import ValidationError

from chat.schemas.config import ClientConfig

# Default config directory relative to the chat package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client settings from a TOML file.

    Args:
        config_path: Path to a TOML file with a [client] table. Defaults
            to chat/config/defaults.toml.

    Returns:
        ClientConfig with values from the file; keys the file omits keep
        their schema defaults.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the [client] table is missing or holds invalid values.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Client config not found: {path}")

    with open(path, "rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

    client_section = raw.get("client")
    if not isinstance(client_section, dict):
        raise ValueError(f"No [client] section found in {path}")

    try:
        return ClientConfig(**client_section)
    except ValidationError as e:
        raise ValueError(f"Invalid [client] settings in {path}: {e}") from e
