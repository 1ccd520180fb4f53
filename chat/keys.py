"""API key management for chat.

Keys are looked up with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.chat/keys.env (user-level saved keys)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from chat.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Directory for user-level chat configuration
CHAT_HOME = Path.home() / ".chat"
KEYS_FILE = CHAT_HOME / "keys.env"


def load_keys_env(files: list[Path] | None = None) -> None:
    """Export keys from ~/.chat/keys.env and ./.env into os.environ.

    A variable that already holds a value is left alone, so the shell
    beats the key files and an earlier file beats a later one.
    """
    if files is None:
        files = [KEYS_FILE, Path.cwd() / ".env"]
    for env_file in files:
        if not env_file.is_file():
            continue
        for name, value in parse_env_file(env_file).items():
            if os.environ.get(name):
                continue
            os.environ[name] = value
            logger.debug("Loaded %s from %s", name, env_file)


def parse_env_file(path: Path) -> dict[str, str]:
    """Read ``NAME=value`` pairs from a dotenv-style key file.

    Accepts an optional ``export`` prefix and single or double quotes
    around the value. Comments, blank lines and lines without ``=`` are
    skipped; an unreadable file yields no pairs.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Could not read %s", path)
        return {}

    pairs: dict[str, str] = {}
    for raw_line in text.splitlines():
        entry = raw_line.strip()
        if entry.startswith("export "):
            entry = entry.removeprefix("export ").lstrip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        name, _, value = entry.partition("=")
        name = name.strip()
        if name:
            pairs[name] = value.strip().strip("'\"")
    return pairs


def require_api_key(env_var: str) -> str:
    """Return the API key held in ``env_var``.

    Raises:
        ConfigurationError: If the variable is unset or empty.
    """
    key = os.environ.get(env_var, "")
    if not key:
        raise ConfigurationError(f"${env_var} should be set.")
    return key
