"""Configuration management for TokenMeter."""

import os
import sys
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _expand(path: str) -> Path:
    return Path(os.path.expanduser(path))


def _config_dir() -> Path:
    # Windows: %APPDATA%\tokenmeter, macOS: ~/Library/Application Support/tokenmeter,
    # elsewhere: $XDG_CONFIG_HOME/tokenmeter
    if sys.platform == "win32":
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / "tokenmeter"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "tokenmeter"
    return _expand(os.getenv("XDG_CONFIG_HOME", "~/.config")) / "tokenmeter"


# Comma-separated list of Claude Code data roots, tried before the defaults
CLAUDE_CONFIG_ENV = "CLAUDE_CONFIG_DIR"

SESSION_DURATION = timedelta(seconds=int(os.getenv("TOKENMETER_SESSION_SECONDS", "3600")))

# Claude Code default context window (tokens)
DEFAULT_TOKEN_LIMIT = int(os.getenv("TOKENMETER_TOKEN_LIMIT", "200000"))

CONFIG_DIR = _config_dir()
DB_PATH = _expand(os.getenv("TOKENMETER_DB_PATH", str(CONFIG_DIR / "usage.db")))

DASHBOARD_PORT = int(os.getenv("TOKENMETER_DASHBOARD_PORT", "8878"))
POLL_INTERVAL = int(os.getenv("TOKENMETER_POLL_SECONDS", "60"))
