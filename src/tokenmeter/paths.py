"""Locate the Claude Code project log tree."""

import logging
import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path

import anyio

from .config import CLAUDE_CONFIG_ENV

logger = logging.getLogger("tokenmeter")

SESSION_FILE_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.jsonl$",
    re.IGNORECASE,
)
AGENT_FILE_PREFIX = "agent-"

_SEPARATORS = re.compile(r"[\\/]")


def resolve_project_directory_name(workspace_path: str | os.PathLike | None) -> str | None:
    """Flatten a workspace path the way Claude Code names its project directories.

    ``/home/me/proj`` becomes ``-home-me-proj``.
    """
    if not workspace_path:
        return None
    return _SEPARATORS.sub("-", os.fspath(workspace_path))


def candidate_roots(env: Mapping[str, str] | None = None, home: Path | None = None) -> list[Path]:
    """Return the data roots to try, in order: the env override entries, then the defaults."""
    env = os.environ if env is None else env
    home = home or Path.home()
    roots: list[Path] = []

    override = env.get(CLAUDE_CONFIG_ENV)
    if override:
        roots.extend(Path(os.path.expanduser(p.strip())) for p in override.split(",") if p.strip())

    roots.append(home / ".config" / "claude" / "projects")
    roots.append(home / ".claude" / "projects")
    return roots


async def is_directory(path: Path) -> bool:
    try:
        return await anyio.Path(path).is_dir()
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return False


async def find_data_directory(roots: Sequence[Path]) -> Path | None:
    """First root that exists and is a directory. Partial trees are never merged."""
    for root in roots:
        if await is_directory(root):
            logger.debug("Found Claude data directory: %s", root)
            return Path(root)
    logger.warning("Could not find Claude data directory in any of: %s", ", ".join(map(str, roots)))
    return None


async def resolve_project_directory(root: Path, workspace_path: str | os.PathLike | None) -> Path | None:
    name = resolve_project_directory_name(workspace_path)
    if name is None:
        return None
    project_dir = Path(root) / name
    if await is_directory(project_dir):
        logger.debug("Found project directory: %s", project_dir)
        return project_dir
    logger.debug("Project directory not found: %s", project_dir)
    return None


def is_session_file_name(name: str) -> bool:
    """Primary session logs are ``<uuid>.jsonl``; ``agent-*`` files belong to subagents."""
    if name.startswith(AGENT_FILE_PREFIX):
        return False
    return SESSION_FILE_PATTERN.match(name) is not None
