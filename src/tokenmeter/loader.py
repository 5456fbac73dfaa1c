"""Token usage from the Claude Code session logs on disk.

Claude Code appends one JSON object per line to ``<root>/<project>/<session>.jsonl``.
The files are written by another process while we read them, so a torn
last line, a file vanishing mid-walk, or the same response logged twice are
all expected. Nothing here raises to the caller: the worst case is a zero
report.
"""

import json
import logging
import os
import time
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path

import anyio

from .config import SESSION_DURATION
from .models import SessionUsageReport, UsageRecord, UsageReport, token_count
from .paths import (
    candidate_roots,
    find_data_directory,
    is_session_file_name,
    resolve_project_directory,
    resolve_project_directory_name,
)
from .records import dedupe, is_valid_usage_record

logger = logging.getLogger("tokenmeter")


class UsageLoader:
    def __init__(
        self,
        workspace_path: str | os.PathLike | None = None,
        roots: Sequence[Path] | None = None,
        session_duration: timedelta = SESSION_DURATION,
    ):
        self.roots = list(roots) if roots is not None else candidate_roots()
        self.session_duration = session_duration
        self.set_workspace_path(workspace_path)

    def set_workspace_path(self, workspace_path: str | os.PathLike | None):
        self.workspace_path = workspace_path
        self.project_dir_name = resolve_project_directory_name(workspace_path)

    async def find_data_directory(self) -> Path | None:
        return await find_data_directory(self.roots)

    async def get_project_data_directory(self) -> Path | None:
        """The workspace's own log directory. Never the unscoped root."""
        if not self.project_dir_name:
            return None
        root = await self.find_data_directory()
        if root is None:
            return None
        return await resolve_project_directory(root, self.workspace_path)

    # --- discovery and parsing ---

    async def find_jsonl_files(self, directory: Path) -> list[Path]:
        """Depth-first walk in lexical order.

        Unreadable entries are skipped. Symlinks below ``directory`` are not
        followed, so a link back to an ancestor can't make the walk revisit it.
        """
        found: list[Path] = []
        stack = [anyio.Path(directory)]
        while stack:
            current = stack.pop()
            try:
                if await current.is_dir():
                    children = [child async for child in current.iterdir() if not await child.is_symlink()]
                    # reversed so that pop() visits children in name order
                    stack.extend(sorted(children, key=lambda p: p.name, reverse=True))
                elif current.name.endswith(".jsonl") and await current.is_file():
                    found.append(Path(current))
            except OSError as e:
                logger.error("Error reading %s: %s", current, e)
        return found

    async def parse_jsonl_file(self, path: Path) -> list[UsageRecord]:
        try:
            content = await anyio.Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error reading JSONL file %s: %s", path, e)
            return []

        records: list[UsageRecord] = []
        for line in content.split("\n"):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("Failed to parse line in %s: %s", path, e)
                continue
            if is_valid_usage_record(entry):
                records.append(UsageRecord.from_entry(entry))
        return records

    # --- aggregation ---

    async def load_usage_records(self, since: datetime | None = None) -> UsageReport:
        """Sum token usage across every session log, optionally from ``since`` on."""
        data_dir = await self.find_data_directory()
        if data_dir is None:
            return UsageReport()

        files = await self.find_jsonl_files(data_dir)
        logger.debug("Found %d JSONL files in %s", len(files), data_dir)

        records: list[UsageRecord] = []
        for path in files:
            records.extend(await self.parse_jsonl_file(path))

        if since is not None:
            if since.tzinfo is None:
                since = since.astimezone()
            records = [r for r in records if r.timestamp is not None and r.timestamp >= since]

        unique, _ = dedupe(records)
        return UsageReport.from_records(unique)

    async def get_today_usage(self) -> UsageReport:
        start_of_day = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.load_usage_records(start_of_day)

    async def get_current_session_usage(self) -> SessionUsageReport:
        """Context size of the recently active session closest to its limit.

        The cache_read count of a session's newest assistant turn approximates
        how much of the context window it currently holds. With several
        sessions open, the largest one is reported.
        """
        if self.project_dir_name:
            data_dir = await self.get_project_data_directory()
        else:
            data_dir = await self.find_data_directory()
        if data_dir is None:
            return SessionUsageReport()

        window_start = time.time() - self.session_duration.total_seconds()
        try:
            files = await self.find_jsonl_files(data_dir)
            recent = await self._recent_session_files(files, window_start)
        except OSError as e:
            logger.error("Error getting current session usage: %s", e)
            return SessionUsageReport()

        report = SessionUsageReport()
        for path in recent:
            try:
                match = await self._latest_cache_usage(path)
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Error reading %s: %s", path.name, e)
                continue
            if match is None:
                continue

            cache_creation, cache_read, line_count = match
            report.active_session_count += 1
            report.message_count += line_count
            if cache_read > report.cache_read_tokens:
                report.cache_read_tokens = cache_read
                report.cache_creation_tokens = cache_creation
                report.total_tokens = cache_read

        report.is_active = report.total_tokens > 0
        return report

    async def _recent_session_files(self, files: list[Path], window_start: float) -> list[Path]:
        """Primary session files touched since ``window_start``, newest first."""
        recent: list[tuple[float, Path]] = []
        for path in files:
            if not is_session_file_name(path.name):
                continue
            try:
                stat = await anyio.Path(path).stat()
            except OSError:
                continue
            if stat.st_mtime >= window_start:
                recent.append((stat.st_mtime, path))
        recent.sort(key=lambda item: item[0], reverse=True)
        return [path for _, path in recent]

    @staticmethod
    async def _latest_cache_usage(path: Path) -> tuple[int, int, int] | None:
        """Scan from the end for the newest assistant turn that used the cache.

        Returns ``(cache_creation, cache_read, line_count)``.
        """
        content = await anyio.Path(path).read_text(encoding="utf-8")
        lines = content.strip().split("\n")
        for i in range(len(lines) - 1, -1, -1):
            try:
                entry = json.loads(lines[i])
            except json.JSONDecodeError:
                continue
            if not isinstance(entry, dict) or entry.get("type") != "assistant":
                continue
            message = entry.get("message")
            usage = message.get("usage") if isinstance(message, dict) else None
            if not isinstance(usage, dict):
                continue
            cache_creation = token_count(usage.get("cache_creation_input_tokens"))
            cache_read = token_count(usage.get("cache_read_input_tokens"))
            if cache_creation + cache_read > 0:
                return cache_creation, cache_read, len(lines)
        return None


