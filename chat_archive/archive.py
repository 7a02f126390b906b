"""
In-memory index over one loaded conversations.json.

load_archive() parses the whole payload before returning; an Archive is
never handed out half built. Malformed conversations are skipped and
recorded, only a payload that is not a list of objects fails the load.
"""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from .errors import ConversationSkipped, ParseError
from .graph import parse_conversation
from .model import Conversation

_logger = logging.getLogger(__name__)

PROGRESS_INTERVAL = 50

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class SkippedConversation:
    position: int
    reason: str
    conv_id: str | None = None


@dataclass
class ArchiveStats:
    conversations: int = 0
    messages: int = 0
    titled_conversations: int = 0
    total_characters: int = 0
    avg_messages: float = 0.0
    avg_characters: float = 0.0
    first_created: float | None = None
    last_created: float | None = None
    per_year: dict[str, int] = field(default_factory=dict)
    role_counts: Counter = field(default_factory=Counter)
    content_types: Counter = field(default_factory=Counter)
    skipped: int = 0


class Archive:
    """All conversations from one export, in source order, indexed by id."""

    def __init__(self, conversations: list[Conversation] | None = None,
                 skipped: list[SkippedConversation] | None = None):
        self._conversations = list(conversations or [])
        self._by_id = {conv.id: conv for conv in self._conversations}
        self.skipped = list(skipped or [])

    def count(self) -> int:
        return len(self._conversations)

    def get(self, conv_id: str) -> Conversation | None:
        return self._by_id.get(conv_id)

    def all(self) -> list[Conversation]:
        return list(self._conversations)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def find(self, id_or_prefix: str) -> Conversation | None:
        """Look up by exact id, then by the first id starting with the prefix."""
        if not id_or_prefix:
            return None
        conv = self.get(id_or_prefix)
        if conv is not None:
            return conv
        for conv in self._conversations:
            if conv.id.startswith(id_or_prefix):
                return conv
        return None

    def between(self, start_id: str, end_id: str) -> list[Conversation]:
        """Conversations with start_id <= id <= end_id, oldest first, undated last."""
        in_range = [c for c in self._conversations if start_id <= c.id <= end_id]
        return sorted(in_range, key=lambda c: (c.created_at is None, c.created_at or 0.0))

    def stats(self) -> ArchiveStats:
        stats = ArchiveStats(conversations=self.count(), skipped=self.skipped_count)
        created = []

        for conv in self._conversations:
            summary = conv.summary
            stats.messages += summary.message_count
            stats.total_characters += summary.total_characters
            stats.role_counts.update(summary.role_counts)
            if conv.title:
                stats.titled_conversations += 1
            if conv.created_at is not None:
                created.append(conv.created_at)
            for node in conv.nodes.values():
                if not node.is_structural:
                    stats.content_types[node.source_content_type or node.content_type] += 1

        if stats.conversations:
            stats.avg_messages = round(stats.messages / stats.conversations, 1)
            stats.avg_characters = round(stats.total_characters / stats.conversations)

        if created:
            stats.first_created = min(created)
            stats.last_created = max(created)
            years = Counter(y for y in (_year(ts) for ts in created) if y)
            stats.per_year = dict(sorted(years.items()))

        return stats


def _year(ts: float) -> str:
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime('%Y')
    except (OverflowError, OSError, ValueError):
        return ''


def _decode(raw: Any) -> Any:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ParseError(f'Archive is not valid UTF-8: {e}') from e
    if isinstance(raw, str):
        try:
            return json.loads(raw.lstrip('\ufeff'))
        except json.JSONDecodeError as e:
            raise ParseError(f'Archive is not valid JSON: {e}') from e
    return raw


def load_archive(raw: Any, progress_callback: ProgressCallback | None = None) -> Archive:
    """Build an Archive from raw bytes, text, or an already-parsed JSON value."""
    data = _decode(raw)

    if not isinstance(data, list):
        raise ParseError('Expected the top-level JSON to be a list of conversations.')
    if data and not any(isinstance(item, dict) for item in data):
        raise ParseError('The top-level list contains no conversation objects.')

    conversations: list[Conversation] = []
    skipped: list[SkippedConversation] = []
    seen_ids: set[str] = set()
    total = len(data)

    for i, item in enumerate(data):
        try:
            conv = parse_conversation(item)
            if conv.id in seen_ids:
                raise ConversationSkipped('duplicate conversation id', conv.id)
        except ConversationSkipped as e:
            _logger.warning('Skipping conversation #%d (%s): %s', i, e.conv_id or 'no id', e.reason)
            skipped.append(SkippedConversation(position=i, reason=e.reason, conv_id=e.conv_id))
        else:
            seen_ids.add(conv.id)
            conversations.append(conv)

        if progress_callback and i % PROGRESS_INTERVAL == 0:
            progress_callback(i, total)

    if progress_callback:
        progress_callback(total, total)

    _logger.info('Loaded %d conversations (%d skipped)', len(conversations), len(skipped))
    return Archive(conversations, skipped)


def load_archive_file(filepath: Path | str, progress_callback: ProgressCallback | None = None) -> Archive:
    path = Path(filepath)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise ParseError(f'Cannot read {path}: {e}') from e
    return load_archive(raw, progress_callback=progress_callback)
