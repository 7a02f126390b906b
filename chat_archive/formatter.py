"""
Plain display records for query results and transcripts.

No markup is produced here beyond the text/markdown/json export of a single
transcript; presentation layers decide how records look.
"""

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterable

from .content import get_message_category
from .model import CONTENT_CODE, Conversation, ConversationSummary, MessageNode
from .query import matching_messages


TITLE_WIDTH = 45
SHORT_ID_LEN = 8
FILENAME_TITLE_LEN = 80


@dataclass(frozen=True)
class ResultRecord:
    id: str
    short_id: str
    title: str
    date: str
    message_count: int
    character_count: int
    size_bucket: str
    match_count: int = 0


@dataclass(frozen=True)
class MessageRecord:
    node_id: str
    role: str
    category: str
    text: str
    time: str
    message_id: str = ''
    model: str = ''
    status: str = ''
    language: str = ''


def format_timestamp(ts: float | None, fmt: str = '%Y-%m-%d') -> str:
    """Format epoch seconds in UTC; missing or out-of-range values give ''."""
    if ts is None:
        return ''
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return ''


def truncate_title(title: str, width: int = TITLE_WIDTH) -> str:
    title = title or 'Untitled'
    if len(title) > width:
        return title[:width - 3] + '...'
    return title


def safe_filename(conv: Conversation) -> str:
    """'<id>_<title>.json' with only letters, digits, spaces, '-' and '_' kept from the title."""
    safe_title = ''.join(c for c in conv.title if c.isalnum() or c in (' ', '-', '_')).strip()
    safe_title = safe_title[:FILENAME_TITLE_LEN].rstrip()
    return f"{conv.id}_{safe_title}.json" if safe_title else f"{conv.id}.json"


def format_result(conv: Conversation, summary: ConversationSummary, keyword: str = '') -> ResultRecord:
    """Project one query result; with a keyword, count the active-branch messages containing it."""
    return ResultRecord(
        id=conv.id,
        short_id=conv.id[:SHORT_ID_LEN],
        title=truncate_title(conv.title),
        date=format_timestamp(conv.created_at),
        message_count=summary.message_count,
        character_count=summary.total_characters,
        size_bucket=summary.size_bucket,
        match_count=len(matching_messages(conv, keyword)) if keyword else 0,
    )


def format_results(results: Iterable[tuple[Conversation, ConversationSummary]],
                   keyword: str = '') -> list[ResultRecord]:
    return [format_result(conv, summary, keyword) for conv, summary in results]


def format_message(node: MessageNode) -> MessageRecord:
    return MessageRecord(
        node_id=node.id,
        role=node.role or '',
        category=get_message_category(node),
        text=node.text,
        time=format_timestamp(node.created_at, '%Y-%m-%d %H:%M:%S'),
        message_id=node.message_id,
        model=node.model_slug,
        status=node.status,
        language=node.language if node.content_type == CONTENT_CODE else '',
    )


def _flags(conv: Conversation) -> list[str]:
    flags = []
    if conv.is_starred:
        flags.append('starred')
    if conv.is_archived:
        flags.append('archived')
    return flags


def render_transcript(conv: Conversation, messages: Iterable[MessageNode], style: str = 'text') -> str:
    """Render a transcript as 'text', 'markdown' or 'json'."""
    records = [format_message(m) for m in messages]
    title = conv.title or 'Untitled'

    if style == 'json':
        return json.dumps({
            'id': conv.id,
            'title': title,
            'created': format_timestamp(conv.created_at, '%Y-%m-%d %H:%M:%S'),
            'updated': format_timestamp(conv.updated_at, '%Y-%m-%d %H:%M:%S'),
            'model': conv.model_slug,
            'gizmo_id': conv.origin_id,
            'gizmo_type': conv.gizmo_type,
            'origin': conv.origin,
            'is_archived': conv.is_archived,
            'is_starred': conv.is_starred,
            'messages': [asdict(r) for r in records],
        }, indent=2, ensure_ascii=False)

    if style == 'markdown':
        lines = [f"# {title}\n\n"]
        for r in records:
            if not r.text.strip():
                continue
            if r.category == 'code':
                lines.append(f"## {r.role.capitalize()}\n\n```{r.language}\n{r.text}\n```\n\n")
            else:
                lines.append(f"## {r.role.capitalize()}\n\n{r.text}\n\n")
        return ''.join(lines)

    lines = [f"Title: {title}\n", f"Date: {format_timestamp(conv.created_at, '%Y-%m-%d %H:%M:%S')}\n",
             f"Model: {conv.model_slug}\n"]
    flags = _flags(conv)
    if flags:
        lines.append(f"Flags: {', '.join(flags)}\n")
    lines.append("=" * 80 + "\n")
    for r in records:
        model = f" ({r.model})" if r.model else ''
        lines.append(f"\n[{r.role.upper()}] - {r.time or 'Unknown'}{model}\n")
        lines.append("-" * 80 + "\n")
        lines.append(r.text + "\n")
        lines.append("=" * 80 + "\n")
    return ''.join(lines)
