"""
Data shapes for a loaded conversation archive.

A conversation's message graph is kept as a flat mapping of node id to
MessageNode. Parent and child links are ids into that mapping, never object
references, so cyclic or dangling links in a damaged export stay harmless.
"""

from dataclasses import dataclass, field
from typing import Any


ROLES = ('user', 'assistant', 'system', 'tool')
UNKNOWN_ROLE = 'unknown'

CONTENT_TEXT = 'text'
CONTENT_CODE = 'code'
CONTENT_MULTIMODAL = 'multimodal'

SIZE_BUCKETS = ('extra-small', 'small', 'medium', 'large', 'extra-large')


@dataclass(frozen=True)
class MessageNode:
    """One node of a conversation's history graph.

    role is None for structural nodes (no message payload in the export).
    raw_content_parts keeps non-string parts (images, audio) as opaque values.
    """
    id: str
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()
    role: str | None = None
    content_type: str = CONTENT_TEXT
    raw_content_parts: tuple[Any, ...] = ()
    created_at: float | None = None
    status: str = ''
    message_id: str = ''
    source_content_type: str = ''
    language: str = ''
    model_slug: str = ''

    @property
    def is_structural(self) -> bool:
        return self.role is None

    @property
    def text(self) -> str:
        """String parts joined for display and search; other parts are skipped."""
        return ' '.join(p for p in self.raw_content_parts if isinstance(p, str) and p)

    @property
    def has_non_text_parts(self) -> bool:
        return any(not isinstance(p, str) for p in self.raw_content_parts)

    @property
    def has_content(self) -> bool:
        return not self.is_structural and bool(self.text)


@dataclass(frozen=True)
class ConversationSummary:
    message_count: int = 0
    role_counts: dict[str, int] = field(default_factory=dict)
    total_characters: int = 0
    total_words: int = 0
    has_code: bool = False
    has_non_text: bool = False
    size_bucket: str = 'extra-small'
    node_count: int = 0
    branch_count: int = 1

    @property
    def user_messages(self) -> int:
        return self.role_counts.get('user', 0)

    @property
    def assistant_messages(self) -> int:
        return self.role_counts.get('assistant', 0)

    @property
    def system_messages(self) -> int:
        return self.role_counts.get('system', 0)


@dataclass(frozen=True, eq=False)
class Conversation:
    """A parsed conversation with its linearized transcript and summary cached."""
    id: str
    title: str = ''
    created_at: float | None = None
    updated_at: float | None = None
    model_slug: str = ''
    origin_id: str = ''
    gizmo_type: str = ''
    origin: str = ''
    is_archived: bool = False
    is_starred: bool = False
    nodes: dict[str, MessageNode] = field(default_factory=dict)
    current_leaf_id: str | None = None
    linearized_messages: tuple[MessageNode, ...] = ()
    summary: ConversationSummary = field(default_factory=ConversationSummary)
