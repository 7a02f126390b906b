"""Per-conversation aggregates computed over the whole message graph."""

from collections import Counter

from .linearize import count_branches
from .model import CONTENT_CODE, CONTENT_MULTIMODAL, ConversationSummary, MessageNode


# (minimum total characters, bucket), largest first
SIZE_THRESHOLDS = (
    (10000, 'extra-large'),
    (5000, 'large'),
    (2000, 'medium'),
    (500, 'small'),
)


def size_bucket(total_characters: int) -> str:
    for minimum, bucket in SIZE_THRESHOLDS:
        if total_characters >= minimum:
            return bucket
    return 'extra-small'


def summarize(nodes: dict[str, MessageNode]) -> ConversationSummary:
    """Summarize every node of a conversation, not only the active branch.

    Only messages with non-empty joined text are counted toward message,
    role, character and word totals. The code and non-text flags look at
    every message node.
    """
    role_counts: Counter = Counter()
    total_chars = 0
    total_words = 0
    has_code = False
    has_non_text = False

    for node in nodes.values():
        if node.is_structural:
            continue

        if node.content_type == CONTENT_CODE:
            has_code = True
        if node.content_type == CONTENT_MULTIMODAL or node.has_non_text_parts:
            has_non_text = True

        text = node.text
        if not text:
            continue

        role_counts[node.role] += 1
        total_chars += len(text)
        total_words += len(text.split())

    return ConversationSummary(
        message_count=sum(role_counts.values()),
        role_counts=dict(role_counts),
        total_characters=total_chars,
        total_words=total_words,
        has_code=has_code,
        has_non_text=has_non_text,
        size_bucket=size_bucket(total_chars),
        node_count=len(nodes),
        branch_count=count_branches(nodes),
    )
