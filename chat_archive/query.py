"""
Search, sort and limit conversations of a loaded Archive.

Matching is a case-insensitive substring test, the same semantics as a SQL
LIKE '%keyword%' search. Out-of-range parameters fall back to defaults
instead of raising.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from .archive import Archive
from .model import Conversation, ConversationSummary, MessageNode


SCOPES = ('title', 'content', 'both')
SORTS = ('newest', 'oldest', 'most-relevant', 'longest')
LIMITS = (25, 50, 100)
ROLE_FILTERS = ('user', 'assistant', 'both')

DEFAULT_SCOPE = 'title'
DEFAULT_SORT = 'newest'
DEFAULT_LIMIT = 25
DEFAULT_ROLE_FILTER = 'both'
SAMPLE_COUNT = 3

QueryResult = tuple[Conversation, ConversationSummary]


def _normalize_limit(limit: Any) -> int | None:
    if limit is None or limit == 'all':
        return None
    if isinstance(limit, str) and limit.strip().isdigit():
        limit = int(limit)
    # LIMITS are the preset choices; any positive count is honored.
    if isinstance(limit, int) and not isinstance(limit, bool) and limit > 0:
        return limit
    return DEFAULT_LIMIT


@dataclass(frozen=True)
class QueryParams:
    """The four query settings. limit=None means no truncation."""
    keyword: str = ''
    scope: str = DEFAULT_SCOPE
    sort: str = DEFAULT_SORT
    limit: int | None = DEFAULT_LIMIT

    @classmethod
    def create(cls, keyword: Any = '', scope: Any = DEFAULT_SCOPE, sort: Any = DEFAULT_SORT,
               limit: Any = DEFAULT_LIMIT) -> 'QueryParams':
        """Build params from loosely typed input, replacing unknown values with defaults."""
        return cls(
            keyword=keyword if isinstance(keyword, str) else '',
            scope=scope if scope in SCOPES else DEFAULT_SCOPE,
            sort=sort if sort in SORTS else DEFAULT_SORT,
            limit=_normalize_limit(limit),
        )


def _title_hits(conv: Conversation, needle: str) -> int:
    return conv.title.lower().count(needle)


def _content_hits(conv: Conversation, needle: str) -> int:
    return sum(msg.text.lower().count(needle) for msg in conv.linearized_messages)


def _title_matches(conv: Conversation, needle: str) -> bool:
    return needle in conv.title.lower()


def _content_matches(conv: Conversation, needle: str) -> bool:
    return any(needle in msg.text.lower() for msg in conv.linearized_messages)


def matches(conv: Conversation, keyword: str, scope: str) -> bool:
    needle = keyword.lower()
    if not needle:
        return True
    if scope == 'content':
        return _content_matches(conv, needle)
    if scope == 'both':
        return _title_matches(conv, needle) or _content_matches(conv, needle)
    return _title_matches(conv, needle)


def relevance(conv: Conversation, keyword: str, scope: str) -> int:
    """Occurrences of keyword in the fields searched by scope; title counts like content."""
    needle = keyword.lower()
    if not needle:
        return 0
    hits = 0
    if scope in ('title', 'both'):
        hits += _title_hits(conv, needle)
    if scope in ('content', 'both'):
        hits += _content_hits(conv, needle)
    return hits


def _by_created(convs: list[Conversation], newest_first: bool) -> list[Conversation]:
    # Missing timestamps go last in either direction; sort is stable.
    dated = [c for c in convs if c.created_at is not None]
    undated = [c for c in convs if c.created_at is None]
    dated.sort(key=lambda c: c.created_at, reverse=newest_first)
    return dated + undated


def sort_conversations(convs: list[Conversation], params: QueryParams) -> list[Conversation]:
    newest = _by_created(convs, newest_first=True)

    if params.sort == 'oldest':
        return _by_created(convs, newest_first=False)
    if params.sort == 'longest':
        return sorted(newest, key=lambda c: c.summary.total_characters, reverse=True)
    if params.sort == 'most-relevant' and params.keyword:
        scores = {c.id: relevance(c, params.keyword, params.scope) for c in newest}
        return sorted(newest, key=lambda c: scores[c.id], reverse=True)
    return newest


def query(archive: Archive, params: QueryParams | None = None) -> list[QueryResult]:
    """Run a search over the archive. No match gives an empty list."""
    params = params or QueryParams()
    params = QueryParams.create(params.keyword, params.scope, params.sort, params.limit)
    found = [c for c in archive.all() if matches(c, params.keyword, params.scope)]
    ordered = sort_conversations(found, params)
    if params.limit is not None:
        ordered = ordered[:params.limit]
    return [(conv, conv.summary) for conv in ordered]


def count_matches(archive: Archive, keyword: str) -> dict[str, int]:
    """Number of conversations matching keyword in titles, in content, and in either."""
    needle = keyword.lower()
    convs = archive.all()
    return {
        'title': sum(1 for c in convs if matches(c, needle, 'title')),
        'content': sum(1 for c in convs if matches(c, needle, 'content')),
        'both': sum(1 for c in convs if matches(c, needle, 'both')),
    }


def matching_messages(conv: Conversation, keyword: str) -> list[MessageNode]:
    """Active-branch messages whose text contains keyword, case-insensitively."""
    needle = keyword.lower()
    if not needle:
        return []
    return [msg for msg in conv.linearized_messages if needle in msg.text.lower()]


def sample_matches(convs: Iterable[Conversation], keyword: str,
                   count: int = SAMPLE_COUNT) -> list[tuple[Conversation, MessageNode]]:
    """The longest matching messages across convs, longest first."""
    pairs = [(conv, msg) for conv in convs for msg in matching_messages(conv, keyword)]
    pairs.sort(key=lambda pair: len(pair[1].text), reverse=True)
    return pairs[:count]


def transcript(conv: Conversation, role_filter: str = DEFAULT_ROLE_FILTER) -> list[MessageNode]:
    """Linearized messages of one conversation, filtered by role for display."""
    if role_filter in ('user', 'assistant'):
        return [msg for msg in conv.linearized_messages if msg.role == role_filter]
    return list(conv.linearized_messages)
