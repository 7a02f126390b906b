#!/usr/bin/env python3
"""
Chat Archive Explorer

Search, browse and export a ChatGPT conversations.json export from the
command line.
"""

import argparse
import logging
import sys
from pathlib import Path

from .archive import Archive, load_archive_file
from .errors import ParseError
from .formatter import (
    format_results,
    format_timestamp,
    render_transcript,
    safe_filename,
    truncate_title,
)
from .fulltext import build_message_index
from .linearize import active_path, find_all_branches
from .query import (
    DEFAULT_LIMIT,
    LIMITS,
    ROLE_FILTERS,
    SCOPES,
    SORTS,
    QueryParams,
    count_matches,
    query,
    sample_matches,
    transcript,
)

EXPORT_STYLES = {'.md': 'markdown', '.json': 'json'}


def _load(filepath: str) -> Archive:
    print(f"Loading {filepath}...")
    return load_archive_file(Path(filepath))


def _find_or_report(archive: Archive, conv_id: str):
    conv = archive.find(conv_id)
    if conv is None:
        print(f"No conversation found with ID: {conv_id}")
        print("\nTip: Try using the first 8 characters of the ID")
    return conv


def cmd_search(args) -> int:
    archive = _load(args.file)
    params = QueryParams.create(args.keyword, args.scope, args.sort, args.limit)
    results = query(archive, params)
    in_content = bool(params.keyword) and params.scope in ('content', 'both')
    records = format_results(results, params.keyword if in_content else '')

    print(f"\nSearch Results for: '{params.keyword}' ({params.sort}, "
          f"limit: {params.limit or 'all'}, searching: {params.scope})")
    print("=" * 100)

    if not records:
        print("No conversations found")
        return 0

    matches_header = ' Matches' if in_content else ''
    print(f"{'ID':<10} {'Date':<12} {'Title':<45} {'Msgs':<5} {'Chars':<8} {'Size':<12}{matches_header}")
    print("-" * 100)
    for r in records:
        matches = f" {r.match_count}" if in_content else ''
        print(f"{r.short_id:<10} {r.date:<12} {r.title:<45} {r.message_count:<5} "
              f"{r.character_count:<8} {r.size_bucket:<12}{matches}")

    if in_content:
        samples = sample_matches([conv for conv, _ in results], params.keyword)
        if samples:
            print(f"\nSample messages containing '{params.keyword}':")
            print("-" * 60)
            for conv, msg in samples:
                preview = msg.text[:150] + ('...' if len(msg.text) > 150 else '')
                print(truncate_title(conv.title, 33))
                print(f"[{(msg.role or '').upper()}]: {preview}")
                print()

    if params.scope == 'both' and params.keyword:
        counts = count_matches(archive, params.keyword)
        print("\nBreakdown:")
        print(f"  In titles: {counts['title']}")
        print(f"  In content: {counts['content']}")
    return 0


def cmd_show(args) -> int:
    archive = _load(args.file)
    conv = _find_or_report(archive, args.id)
    if conv is None:
        return 1

    messages = transcript(conv, args.role)
    if not messages:
        print("No messages found in this conversation")
        return 1
    print(render_transcript(conv, messages, 'text'), end='')
    return 0


def cmd_info(args) -> int:
    archive = _load(args.file)
    conv = _find_or_report(archive, args.id)
    if conv is None:
        return 1

    summary = conv.summary
    fields = [
        ('Full ID', conv.id),
        ('Title', conv.title or 'Untitled'),
        ('Created', format_timestamp(conv.created_at, '%Y-%m-%d %H:%M:%S')),
        ('Updated', format_timestamp(conv.updated_at, '%Y-%m-%d %H:%M:%S')),
        ('Model', conv.model_slug),
        ('GPT', conv.origin_id or '-'),
        ('GPT type', conv.gizmo_type or '-'),
        ('Origin', conv.origin or '-'),
        ('Starred', 'yes' if conv.is_starred else 'no'),
        ('Archived', 'yes' if conv.is_archived else 'no'),
        ('Messages', summary.message_count),
        ('Characters', summary.total_characters),
        ('Words', summary.total_words),
        ('Branches', summary.branch_count),
        ('Has code', 'yes' if summary.has_code else 'no'),
        ('Has non-text', 'yes' if summary.has_non_text else 'no'),
        ('Size Category', summary.size_bucket),
    ]
    for label, value in fields:
        print(f"{label:.<20} {value}")

    print("\nMessage Count by Role:")
    print("-" * 20)
    for role, count in sorted(summary.role_counts.items()):
        print(f"{role:.<15} {count}")
    return 0


def cmd_branches(args) -> int:
    archive = _load(args.file)
    conv = _find_or_report(archive, args.id)
    if conv is None:
        return 1

    active = active_path(conv.nodes, conv.current_leaf_id)
    for i, path in enumerate(find_all_branches(conv.nodes), start=1):
        preview = '(empty)'
        for node_id in path:
            node = conv.nodes[node_id]
            if node.role == 'assistant' and node.text:
                preview = truncate_title(node.text, 60)
                break
        marker = '*' if path == active else ' '
        print(f"{marker} Branch {i} ({len(path)} nodes): {preview}")
    return 0


def cmd_stats(args) -> int:
    archive = _load(args.file)
    stats = archive.stats()

    print("\nBasic Statistics:")
    print("-" * 40)
    rows = [
        ("Total Conversations", stats.conversations),
        ("Total Messages", stats.messages),
        ("Conversations with Titles", stats.titled_conversations),
        ("Average Messages/Conversation", stats.avg_messages),
        ("Average Characters/Conversation", stats.avg_characters),
        ("Total Characters (All)", stats.total_characters),
        ("Skipped Conversations", stats.skipped),
    ]
    for label, value in rows:
        print(f"{label:.<32} {value}")

    print("\nDate Range:")
    print("-" * 40)
    print(f"First conversation: {format_timestamp(stats.first_created, '%Y-%m-%d %H:%M:%S')}")
    print(f"Last conversation: {format_timestamp(stats.last_created, '%Y-%m-%d %H:%M:%S')}")

    print("\nActivity by Year:")
    print("-" * 40)
    for year, count in stats.per_year.items():
        print(f"{year}: {count} conversations")

    print("\nAuthor roles:")
    for role, count in stats.role_counts.most_common():
        print(f"{count:>8}  {role}")

    print("\nContent types:")
    for ct, count in stats.content_types.most_common():
        print(f"{count:>8}  {ct}")
    return 0


def cmd_find(args) -> int:
    archive = _load(args.file)
    with build_message_index(archive) as index:
        hits = index.search(args.query, limit=args.limit)

    print(f"\nFull-text results for: '{args.query}'")
    print("=" * 80)
    if not hits:
        print("No messages found.")
        return 0

    for hit in hits:
        text = hit.text[:150] + ('...' if len(hit.text) > 150 else '')
        print(f"[{truncate_title(hit.title, 30)}] {hit.conv_id[:8]} ({hit.role}) score={hit.score:.2f}")
        print(f"  {text}")
        print()
    print(f"Found {len(hits)} matches in {len({h.conv_id for h in hits})} conversations.")
    return 0


def cmd_export(args) -> int:
    archive = _load(args.file)
    conv = _find_or_report(archive, args.id)
    if conv is None:
        return 1

    out_path = Path(args.output)
    style = EXPORT_STYLES.get(out_path.suffix.lower(), 'text')
    messages = transcript(conv, args.role)
    out_path.write_text(render_transcript(conv, messages, style), encoding='utf-8')
    print(f"Exported {len(messages)} messages to {out_path}")
    return 0


def cmd_range(args) -> int:
    archive = _load(args.file)
    convs = archive.between(args.start, args.end)
    if not convs:
        print(f"No conversations found between {args.start} and {args.end}")
        return 1

    print(f"Found {len(convs)} conversations in range")
    print("=" * 80)

    if args.action == 'view':
        for conv in convs:
            print(f"\nID: {conv.id}")
            print(f"Messages: {conv.summary.message_count}")
            print(render_transcript(conv, conv.linearized_messages, 'text'), end='')
        return 0

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for conv in convs:
        filename = safe_filename(conv)
        (out_dir / filename).write_text(
            render_transcript(conv, conv.linearized_messages, 'json'), encoding='utf-8')
        print(f"Exported: {filename}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Search and browse a ChatGPT conversations.json export',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Find 'paradox' in both titles and content
  chat-archive search conversations.json paradox --scope both --limit 50

  # View a conversation by the first characters of its ID
  chat-archive show conversations.json 684a0e6f --role user

  # Ranked full-text search over every message
  chat-archive find conversations.json "investors paradox"

  # Export every conversation to chat_exports/
  chat-archive range conversations.json 00000000 ffffffff export
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Log progress and skipped records')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    search_parser = subparsers.add_parser('search', help='Search conversations by keyword')
    search_parser.add_argument('file', help='Path to conversations.json')
    search_parser.add_argument('keyword', nargs='?', default='', help='Keyword (empty matches everything)')
    search_parser.add_argument('--scope', default='title', help=f"One of {', '.join(SCOPES)}")
    search_parser.add_argument('--sort', default='newest', help=f"One of {', '.join(SORTS)}")
    search_parser.add_argument('--limit', default=str(DEFAULT_LIMIT),
                               help=f"One of {', '.join(str(n) for n in LIMITS)}, all")
    search_parser.set_defaults(func=cmd_search)

    show_parser = subparsers.add_parser('show', help='Print the active transcript of a conversation')
    show_parser.add_argument('file', help='Path to conversations.json')
    show_parser.add_argument('id', help='Conversation ID or ID prefix')
    show_parser.add_argument('--role', default='both', help=f"One of {', '.join(ROLE_FILTERS)}")
    show_parser.set_defaults(func=cmd_show)

    info_parser = subparsers.add_parser('info', help='Show conversation details')
    info_parser.add_argument('file', help='Path to conversations.json')
    info_parser.add_argument('id', help='Conversation ID or ID prefix')
    info_parser.set_defaults(func=cmd_info)

    branches_parser = subparsers.add_parser('branches', help='List every branch of a conversation')
    branches_parser.add_argument('file', help='Path to conversations.json')
    branches_parser.add_argument('id', help='Conversation ID or ID prefix')
    branches_parser.set_defaults(func=cmd_branches)

    stats_parser = subparsers.add_parser('stats', help='Show archive statistics')
    stats_parser.add_argument('file', help='Path to conversations.json')
    stats_parser.set_defaults(func=cmd_stats)

    find_parser = subparsers.add_parser('find', help='Ranked full-text search over all messages')
    find_parser.add_argument('file', help='Path to conversations.json')
    find_parser.add_argument('query', help='Search query')
    find_parser.add_argument('--limit', type=int, default=100, help='Maximum number of hits')
    find_parser.set_defaults(func=cmd_find)

    export_parser = subparsers.add_parser('export', help='Write a transcript to .txt, .md or .json')
    export_parser.add_argument('file', help='Path to conversations.json')
    export_parser.add_argument('id', help='Conversation ID or ID prefix')
    export_parser.add_argument('output', help='Output file')
    export_parser.add_argument('--role', default='both', help=f"One of {', '.join(ROLE_FILTERS)}")
    export_parser.set_defaults(func=cmd_export)

    range_parser = subparsers.add_parser('range', help='View or export every conversation with an ID in a range')
    range_parser.add_argument('file', help='Path to conversations.json')
    range_parser.add_argument('start', help='First ID (inclusive), e.g. 00000000')
    range_parser.add_argument('end', help='Last ID (inclusive), e.g. ffffffff')
    range_parser.add_argument('action', choices=['view', 'export'], help='Print transcripts or write one JSON file each')
    range_parser.add_argument('--out-dir', default='chat_exports', help='Export directory (default: chat_exports)')
    range_parser.set_defaults(func=cmd_range)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        return args.func(args)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
