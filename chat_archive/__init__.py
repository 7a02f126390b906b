"""
chat_archive

Load a ChatGPT conversations.json export into memory and search, sort and
view its conversations.

    from chat_archive import load_archive_file, query, QueryParams

    archive = load_archive_file('conversations.json')
    for conv, summary in query(archive, QueryParams.create('paradox', scope='both')):
        print(conv.title, summary.size_bucket)
"""

from .archive import Archive, ArchiveStats, SkippedConversation, load_archive, load_archive_file
from .errors import ChatArchiveError, ConversationSkipped, ParseError
from .formatter import MessageRecord, ResultRecord, format_message, format_result, format_results
from .graph import parse_conversation, read_nodes
from .linearize import active_path, count_branches, find_all_branches, linearize
from .model import Conversation, ConversationSummary, MessageNode
from .query import QueryParams, query, transcript
from .session import Session
from .summary import size_bucket, summarize

__all__ = [
    'Archive',
    'ArchiveStats',
    'ChatArchiveError',
    'Conversation',
    'ConversationSkipped',
    'ConversationSummary',
    'MessageNode',
    'MessageRecord',
    'ParseError',
    'QueryParams',
    'ResultRecord',
    'Session',
    'SkippedConversation',
    'active_path',
    'count_branches',
    'find_all_branches',
    'format_message',
    'format_result',
    'format_results',
    'linearize',
    'load_archive',
    'load_archive_file',
    'parse_conversation',
    'query',
    'read_nodes',
    'size_bucket',
    'summarize',
    'transcript',
]
