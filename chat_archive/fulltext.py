"""
Tantivy-based full-text index over the messages of a loaded Archive.

Complements the substring query engine with ranked word search across every
message that has text, including messages on inactive branches.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

import tantivy

from .archive import Archive

_logger = logging.getLogger(__name__)

SEARCH_FIELDS = ['text', 'title']


@dataclass(frozen=True)
class MessageHit:
    conv_id: str
    title: str
    node_id: str
    role: str
    text: str
    score: float


class MessageSearchIndex:
    """Full-text index of message text, backed by a temporary tantivy directory."""

    def __init__(self, index_dir: str | None = None):
        self.index_dir = index_dir or tempfile.mkdtemp(prefix='chat_archive_index_')
        self.index = None
        self.message_count = 0
        self._setup_index()

    def _setup_index(self):
        schema_builder = tantivy.SchemaBuilder()
        schema_builder.add_text_field('node_id', stored=True)
        schema_builder.add_text_field('conv_id', stored=True)
        schema_builder.add_text_field('title', stored=True)
        schema_builder.add_text_field('role', stored=True)
        schema_builder.add_text_field('text', stored=True)
        schema = schema_builder.build()

        self.index = tantivy.Index(schema, path=self.index_dir)

    def add_archive(self, archive: Archive) -> int:
        """Index every message with text; returns the number indexed."""
        writer = self.index.writer()
        count = 0

        for conv in archive.all():
            for node_id, node in conv.nodes.items():
                if not node.has_content:
                    continue
                writer.add_document(tantivy.Document(
                    node_id=node_id,
                    conv_id=conv.id,
                    title=conv.title,
                    role=node.role,
                    text=node.text,
                ))
                count += 1

        writer.commit()
        self.index.reload()
        self.message_count += count
        _logger.info('Indexed %d messages in %s', count, self.index_dir)
        return count

    def _parse(self, query_str: str):
        try:
            return self.index.parse_query(query_str, SEARCH_FIELDS)
        except ValueError:
            # Unparseable input (stray quotes, operators) is searched as a phrase.
            escaped = query_str.replace('"', ' ')
            return self.index.parse_query(f'"{escaped}"', SEARCH_FIELDS)

    def _hits(self, query, limit: int) -> list[MessageHit]:
        searcher = self.index.searcher()
        hits = []
        for score, doc_addr in searcher.search(query, limit).hits:
            doc = searcher.doc(doc_addr)
            hits.append(MessageHit(
                conv_id=doc['conv_id'][0],
                title=doc['title'][0],
                node_id=doc['node_id'][0],
                role=doc['role'][0],
                text=doc['text'][0],
                score=score,
            ))
        return hits

    def search(self, query_str: str, limit: int = 100) -> list[MessageHit]:
        """Ranked message hits across the archive; blank queries return nothing."""
        if not query_str.strip():
            return []
        return self._hits(self._parse(query_str), limit)

    def search_in_conversation(self, conv_id: str, query_str: str, limit: int = 1000) -> list[MessageHit]:
        """Message hits within one conversation, scoped in the query itself."""
        if not query_str.strip():
            return []
        conv_term = conv_id.replace('"', ' ')
        try:
            query = self.index.parse_query(f'conv_id:"{conv_term}" AND ({query_str})', SEARCH_FIELDS)
        except ValueError:
            escaped = query_str.replace('"', ' ')
            query = self.index.parse_query(f'conv_id:"{conv_term}" AND "{escaped}"', SEARCH_FIELDS)
        # conv_id is tokenized, so the phrase can also match ids that merely contain it.
        return [h for h in self._hits(query, limit) if h.conv_id == conv_id]

    def cleanup(self):
        """Remove temporary index directory."""
        self.index = None
        if self.index_dir and Path(self.index_dir).exists():
            shutil.rmtree(self.index_dir, ignore_errors=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()


def build_message_index(archive: Archive, index_dir: str | None = None) -> MessageSearchIndex:
    index = MessageSearchIndex(index_dir)
    index.add_archive(archive)
    return index
