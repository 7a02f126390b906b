"""Tests for per-conversation summaries."""

import pytest

from chat_archive.graph import read_nodes
from chat_archive.summary import size_bucket, summarize

from tests.helpers import raw_message, raw_node


@pytest.mark.parametrize('chars, bucket', [
    (0, 'extra-small'),
    (499, 'extra-small'),
    (500, 'small'),
    (1999, 'small'),
    (2000, 'medium'),
    (5000, 'large'),
    (9999, 'large'),
    (10000, 'extra-large'),
    (12000, 'extra-large'),
])
def test_size_bucket_thresholds(chars: int, bucket: str) -> None:
    assert size_bucket(chars) == bucket


def test_summary_counts_every_node_not_only_active_branch() -> None:
    mapping = {
        'root': raw_node(None, None, ['u']),
        'u': raw_node(raw_message('user', ['one two three']), 'root', ['a1', 'a2']),
        'a1': raw_node(raw_message('assistant', ['four']), 'u', []),
        'a2': raw_node(raw_message('assistant', ['five six']), 'u', []),
        'empty': raw_node(raw_message('system', ['']), 'root', []),
    }
    summary = summarize(read_nodes(mapping))

    assert summary.message_count == 3
    assert summary.role_counts == {'user': 1, 'assistant': 2}
    assert summary.total_characters == len('one two three') + len('four') + len('five six')
    assert summary.total_words == 6
    assert summary.node_count == 5
    assert summary.branch_count == 3
    assert summary.user_messages == 1
    assert summary.assistant_messages == 2
    assert summary.system_messages == 0


def test_flags_for_code_and_non_text() -> None:
    image = {'content_type': 'image_asset_pointer'}
    mapping = {
        'a': raw_node(raw_message('user', [image], content_type='multimodal_text')),
        'b': raw_node({'author': {'role': 'assistant'}, 'content': {'content_type': 'code', 'text': ''}}),
    }
    summary = summarize(read_nodes(mapping))

    assert summary.has_code
    assert summary.has_non_text
    # Neither message has text, so neither is counted.
    assert summary.message_count == 0


def test_plain_text_has_no_flags() -> None:
    summary = summarize(read_nodes({'a': raw_node(raw_message('user', ['hi']))}))
    assert not summary.has_code
    assert not summary.has_non_text
    assert summary.size_bucket == 'extra-small'


def test_empty_graph_summary() -> None:
    summary = summarize({})
    assert summary.message_count == 0
    assert summary.total_words == 0
    assert summary.role_counts == {}
