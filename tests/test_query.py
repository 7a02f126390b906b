"""Tests for searching, sorting and limiting conversations."""

import pytest

from chat_archive.archive import load_archive
from chat_archive.query import (
    QueryParams,
    count_matches,
    matching_messages,
    query,
    relevance,
    sample_matches,
    transcript,
)

from tests.helpers import simple_conversation


def _ids(results) -> list[str]:
    return [conv.id for conv, _ in results]


@pytest.fixture
def archive():
    return load_archive([
        simple_conversation('old', 'The Investors Paradox', 100.0,
                            [('user', 'what is this'), ('assistant', 'a puzzle')]),
        simple_conversation('new', 'Cooking', 300.0,
                            [('user', 'paradox of choice, paradox again'), ('assistant', 'pasta')]),
        simple_conversation('mid', '', 200.0,
                            [('user', 'nothing here'), ('assistant', 'x' * 12000)]),
        simple_conversation('undated', 'paradox paradox', None,
                            [('user', 'hi'), ('assistant', 'y' * 300)]),
    ])


def test_empty_keyword_returns_everything_newest_first(archive) -> None:
    results = query(archive, QueryParams.create('', 'both', 'newest', 'all'))
    assert _ids(results) == ['new', 'mid', 'old', 'undated']


def test_oldest_puts_missing_timestamps_last(archive) -> None:
    results = query(archive, QueryParams.create('', 'both', 'oldest', 'all'))
    assert _ids(results) == ['old', 'mid', 'new', 'undated']


def test_nan_timestamp_sorts_as_missing() -> None:
    data = (
        '[{"id": "a", "create_time": 100, "mapping": {}},'
        ' {"id": "n", "create_time": NaN, "mapping": {}},'
        ' {"id": "b", "create_time": 300, "mapping": {}},'
        ' {"id": "c", "create_time": 200, "mapping": {}}]'
    )
    archive = load_archive(data)

    assert _ids(query(archive, QueryParams.create('', 'both', 'newest', 'all'))) == ['b', 'c', 'a', 'n']
    assert _ids(query(archive, QueryParams.create('', 'both', 'oldest', 'all'))) == ['a', 'c', 'b', 'n']


def test_title_scope_is_case_insensitive_substring(archive) -> None:
    results = query(archive, QueryParams.create('PARADOX', 'title', 'newest', 'all'))

    assert _ids(results) == ['old', 'undated']
    for conv, _ in results:
        assert 'paradox' in conv.title.lower()


def test_empty_title_never_matches_keyword(archive) -> None:
    assert 'mid' not in _ids(query(archive, QueryParams.create('x', 'title', 'newest', 'all')))


def test_content_scope(archive) -> None:
    results = query(archive, QueryParams.create('paradox', 'content', 'newest', 'all'))
    assert _ids(results) == ['new']


def test_both_scope(archive) -> None:
    results = query(archive, QueryParams.create('paradox', 'both', 'newest', 'all'))
    assert _ids(results) == ['new', 'old', 'undated']


def test_content_scope_only_searches_active_branch() -> None:
    raw = simple_conversation('c', 'T', 1.0, [('user', 'visible'), ('assistant', 'hidden')])
    raw['current_node'] = 'n0'
    archive = load_archive([raw])

    assert _ids(query(archive, QueryParams.create('visible', 'content'))) == ['c']
    assert query(archive, QueryParams.create('hidden', 'content')) == []


def test_longest_sort_and_limit(archive) -> None:
    results = query(archive, QueryParams.create('', 'both', 'longest', 25))

    conv, summary = results[0]
    assert conv.id == 'mid'
    assert summary.total_characters >= 12000
    assert summary.size_bucket == 'extra-large'


def test_longest_limit_one_between_two_sizes() -> None:
    archive = load_archive([
        simple_conversation('small', 'S', 1.0, [('user', 'a' * 300)]),
        simple_conversation('big', 'B', 2.0, [('user', 'b' * 12000)]),
    ])
    params = QueryParams(keyword='', scope='both', sort='longest', limit=None)

    results = query(archive, params)
    assert [(c.id, s.size_bucket) for c, s in results] == [('big', 'extra-large'), ('small', 'extra-small')]

    limited = query(archive, QueryParams.create('', 'both', 'longest', 1))
    assert [c.id for c, _ in limited] == ['big']


def test_most_relevant_counts_occurrences(archive) -> None:
    results = query(archive, QueryParams.create('paradox', 'both', 'most-relevant', 'all'))

    # undated: 2 in title; new: 2 in content; old: 1 in title. Ties go to newest.
    assert _ids(results) == ['new', 'undated', 'old']
    assert relevance(archive.get('old'), 'paradox', 'both') == 1


def test_most_relevant_without_keyword_is_newest(archive) -> None:
    relevant = query(archive, QueryParams.create('', 'both', 'most-relevant', 'all'))
    newest = query(archive, QueryParams.create('', 'both', 'newest', 'all'))
    assert _ids(relevant) == _ids(newest)


def test_limit_truncates() -> None:
    archive = load_archive([simple_conversation(f"c{i}", 'T', float(i)) for i in range(60)])

    assert len(query(archive, QueryParams.create('', limit=25))) == 25
    assert len(query(archive, QueryParams.create('', limit=50))) == 50
    assert len(query(archive, QueryParams.create('', limit='100'))) == 60
    assert len(query(archive, QueryParams.create('', limit='all'))) == 60


@pytest.mark.parametrize('kwargs, expected', [
    ({'scope': 'everything'}, QueryParams(scope='title')),
    ({'sort': 'random'}, QueryParams(sort='newest')),
    ({'limit': 7}, QueryParams(limit=7)),
    ({'limit': 0}, QueryParams(limit=25)),
    ({'limit': -3}, QueryParams(limit=25)),
    ({'limit': 'lots'}, QueryParams(limit=25)),
    ({'limit': True}, QueryParams(limit=25)),
    ({'limit': None}, QueryParams(limit=None)),
    ({'keyword': None}, QueryParams(keyword='')),
])
def test_out_of_range_params_fall_back(kwargs, expected) -> None:
    assert QueryParams.create(**kwargs) == expected


def test_directly_built_bad_params_do_not_raise(archive) -> None:
    results = query(archive, QueryParams(keyword='', scope='nope', sort='nope', limit=-1))
    assert _ids(results) == ['new', 'mid', 'old', 'undated']


def test_no_results_is_empty_list(archive) -> None:
    assert query(archive, QueryParams.create('zebra', 'both')) == []


def test_count_matches(archive) -> None:
    assert count_matches(archive, 'paradox') == {'title': 2, 'content': 1, 'both': 3}


def test_transcript_role_filter(archive) -> None:
    conv = archive.get('old')

    assert [m.role for m in transcript(conv, 'user')] == ['user']
    assert [m.role for m in transcript(conv, 'assistant')] == ['assistant']
    assert [m.role for m in transcript(conv, 'both')] == ['user', 'assistant']
    assert [m.role for m in transcript(conv, 'bogus')] == ['user', 'assistant']


def test_matching_messages_and_samples(archive) -> None:
    new = archive.get('new')
    assert [m.text for m in matching_messages(new, 'PARADOX')] == ['paradox of choice, paradox again']
    assert matching_messages(new, '') == []

    long_match = simple_conversation('long', 'L', 5.0, [('user', 'paradox ' * 20)])
    convs = [new, load_archive([long_match]).get('long')]
    samples = sample_matches(convs, 'paradox', count=1)
    assert [(c.id, m.role) for c, m in samples] == [('long', 'user')]
    assert len(sample_matches(convs, 'paradox')) == 2
