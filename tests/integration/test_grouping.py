import pytest

from conftest import FakeClassifier
from core.grouping import TopicGrouper, aggregate, build_listing, parse_candidate_groups
from core.json_validator import JSONValidationError
from core.models.run import RunContext
from core.models.source import BiasCategory


@pytest.fixture
def corpus(make_source, make_article):
    left = make_source("Daily Ledger", BiasCategory.LEFT)
    right = make_source("Metro Post", BiasCategory.RIGHT)
    return [
        make_article(left, title="Transit bill passes", description="The council approved funding"),
        make_article(right, title="Council approves transit money", description=""),
    ]


def test_aggregate_preserves_source_then_item_order(make_source, make_article):
    a, b = make_source("A"), make_source("B")
    first = [make_article(a), make_article(a)]
    second = [make_article(b)]

    assert aggregate([first, [], second]) == first + second


def test_listing_is_numbered_from_one(corpus):
    listing = build_listing(corpus, excerpt_length=10)

    assert listing.splitlines() == [
        "1. Transit bill passes (Daily Ledger) - The counci...",
        "2. Council approves transit money (Metro Post) - ...",
    ]


def test_parse_shifts_indices_to_zero_based():
    groups = parse_candidate_groups('[{"title": "Transit", "article_indices": [1, 3], "bias_summary": " x "}]')

    assert len(groups) == 1
    assert groups[0].label == "Transit"
    assert groups[0].member_indices == [0, 2]
    assert groups[0].bias_summary == "x"


def test_parse_keeps_out_of_range_indices_for_the_gate():
    groups = parse_candidate_groups('[{"title": "T", "article_indices": [0, 2, 99]}]')

    assert groups[0].member_indices == [-1, 1, 98]


@pytest.mark.parametrize("raw", [
    '[{"topic": "Alias", "articleIndexes": [1, 2]}]',
    '[{"title": "Alias", "article_indexes": [1, 2]}]',
])
def test_parse_accepts_key_aliases(raw):
    groups = parse_candidate_groups(raw)

    assert groups[0].label == "Alias"
    assert groups[0].member_indices == [0, 1]


def test_parse_drops_non_integer_indices():
    groups = parse_candidate_groups('[{"title": "T", "article_indices": [1, "2", "two", 3.5, true, null]}]')

    assert groups[0].member_indices == [0, 1]


def test_parse_skips_malformed_entries():
    raw = '[{"article_indices": [1]}, "stray", {"title": "No indices"}, {"title": "Ok", "article_indices": [2]}]'

    groups = parse_candidate_groups(raw)

    assert [g.label for g in groups] == ["Ok"]


def test_parse_recovers_array_from_prose():
    raw = 'Sure, here you go:\n[{"title": "T", "article_indices": [1, 2]}]\nLet me know!'

    assert parse_candidate_groups(raw)[0].member_indices == [0, 1]


def test_parse_raises_when_no_array():
    with pytest.raises(JSONValidationError):
        parse_candidate_groups("I could not find any shared stories.")


def test_group_sends_listing_and_returns_groups(corpus):
    classifier = FakeClassifier([{"title": "Transit", "article_indices": [1, 2]}])
    ctx = RunContext()

    groups = TopicGrouper(classifier).group(ctx, corpus)

    assert [g.member_indices for g in groups] == [[0, 1]]
    assert classifier.listings[0].startswith("1. Transit bill passes (Daily Ledger)")
    assert "Identified 1 candidate topics" in ctx.logs
    assert ctx.errors == []


def test_unparseable_output_yields_no_groups(corpus):
    ctx = RunContext()

    groups = TopicGrouper(FakeClassifier("not json at all")).group(ctx, corpus)

    assert groups == []
    assert len(ctx.errors) == 1
    assert ctx.errors[0].startswith("Failed to group articles")


def test_classifier_failure_yields_no_groups(corpus, llm_error):
    ctx = RunContext()

    groups = TopicGrouper(FakeClassifier(error=llm_error)).group(ctx, corpus)

    assert groups == []
    assert ctx.errors == ["Topic grouping failed: LLM error from openai (gpt-4o)"]


def test_unexpected_classifier_exception_yields_no_groups(corpus):
    ctx = RunContext()

    groups = TopicGrouper(FakeClassifier(error=TypeError("bad"))).group(ctx, corpus)

    assert groups == []
    assert ctx.errors == ["Topic grouping failed: bad"]


def test_empty_corpus_skips_classifier():
    classifier = FakeClassifier()
    ctx = RunContext()

    assert TopicGrouper(classifier).group(ctx, []) == []
    assert classifier.listings == []
