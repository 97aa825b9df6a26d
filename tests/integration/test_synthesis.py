import json
import logging

import pytest

from conftest import SIX_PARAGRAPHS, FakeWriter, make_synthesis_json
from core.exceptions import CapabilityOutputError
from core.models.run import RunContext
from core.models.source import BiasCategory
from core.models.topic import BiasCounts, Topic, ValidatedGroup
from core.synthesis import TopicSynthesizer, parse_synthesis, split_sections


@pytest.fixture
def validated(make_source, make_article):
    left = make_source("Daily Ledger", BiasCategory.LEFT)
    right = make_source("Metro Post", BiasCategory.RIGHT)
    articles = [
        make_article(left, minutes_ago=30),
        make_article(right, image_url="https://cdn.example.com/right.jpg", minutes_ago=5),
    ]
    return ValidatedGroup(label="Transit bill", articles=articles, bias_counts=BiasCounts(left=1, right=1))


def test_parse_valid_output():
    synthesis = parse_synthesis(make_synthesis_json())

    assert len(synthesis.sections) == 6
    assert synthesis.narrative == SIX_PARAGRAPHS
    assert synthesis.section("lede") == "Parliament passed the transit funding bill on Monday."
    assert synthesis.section("whats_next") == "The bill now moves to the senate for review."
    assert synthesis.key_points == ["Bill passed", "Rail funding increased"]


def test_parse_accepts_fenced_output():
    raw = "```json\n" + make_synthesis_json() + "\n```"

    assert parse_synthesis(raw).common_ground == "All outlets agree the bill passed."


@pytest.mark.parametrize("field", ["ai_summary", "left_emphasis", "right_emphasis", "common_ground",
                                   "key_points", "tags"])
def test_missing_field_rejected(field):
    payload = json.loads(make_synthesis_json())
    del payload[field]

    with pytest.raises(CapabilityOutputError) as excinfo:
        parse_synthesis(json.dumps(payload))

    assert field in excinfo.value.context["problem"]


@pytest.mark.parametrize("overrides", [
    {"key_points": "Bill passed"},
    {"tags": ["ok", 3]},
    {"ai_summary": ["not", "text"]},
    {"common_ground": "   "},
])
def test_wrong_field_types_rejected(overrides):
    with pytest.raises(CapabilityOutputError):
        parse_synthesis(make_synthesis_json(**overrides))


def test_non_json_rejected():
    with pytest.raises(CapabilityOutputError) as excinfo:
        parse_synthesis("The sources broadly agree that the bill passed.")

    assert excinfo.value.context["raw_excerpt"].startswith("The sources")


def test_split_sections_ignores_extra_blank_lines():
    assert split_sections("\n\nOne.\n\n\n  \nTwo.\n  \n\nThree.\n") == ["One.", "Two.", "Three."]


def test_synthesizer_hands_members_to_writer(validated):
    writer = FakeWriter()

    synthesis = TopicSynthesizer(writer).synthesize(RunContext(), validated)

    assert synthesis is not None
    assert writer.calls == [validated.articles]


def test_unparseable_synthesis_skips_topic(validated):
    ctx = RunContext()

    result = TopicSynthesizer(FakeWriter(["no json here"])).synthesize(ctx, validated)

    assert result is None
    assert len(ctx.errors) == 1
    assert ctx.errors[0].startswith("Failed to parse analysis for Transit bill")


def test_writer_failure_skips_topic(validated, llm_error):
    ctx = RunContext()

    result = TopicSynthesizer(FakeWriter([llm_error])).synthesize(ctx, validated)

    assert result is None
    assert ctx.errors == ["Error processing Transit bill: LLM error from openai (gpt-4o)"]


def test_wrong_paragraph_count_is_kept(validated, caplog):
    ctx = RunContext()
    caplog.set_level(logging.WARNING, logger="core.synthesis")

    synthesis = TopicSynthesizer(FakeWriter([make_synthesis_json(ai_summary="One.\n\nTwo.")])).synthesize(
        ctx, validated)

    assert synthesis.sections == ["One.", "Two."]
    assert synthesis.section("context") is None
    assert ctx.errors == []
    assert "has 2 paragraphs, expected 6" in caplog.text


def test_topic_from_group(validated):
    topic = Topic.from_group(validated, parse_synthesis(make_synthesis_json()))

    assert topic.headline == "Transit bill"
    assert topic.tags == ["budget", "transit"]
    assert topic.thumbnail_url == "https://cdn.example.com/right.jpg"
    assert topic.published_at == validated.articles[0].published_at
    assert topic.bias_counts.to_dict() == {"left": 1, "center": 0, "right": 1}
    assert topic.is_featured is False
