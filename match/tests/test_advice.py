from types import SimpleNamespace

import pytest

from match.advice import (
    FeedbackHeuristicAdvisor,
    MatchFeedback,
    OpenAIMatchAdvisor,
    RecommenderSummary,
    parse_advice_tags,
    sanitize_tags,
)
from match.exceptions import OracleUnavailable
from match.models import PotentialMatch
from match.oracle import CardSummary
from match.tests.test_oracle import fake_client


def complete_card(**overrides):
    fields = dict(
        id=1,
        name="Emma",
        bio="Weekend hiker and jazz fan who loves cooking for friends and planning long trips abroad.",
        interests=["hiking", "jazz", "cooking"],
        preferences={'age_min': 27, 'age_max': 38, 'seeking': ["long-term"]},
    )
    fields.update(overrides)
    return CardSummary(**fields)


def feedback(own_matcher=PotentialMatch.ACCEPTED, other_matcher=PotentialMatch.ACCEPTED, score=80, **fields):
    return MatchFeedback(
        other_name="Liam",
        compatibility_score=score,
        compatibility_reason="Both love jazz.",
        stage=PotentialMatch.STAGE_AWAITING_MATCHERS,
        own_matcher=own_matcher,
        other_matcher=other_matcher,
        **fields
    )


RECOMMENDER = RecommenderSummary(name="Sarah Miller", card_count=2)


def test_sanitize_tags():
    raw = ["  Widen   the age range ", "widen the age range", "", 42, "x" * 200, "Be specific"]
    tags = sanitize_tags(raw, limit=3)
    assert tags == ["Widen the age range", "x" * 80, "Be specific"]
    assert sanitize_tags(None, limit=3) == []


@pytest.mark.parametrize("reply", [
    '{"adviceTags": ["Add interests", "Mention hobbies"]}',
    '{"advice_tags": ["Add interests", "Mention hobbies"]}',
    '["Add interests", "Mention hobbies"]',
    'Sure! Here you go: {"adviceTags": ["Add interests", "Mention hobbies"]} Good luck.',
    'Advice: ["Add interests", "Mention hobbies", 3]',
])
def test_parse_advice_tags_accepts_reply_shapes(reply):
    assert parse_advice_tags(reply) == ["Add interests", "Mention hobbies"]


@pytest.mark.parametrize("reply", ["", "no json here", '{"tips": []}', '"just a string"'])
def test_parse_advice_tags_rejects_garbage(reply):
    with pytest.raises(OracleUnavailable):
        parse_advice_tags(reply)


def test_heuristic_flags_incomplete_card_without_history():
    card = complete_card(bio="Hi", interests=["jazz"], preferences={'age_min': 30, 'age_max': 32})
    tags = FeedbackHeuristicAdvisor().advise(card, RECOMMENDER, [])
    assert tags == [
        "List at least three interests",
        "Write a fuller bio",
        "Say what your friend is seeking",
        "Widen the preferred age range",
        "Run a match search to gather feedback",
    ]


def test_heuristic_reads_past_outcomes():
    history = [
        feedback(own_matcher=PotentialMatch.REJECTED, score=40),
        feedback(other_friend=PotentialMatch.REJECTED, own_friend=PotentialMatch.ACCEPTED, score=45),
        feedback(other_matcher=PotentialMatch.REJECTED, own_matcher=PotentialMatch.PENDING, score=30),
    ]
    tags = FeedbackHeuristicAdvisor().advise(complete_card(), RECOMMENDER, history)
    assert tags == [
        "Highlight what makes your friend stand out",
        "Favour candidates with shared interests",
        "Review pending suggestions",
    ]


def test_heuristic_with_healthy_card_and_history():
    tags = FeedbackHeuristicAdvisor().advise(complete_card(), RECOMMENDER, [feedback()])
    assert tags == ["Keep the card up to date"]


def test_openai_advisor_renders_feedback_and_parses_reply():
    client, completions = fake_client('{"adviceTags": ["Mention the jazz club"]}')
    advisor = OpenAIMatchAdvisor(api_key="sk-test", model="test-model", limit=4, client=client)

    tags = advisor.advise(complete_card(), RECOMMENDER, [feedback(own_matcher=PotentialMatch.REJECTED)])

    assert tags == ["Mention the jazz club"]
    request = completions.requests[0]
    assert request['model'] == "test-model"
    prompt = request['messages'][1]['content']
    assert "Sarah Miller, matchmaker for 2 friend(s)" in prompt
    assert "With Liam (score 80" in prompt
    assert "our matcher rejected" in prompt
    assert "at most 4 tags" in prompt


def test_openai_advisor_without_history_says_so():
    client, completions = fake_client('[]')
    OpenAIMatchAdvisor(api_key="sk-test", client=client).advise(complete_card(), RECOMMENDER, [])
    assert "No match attempts yet." in completions.requests[0]['messages'][1]['content']


def test_openai_advisor_transport_failure():
    client, _ = fake_client(error=ConnectionError("reset"))
    advisor = OpenAIMatchAdvisor(api_key="sk-test", client=client)
    with pytest.raises(OracleUnavailable):
        advisor.advise(complete_card(), RECOMMENDER, [])


def test_openai_advisor_without_key(settings):
    settings.OPENAI_API_KEY = ""
    with pytest.raises(OracleUnavailable):
        OpenAIMatchAdvisor().advise(complete_card(), RECOMMENDER, [])


def test_feedback_from_match_takes_the_card_side():
    match = SimpleNamespace(
        profile_card_a_id=1,
        profile_card_a=SimpleNamespace(friend_name="Emma"),
        profile_card_b=SimpleNamespace(friend_name="Liam"),
        compatibility_score=70,
        compatibility_reason="",
        stage=PotentialMatch.STAGE_DECLINED,
        status_matcher_a=PotentialMatch.ACCEPTED,
        status_matcher_b=PotentialMatch.ACCEPTED,
        status_friend_a=PotentialMatch.ACCEPTED,
        status_friend_b=PotentialMatch.REJECTED,
    )
    seen_from_b = MatchFeedback.from_match(match, card_id=2)
    assert seen_from_b.other_name == "Emma"
    assert seen_from_b.own_friend == PotentialMatch.REJECTED
    assert seen_from_b.declined_by_our_side
    assert not seen_from_b.declined_by_their_side
