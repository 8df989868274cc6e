"""Tests for intent detection, keyword scoring and the heuristic brainstorm fallback."""
from activitymind.schemas.recommend import Organization
from activitymind.services.recommend import rules


def test_detect_signals_matches_substrings_case_insensitively():
    """Test signal groups are detected from free text."""
    signals = rules.detect_signals("Need a QUICK cheap Zoom game to relax")

    assert signals.remote
    assert signals.budget
    assert signals.short
    assert signals.calm
    assert not signals.energetic
    assert signals.active() == ["remote", "budget", "short", "calm"]


def test_detect_signals_empty_input():
    """Test empty input produces no signals."""
    assert rules.detect_signals("").active() == []


def test_tokenize_drops_single_characters():
    """Test tokens shorter than two characters are ignored."""
    assert rules.tokenize("a Trivia  night I") == ["trivia", "night"]


def test_score_activity_weights(make_activity):
    """Test name hits weigh 10, description hits 5, and each matching signal adds 5."""
    activity = make_activity(
        1,
        name="Trivia Night",
        description="A fast quiz for remote teams",
        estimated_cost="Low",
        remote_compatible=True,
    )
    signals = rules.detect_signals("remote trivia quiz")
    tokens = rules.tokenize("remote trivia quiz")

    # trivia in name (10), quiz + remote in description (5 + 5), remote bonus (5)
    assert rules.score_activity(activity, tokens, signals) == 25


def test_budget_bonus_only_for_low_cost(make_activity):
    """Test the budget bonus applies to Low-cost activities only."""
    signals = rules.IntentSignals(budget=True)
    cheap = make_activity(1, name="X", description="", estimated_cost="Low")
    pricey = make_activity(2, name="X", description="", estimated_cost="High")

    assert rules.score_activity(cheap, [], signals) == rules.SIGNAL_BONUS
    assert rules.score_activity(pricey, [], signals) == 0


def test_top_scored_breaks_ties_by_catalog_order(make_activity):
    """Test equal scores keep the catalog order."""
    catalog = [
        make_activity(1, name="Yoga Flow", description=""),
        make_activity(2, name="Yoga Stretch", description=""),
        make_activity(3, name="Chair Yoga", description=""),
    ]
    scored = rules.score_activities(catalog, "yoga", rules.IntentSignals())

    assert [s.activity.id for s in rules.top_scored(scored)] == [1, 2]


def test_fallback_prefixes_virtual_and_budget(make_activity):
    """Test quick cheap virtual icebreaker yields at most two adapted drafts with prefixes."""
    catalog = [
        make_activity(1, name="Icebreaker Bingo", description="Find someone who...",
                      category="Icebreaker", estimated_cost="Medium", remote_compatible=False),
        make_activity(2, name="Virtual Icebreaker Quiz", description="A quick online quiz",
                      category="Icebreaker", estimated_cost="Medium", remote_compatible=True),
        make_activity(3, name="Hiking Day", description="Outdoor trip",
                      estimated_cost="High"),
    ]
    user_input = "quick cheap virtual icebreaker"
    signals = rules.detect_signals(user_input)
    scored = rules.score_activities(catalog, user_input, signals)

    message, drafts = rules.fallback_suggest(scored, signals, None, catalog)

    assert 1 <= len(drafts) <= 2
    names = {d.name for d in drafts}
    assert "[Virtual] Icebreaker Bingo" in names
    assert "[Budget-Friendly] Virtual Icebreaker Quiz" in names
    assert all(d.id.startswith("draft-") for d in drafts)
    assert drafts[0].name in message


def test_fallback_does_not_mutate_catalog(make_activity):
    """Test adapting a draft leaves the catalog activity untouched."""
    original = make_activity(1, name="Bingo", description="Classic", remote_compatible=False)
    snapshot = original.model_dump()
    signals = rules.IntentSignals(remote=True)
    org = Organization(company_name="Acme", industry="Fintech")

    draft = rules.adapt_activity(original, signals, org)

    assert original.model_dump() == snapshot
    assert draft.name == "[Virtual] Bingo"
    assert draft.remote_compatible is True
    assert draft.description == "Tailored for Acme: Remote-adapted version: Classic"
    assert draft.source_activity_id == 1


def test_remote_adaptation_wins_over_budget(make_activity):
    """Test only the virtual adaptation is applied when both signals fire."""
    activity = make_activity(1, name="Escape Room", estimated_cost="High", remote_compatible=False)

    draft = rules.adapt_activity(activity, rules.IntentSignals(remote=True, budget=True), None)

    assert draft.name == "[Virtual] Escape Room"
    assert draft.estimated_cost == "High"


def test_fallback_without_matches_uses_remote_compatible_catalog_head(make_activity):
    """Test zero-score input falls back to the first remote-capable activities."""
    catalog = [
        make_activity(1, name="Field Day", description="", remote_compatible=False),
        make_activity(2, name="Online Pictionary", description="", remote_compatible=True),
        make_activity(3, name="Remote Coffee", description="", remote_compatible=True),
        make_activity(4, name="Zoom Bingo", description="", remote_compatible=True),
    ]
    signals = rules.IntentSignals(remote=True)
    scored = rules.score_activities(catalog, "zz", signals)
    # remote bonus gives every remote-compatible activity a positive score
    assert [s.activity.id for s in rules.top_scored([s for s in scored if s.score > 0])] == [2, 3]

    _, drafts = rules.fallback_suggest(
        rules.score_activities(catalog, "zz", rules.IntentSignals()),
        signals,
        None,
        catalog,
    )

    assert [d.source_activity_id for d in drafts] == [2, 3]


def test_fallback_message_mentions_company_and_industry(make_activity):
    """Test the fallback message is personalized."""
    catalog = [make_activity(1, name="Gratitude Wall", description="")]
    org = Organization(company_name="Acme", industry="Fintech")
    scored = rules.score_activities(catalog, "gratitude", rules.IntentSignals())

    message, drafts = rules.fallback_suggest(scored, rules.IntentSignals(), org, catalog)

    assert "Acme in Fintech" in message
    assert '"Gratitude Wall"' in message
    assert drafts[0].description.startswith("Tailored for Acme: ")


def test_fallback_with_empty_catalog():
    """Test an empty catalog still produces a message and no drafts."""
    message, drafts = rules.fallback_suggest([], rules.IntentSignals(), None, [])

    assert drafts == []
    assert "your team" in message


def test_fallback_is_deterministic(make_activity):
    """Test the same input yields identical drafts, ids included."""
    catalog = [make_activity(1, name="Escape Room", estimated_cost="High", remote_compatible=False)]
    signals = rules.detect_signals("virtual escape room")
    org = Organization(company_name="Acme")
    scored = rules.score_activities(catalog, "virtual escape room", signals)

    first = rules.fallback_suggest(scored, signals, org, catalog)
    second = rules.fallback_suggest(scored, signals, org, catalog)

    assert first[0] == second[0]
    assert [d.model_dump() for d in first[1]] == [d.model_dump() for d in second[1]]
    assert first[1][0].id.startswith("draft-")


def test_draft_id_depends_on_adaptation(make_activity):
    """Test different adaptations of one activity get different draft ids."""
    activity = make_activity(1, name="Escape Room", estimated_cost="High", remote_compatible=False)

    virtual = rules.adapt_activity(activity, rules.IntentSignals(remote=True), None)
    budget = rules.adapt_activity(activity, rules.IntentSignals(budget=True), None)
    plain = rules.adapt_activity(activity, rules.IntentSignals(), None)

    assert len({virtual.id, budget.id, plain.id}) == 3
