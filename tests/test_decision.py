"""Tests for the decision engine and strategy chain."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sitescout.decision import (
    AIAdvisorStrategy,
    DecisionPipeline,
    HeuristicStrategy,
    build_pipeline,
    detect_blocker,
    find_best_action,
    is_content_page,
)
from sitescout.models import (
    ActionDecision,
    AIActionDecision,
    BlockingState,
    ButtonInfo,
    Confidence,
    LinkInfo,
    PageState,
    Priority,
)


def make_state(**kwargs) -> PageState:
    kwargs.setdefault("url", "https://example.com/")
    return PageState(**kwargs)


class TestDetectBlocker:
    """Tests for detect_blocker."""

    def test_clear_page_has_no_blocker(self):
        """A clear page returns None whatever its buttons say."""
        state = make_state(
            buttons=[ButtonInfo("I am 18 or older"), ButtonInfo("Accept all")],
            visible_text="this is an adult website, we use cookies",
        )
        assert detect_blocker(state) is None

    def test_age_gate_orders_by_static_priority(self):
        """Matching labels keep the table order, most specific first."""
        state = make_state(
            blocking_state=BlockingState.AGE_GATE,
            buttons=[ButtonInfo("Decline"), ButtonInfo("I am 18 or older")],
        )

        blocker = detect_blocker(state)

        assert blocker.type == BlockingState.AGE_GATE
        assert blocker.action_texts[0] == "I am 18 or older"
        # "I am 18" is a substring of the same button
        assert "I am 18" in blocker.action_texts
        assert "Continue" not in blocker.action_texts
        assert blocker.is_fallback is False

    def test_matching_is_case_insensitive_substring(self):
        """Labels match buttons case-insensitively by containment."""
        state = make_state(
            blocking_state=BlockingState.COOKIE_BANNER,
            buttons=[ButtonInfo("ACCEPT ALL COOKIES")],
        )

        blocker = detect_blocker(state)

        assert blocker.action_texts[0] == "Accept all"
        assert "Accept" in blocker.action_texts

    def test_fallback_when_no_button_matches(self):
        """Without matches the first three static labels are used and flagged."""
        state = make_state(
            blocking_state=BlockingState.LOGIN_WALL,
            buttons=[ButtonInfo("Sign in")],
        )

        blocker = detect_blocker(state)

        assert blocker.action_texts == ("Close", "Skip", "Maybe later")
        assert blocker.is_fallback is True

    def test_fallback_with_no_buttons_at_all(self):
        """An age gate with no buttons still yields fallback candidates."""
        state = make_state(blocking_state=BlockingState.AGE_GATE)

        blocker = detect_blocker(state)

        assert blocker.action_texts == ("I am 18 or older", "I am over 18", "I'm over 18")
        assert blocker.is_fallback is True


class TestFindBestAction:
    """Tests for find_best_action."""

    def test_prominent_keyword_button_is_high_priority(self):
        """A prominent "Watch Now" button wins with high priority."""
        state = make_state(buttons=[ButtonInfo("Watch Now", is_prominent=True)])

        decision = find_best_action(state)

        assert decision.target_text == "Watch Now"
        assert decision.priority == Priority.HIGH

    def test_prominent_button_beats_earlier_plain_button(self):
        """Prominence is checked across all buttons before plain matches."""
        state = make_state(buttons=[
            ButtonInfo("Play trailer"),
            ButtonInfo("Start watching", is_prominent=True),
        ])

        decision = find_best_action(state)

        assert decision.target_text == "Start watching"
        assert decision.priority == Priority.HIGH

    def test_non_prominent_keyword_button_is_medium(self):
        """A keyword button that is not prominent is never high priority."""
        state = make_state(buttons=[ButtonInfo("Join the stream")])

        decision = find_best_action(state)

        assert decision.target_text == "Join the stream"
        assert decision.priority == Priority.MEDIUM

    def test_prominent_button_without_keyword_is_ignored(self):
        """Prominence alone does not make a candidate."""
        state = make_state(buttons=[ButtonInfo("Pricing", is_prominent=True)])
        assert find_best_action(state) is None

    def test_internal_content_link(self):
        """Internal links to content paths are the last resort."""
        state = make_state(links=[
            LinkInfo("Elsewhere", "https://other.com/video/1", is_internal=False),
            LinkInfo("Latest", "https://example.com/videos/latest", is_internal=True),
        ])

        decision = find_best_action(state)

        assert decision.target_text == "Latest"
        assert decision.priority == Priority.MEDIUM

    def test_empty_page_returns_none(self):
        """No buttons, no links, plain URL: nothing to do."""
        state = make_state()

        assert find_best_action(state) is None
        assert is_content_page(state) is False


class TestIsContentPage:
    """Tests for is_content_page."""

    def test_video_is_always_content(self):
        """A video element marks content regardless of other fields."""
        state = make_state(
            has_video=True,
            blocking_state=BlockingState.AGE_GATE,
            url="https://example.com/",
        )
        assert is_content_page(state) is True

    def test_canvas_needs_enough_text(self):
        """Canvas pages count only with more than 500 characters of text."""
        assert is_content_page(make_state(has_canvas=True, visible_text="x" * 500)) is False
        assert is_content_page(make_state(has_canvas=True, visible_text="x" * 501)) is True

    @pytest.mark.parametrize("path", ["/video/12", "/watch?v=1", "/session/9", "/LIVE/now"])
    def test_url_patterns(self, path):
        """Content URL fragments are matched case-insensitively."""
        assert is_content_page(make_state(url=f"https://example.com{path}")) is True

    def test_videos_listing_is_not_content(self):
        """A bare /videos listing URL is not content."""
        assert is_content_page(make_state(url="https://example.com/videos")) is False


class TestStrategyChain:
    """Tests for the heuristic-then-AI pipeline."""

    @pytest.fixture
    def advisor(self):
        advisor = MagicMock()
        advisor.decide = AsyncMock()
        return advisor

    @pytest.mark.asyncio
    async def test_heuristic_wins_without_consulting_ai(self, advisor):
        """A conclusive heuristic result short-circuits the chain."""
        pipeline = build_pipeline(advisor)
        state = make_state(buttons=[ButtonInfo("Enter site", is_prominent=True)])

        decision = await pipeline.decide(state, b"png")

        assert decision.target_text == "Enter site"
        advisor.decide.assert_not_called()

    @pytest.mark.asyncio
    async def test_ai_consulted_when_heuristic_inconclusive(self, advisor):
        """The AI decision is used when heuristics find nothing."""
        advisor.decide.return_value = AIActionDecision("Gallery", "looks like content", Confidence.HIGH)
        pipeline = build_pipeline(advisor)

        decision = await pipeline.decide(make_state(), b"png")

        assert decision == ActionDecision("Gallery", "AI: looks like content", Priority.HIGH)

    @pytest.mark.asyncio
    async def test_ai_skipped_without_screenshot(self, advisor):
        """The AI strategy needs a screenshot."""
        pipeline = build_pipeline(advisor)

        assert await pipeline.decide(make_state(), None) is None
        advisor.decide.assert_not_called()

    @pytest.mark.asyncio
    async def test_low_confidence_ai_is_inconclusive(self, advisor):
        """Low-confidence AI answers are ignored."""
        advisor.decide.return_value = AIActionDecision("Gallery", "guess", Confidence.LOW)
        assert await AIAdvisorStrategy(advisor).decide(make_state(), b"png") is None

    @pytest.mark.asyncio
    async def test_null_target_is_inconclusive(self, advisor):
        """target=None means no further action is needed."""
        advisor.decide.return_value = AIActionDecision(None, "already on content", Confidence.HIGH)
        assert await AIAdvisorStrategy(advisor).decide(make_state(), b"png") is None

    @pytest.mark.asyncio
    async def test_pipeline_without_advisor(self):
        """build_pipeline() without an advisor is heuristics only."""
        pipeline = build_pipeline()

        assert [type(s) for s in pipeline.strategies] == [HeuristicStrategy]
        assert await pipeline.decide(make_state(), b"png") is None

    @pytest.mark.asyncio
    async def test_first_conclusive_strategy_wins(self):
        """Strategies are tried in order."""
        first = MagicMock()
        first.name = "first"
        first.decide = AsyncMock(return_value=None)
        second = MagicMock()
        second.name = "second"
        second.decide = AsyncMock(return_value=ActionDecision("A", "r", Priority.LOW))
        third = MagicMock()
        third.decide = AsyncMock()

        decision = await DecisionPipeline([first, second, third]).decide(make_state(), None)

        assert decision.target_text == "A"
        first.decide.assert_awaited_once()
        third.decide.assert_not_called()
