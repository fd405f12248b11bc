"""
Decision engine for the crawl loop.

Pure functions over PageState decide whether a blocker is present, what to
click next, and whether the page is already content. A small strategy chain
lets the orchestrator consult the heuristics first and the AI advisor second.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from sitescout.constants import (
    AGE_GATE_DISMISS_TEXTS,
    BLOCKER_FALLBACK_COUNT,
    CANVAS_TEXT_THRESHOLD,
    CONTENT_ACTION_KEYWORDS,
    CONTENT_LINK_PATTERNS,
    CONTENT_URL_PATTERNS,
    COOKIE_DISMISS_TEXTS,
    LOGIN_SKIP_TEXTS,
)
from sitescout.models import (
    ActionDecision,
    BlockerInfo,
    BlockingState,
    Confidence,
    PageState,
    Priority,
)

logger = logging.getLogger(__name__)


DISMISS_TABLES: Dict[BlockingState, List[str]] = {
    BlockingState.AGE_GATE: AGE_GATE_DISMISS_TEXTS,
    BlockingState.COOKIE_BANNER: COOKIE_DISMISS_TEXTS,
    BlockingState.LOGIN_WALL: LOGIN_SKIP_TEXTS,
}


def detect_blocker(state: PageState) -> Optional[BlockerInfo]:
    """
    Work out how to dismiss the blocker on the page, if any.

    Labels from the static table are kept, in table order, when some button
    contains them (case-insensitive). If none match, the first few table
    labels are returned anyway and the result is flagged as a fallback.

    Args:
        state: Current page state

    Returns:
        BlockerInfo, or None when the page is clear
    """
    if state.blocking_state == BlockingState.CLEAR:
        return None

    table = DISMISS_TABLES.get(state.blocking_state, [])
    button_texts = [b.text.lower() for b in state.buttons]

    available = [
        label for label in table
        if any(label.lower() in text for text in button_texts)
    ]

    is_fallback = False
    if not available and table:
        available = table[:BLOCKER_FALLBACK_COUNT]
        is_fallback = True

    logger.info(
        f"Detected blocker: {state.blocking_state.value}, actions: {', '.join(available)}"
        + (" (fallback)" if is_fallback else "")
    )

    return BlockerInfo(
        type=state.blocking_state,
        action_texts=tuple(available),
        is_fallback=is_fallback,
    )


def _content_keyword(text: str) -> Optional[str]:
    lowered = text.lower()
    for keyword in CONTENT_ACTION_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def find_best_action(state: PageState) -> Optional[ActionDecision]:
    """
    Pick the element most likely to lead to content.

    Priority order:
    1. Prominent button whose text contains a content keyword (high)
    2. Any button whose text contains a content keyword (medium)
    3. Internal link whose href looks like a content path (medium)

    Returns:
        ActionDecision, or None if nothing qualifies
    """
    for button in state.buttons:
        if not button.is_prominent:
            continue
        keyword = _content_keyword(button.text)
        if keyword:
            return ActionDecision(
                target_text=button.text,
                reason=f"Found prominent action button with keyword: {keyword}",
                priority=Priority.HIGH,
            )

    for button in state.buttons:
        if _content_keyword(button.text):
            return ActionDecision(
                target_text=button.text,
                reason=f"Found action button: {button.text}",
                priority=Priority.MEDIUM,
            )

    for link in state.links:
        if link.is_internal and any(p in link.href for p in CONTENT_LINK_PATTERNS):
            return ActionDecision(
                target_text=link.text,
                reason=f"Found content link: {link.href}",
                priority=Priority.MEDIUM,
            )

    return None


def is_content_page(state: PageState) -> bool:
    """Heuristic check for a page that already shows content."""
    if state.has_video:
        logger.info("Content page detected: video element found")
        return True

    if state.has_canvas and len(state.visible_text) > CANVAS_TEXT_THRESHOLD:
        logger.info("Content page detected: canvas with text")
        return True

    url = state.url.lower()
    if any(pattern in url for pattern in CONTENT_URL_PATTERNS):
        logger.info("Content page detected: URL pattern")
        return True

    return False


# =============================================================================
# Strategy chain
# =============================================================================

class DecisionStrategy(ABC):
    """A source of navigation decisions."""

    name = "strategy"

    @abstractmethod
    async def decide(
        self, state: PageState, screenshot: Optional[bytes]
    ) -> Optional[ActionDecision]:
        """Return a decision, or None when inconclusive."""


class HeuristicStrategy(DecisionStrategy):
    """Keyword and structure heuristics. Ignores the screenshot."""

    name = "heuristic"

    async def decide(self, state, screenshot):
        return find_best_action(state)


CONFIDENCE_TO_PRIORITY = {
    Confidence.HIGH: Priority.HIGH,
    Confidence.MEDIUM: Priority.MEDIUM,
    Confidence.LOW: Priority.LOW,
}


class AIAdvisorStrategy(DecisionStrategy):
    """
    Asks the AI advisor what to click.

    Inconclusive when there is no screenshot, when the advisor says no
    action is needed, or when it answers with low confidence.
    """

    name = "ai"

    def __init__(self, advisor):
        self.advisor = advisor

    async def decide(self, state, screenshot):
        if screenshot is None:
            return None

        ai_decision = await self.advisor.decide(state, screenshot)
        if ai_decision.target is None or ai_decision.confidence == Confidence.LOW:
            logger.info(f"AI advisor inconclusive: {ai_decision.reason}")
            return None

        return ActionDecision(
            target_text=ai_decision.target,
            reason=f"AI: {ai_decision.reason}",
            priority=CONFIDENCE_TO_PRIORITY[ai_decision.confidence],
        )


class DecisionPipeline:
    """Tries strategies in order. The first conclusive one wins."""

    def __init__(self, strategies: Sequence[DecisionStrategy]):
        self.strategies = list(strategies)

    async def decide(
        self, state: PageState, screenshot: Optional[bytes] = None
    ) -> Optional[ActionDecision]:
        for strategy in self.strategies:
            decision = await strategy.decide(state, screenshot)
            if decision is not None:
                logger.info(
                    f"Decision from {strategy.name}: click '{decision.target_text}' "
                    f"({decision.priority.value}) - {decision.reason}"
                )
                return decision
        logger.info("No strategy produced an action")
        return None


def build_pipeline(advisor=None) -> DecisionPipeline:
    """Heuristics first, then the AI advisor when one is available."""
    strategies: List[DecisionStrategy] = [HeuristicStrategy()]
    if advisor is not None:
        strategies.append(AIAdvisorStrategy(advisor))
    return DecisionPipeline(strategies)
