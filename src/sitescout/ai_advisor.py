"""
AI fallback advisor.

Consulted only when the heuristics are inconclusive. Every call degrades to
a conservative default instead of raising: the crawl must never depend on the
model being reachable.
"""

import json
import logging
from typing import Optional

from pydantic import BaseModel

from sitescout.constants import AI_MAX_BUTTON_LABELS, AI_MAX_LINK_LABELS
from sitescout.llm import VisionModel
from sitescout.models import (
    AIActionDecision,
    Confidence,
    PageState,
    ScrollDepth,
    ScrollStrategy,
)

logger = logging.getLogger(__name__)


NAVIGATION_SCHEMA = {
    "type": "object",
    "properties": {
        "target": {"type": ["string", "null"]},
        "reason": {"type": "string"},
        "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
    },
    "required": ["reason", "confidence"],
}

SCROLL_SCHEMA = {
    "type": "object",
    "properties": {
        "shouldScroll": {"type": "boolean"},
        "scrollDepth": {"type": "string", "enum": ["shallow", "medium", "deep"]},
        "reason": {"type": "string"},
    },
    "required": ["shouldScroll", "scrollDepth", "reason"],
}

NAVIGATION_PROMPT = """You are navigating a website to find its main content for a review.
Goal: Find the best element to click to reach content (videos, galleries, streams).
Available buttons: [{buttons}]
Available links: [{links}]
Set target to the exact text, or null if already on content."""

SCROLL_PROMPT = "Should we scroll? Answer scrollDepth: shallow (1-2), medium (3-4), or deep (5+)."

CONTENT_PROMPT = "Is this a content page with video player, gallery, or stream? Answer: yes or no"

UNAVAILABLE_DECISION = AIActionDecision(target=None, reason="AI unavailable", confidence=Confidence.LOW)
FALLBACK_SCROLL = ScrollStrategy(should_scroll=True, depth=ScrollDepth.MEDIUM, reason="Fallback")


class NavigationResponse(BaseModel):
    """Raw navigation answer. Every field is optional; defaults are applied later."""

    target: Optional[str] = None
    reason: Optional[str] = None
    confidence: Optional[str] = None


class ScrollResponse(BaseModel):
    """Raw scroll answer."""

    shouldScroll: Optional[bool] = None
    scrollDepth: Optional[str] = None
    reason: Optional[str] = None


def parse_json_object(text: str) -> dict:
    """
    Parse a JSON object out of a model response.

    Tolerates markdown code fences around the object.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.strip()

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end < start:
        raise ValueError("No JSON object in response")

    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("Response is not a JSON object")
    return data


def _to_confidence(value: Optional[str]) -> Confidence:
    try:
        return Confidence((value or "medium").strip().lower())
    except ValueError:
        return Confidence.MEDIUM


def _to_depth(value: Optional[str]) -> ScrollDepth:
    try:
        return ScrollDepth((value or "medium").strip().lower())
    except ValueError:
        return ScrollDepth.MEDIUM


class AIAdvisor:
    """
    Vision-model advisor for navigation, scroll depth and content checks.

    Usage:
        advisor = AIAdvisor(VisionLLMClient(api_key=...))
        decision = await advisor.decide(state, screenshot)
    """

    def __init__(self, model: VisionModel):
        self.model = model

    def build_navigation_prompt(self, state: PageState) -> str:
        """Prompt listing at most 15 button and 10 link labels."""
        buttons = ", ".join(b.text for b in state.buttons[:AI_MAX_BUTTON_LABELS])
        links = ", ".join(link.text for link in state.links[:AI_MAX_LINK_LABELS])
        return NAVIGATION_PROMPT.format(buttons=buttons, links=links)

    async def decide(self, state: PageState, screenshot: bytes) -> AIActionDecision:
        """
        Ask the model which element to click.

        Returns:
            AIActionDecision; "AI unavailable" with low confidence on any failure
        """
        try:
            text = await self.model.generate(
                self.build_navigation_prompt(state),
                image=screenshot,
                response_schema=NAVIGATION_SCHEMA,
                max_tokens=256,
                temperature=0.3,
            )
            if not text or not text.strip():
                raise ValueError("Empty response")
            response = NavigationResponse.model_validate(parse_json_object(text))
        except Exception as e:
            logger.warning(f"AI navigation failed: {e}")
            return UNAVAILABLE_DECISION

        target = response.target.strip() if response.target else None
        decision = AIActionDecision(
            target=target or None,
            reason=response.reason or "AI decision",
            confidence=_to_confidence(response.confidence),
        )
        logger.info(
            f"AI navigation decision: target={decision.target!r}, "
            f"confidence={decision.confidence.value}, reason={decision.reason}"
        )
        return decision

    async def scroll_strategy(self, screenshot: bytes) -> ScrollStrategy:
        """
        Ask the model how deep to explore.

        Returns:
            ScrollStrategy; (True, medium, "Fallback") on any failure
        """
        try:
            text = await self.model.generate(
                SCROLL_PROMPT,
                image=screenshot,
                response_schema=SCROLL_SCHEMA,
                max_tokens=128,
                temperature=0.2,
            )
            if not text or not text.strip():
                raise ValueError("Empty response")
            response = ScrollResponse.model_validate(parse_json_object(text))
        except Exception as e:
            logger.warning(f"AI scroll strategy failed: {e}")
            return FALLBACK_SCROLL

        strategy = ScrollStrategy(
            should_scroll=True if response.shouldScroll is None else response.shouldScroll,
            depth=_to_depth(response.scrollDepth),
            reason=response.reason or "Default",
        )
        logger.info(
            f"AI scroll strategy: {strategy.depth.value} "
            f"({strategy.scroll_count} scrolls, should_scroll={strategy.should_scroll})"
        )
        return strategy

    async def is_content_page(self, screenshot: bytes) -> bool:
        """True only when the model's answer contains "yes"."""
        try:
            text = await self.model.generate(
                CONTENT_PROMPT,
                image=screenshot,
                max_tokens=16,
                temperature=0.1,
            )
        except Exception as e:
            logger.warning(f"AI content detection failed: {e}")
            return False
        return "yes" in (text or "").lower()
