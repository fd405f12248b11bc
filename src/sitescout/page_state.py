"""
Page state extraction.

A single in-page script collects raw facts (buttons, links, a structural
overlay flag, media presence and visible text). Classification of the
blocking state happens here in Python so it can be tested without a browser.
"""

import logging
from typing import Any, Dict

from sitescout.constants import (
    AGE_GATE_KEYWORDS,
    BLOCKING_POSITIONS,
    COOKIE_KEYWORDS,
    LOGIN_WALL_KEYWORDS,
    MAX_BUTTONS,
    MAX_LABEL_LENGTH,
    MAX_LINKS,
    OVERLAY_MIN_HEIGHT,
    OVERLAY_MIN_WIDTH,
    OVERLAY_SELECTORS,
    PROMINENT_MIN_HEIGHT,
    PROMINENT_MIN_WIDTH,
    VISIBLE_TEXT_LIMIT,
)
from sitescout.exceptions import ExtractionError
from sitescout.models import BlockingState, ButtonInfo, LinkInfo, PageState

logger = logging.getLogger(__name__)


BUTTON_SELECTOR = 'button, a[class*="btn"], a[class*="button"], [role="button"]'

SNAPSHOT_SCRIPT = """
(opts) => {
    const cssPath = (el) => {
        const parts = [];
        while (el && el.nodeType === 1 && parts.length < 6) {
            if (el.id) {
                parts.unshift('#' + CSS.escape(el.id));
                break;
            }
            let part = el.tagName.toLowerCase();
            const parent = el.parentElement;
            if (parent) {
                const siblings = Array.from(parent.children).filter(c => c.tagName === el.tagName);
                if (siblings.length > 1) {
                    part += ':nth-of-type(' + (siblings.indexOf(el) + 1) + ')';
                }
            }
            parts.unshift(part);
            el = parent;
        }
        return parts.join(' > ');
    };

    const body = document.body;
    const visibleText = body ? (body.innerText || '').slice(0, opts.textLimit).toLowerCase() : '';

    const buttons = [];
    for (const el of document.querySelectorAll(opts.buttonSelector)) {
        if (buttons.length >= opts.maxButtons) break;
        const text = (el.textContent || '').trim();
        if (!text || text.length > opts.labelLimit) continue;
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        buttons.push({
            text,
            isProminent: rect.width > opts.prominentWidth
                && rect.height > opts.prominentHeight
                && style.display !== 'none',
            locator: cssPath(el),
        });
    }

    const currentHost = window.location.hostname;
    const links = [];
    for (const el of Array.from(document.querySelectorAll('a[href]')).slice(0, opts.maxLinks)) {
        const text = (el.textContent || '').trim().slice(0, opts.labelLimit);
        if (!text) continue;
        const href = el.href;
        let isInternal = false;
        try {
            isInternal = new URL(href).hostname === currentHost;
        } catch (e) {
            isInternal = false;
        }
        links.push({ text, href, isInternal });
    }

    const hasBlockingOverlay = Array.from(document.querySelectorAll(opts.overlaySelector)).some(el => {
        const style = window.getComputedStyle(el);
        const rect = el.getBoundingClientRect();
        return opts.blockingPositions.includes(style.position)
            && style.display !== 'none'
            && style.visibility !== 'hidden'
            && rect.width > opts.overlayWidth
            && rect.height > opts.overlayHeight;
    });

    return {
        url: window.location.href,
        title: document.title || '',
        visibleText,
        buttons,
        links,
        hasBlockingOverlay,
        hasVideo: !!document.querySelector('video'),
        hasCanvas: !!document.querySelector('canvas'),
    };
}
"""

SNAPSHOT_OPTIONS = {
    "textLimit": VISIBLE_TEXT_LIMIT,
    "buttonSelector": BUTTON_SELECTOR,
    "maxButtons": MAX_BUTTONS,
    "maxLinks": MAX_LINKS,
    "labelLimit": MAX_LABEL_LENGTH,
    "prominentWidth": PROMINENT_MIN_WIDTH,
    "prominentHeight": PROMINENT_MIN_HEIGHT,
    "overlaySelector": ", ".join(OVERLAY_SELECTORS),
    "blockingPositions": BLOCKING_POSITIONS,
    "overlayWidth": OVERLAY_MIN_WIDTH,
    "overlayHeight": OVERLAY_MIN_HEIGHT,
}


def classify_blocking_state(has_overlay: bool, visible_text: str) -> BlockingState:
    """
    Classify what kind of blocker gates the page.

    The check is two-stage: without a structurally blocking overlay the page
    is always clear, whatever its text says. With one, keyword lists are
    checked in priority order: age gate, cookie banner, login wall.

    Args:
        has_overlay: Whether a visible, positioned overlay of blocking size exists
        visible_text: Page text (matched case-insensitively)

    Returns:
        The blocking state
    """
    if not has_overlay:
        return BlockingState.CLEAR

    text = visible_text.lower()
    if any(keyword in text for keyword in AGE_GATE_KEYWORDS):
        return BlockingState.AGE_GATE
    if any(keyword in text for keyword in COOKIE_KEYWORDS):
        return BlockingState.COOKIE_BANNER
    if any(keyword in text for keyword in LOGIN_WALL_KEYWORDS):
        return BlockingState.LOGIN_WALL
    return BlockingState.CLEAR


def build_page_state(raw: Dict[str, Any]) -> PageState:
    """
    Build a PageState from the raw snapshot returned by the in-page script.

    Limits are re-applied here so the state is bounded whatever the source.
    """
    visible_text = (raw.get("visibleText") or "")[:VISIBLE_TEXT_LIMIT].lower()

    buttons = []
    for item in raw.get("buttons") or []:
        text = (item.get("text") or "").strip()
        if not text or len(text) > MAX_LABEL_LENGTH:
            continue
        buttons.append(ButtonInfo(
            text=text,
            is_prominent=bool(item.get("isProminent")),
            locator=item.get("locator") or "",
        ))
        if len(buttons) >= MAX_BUTTONS:
            break

    links = []
    for item in (raw.get("links") or [])[:MAX_LINKS]:
        text = (item.get("text") or "").strip()[:MAX_LABEL_LENGTH]
        if not text:
            continue
        links.append(LinkInfo(
            text=text,
            href=item.get("href") or "",
            is_internal=bool(item.get("isInternal")),
        ))

    return PageState(
        url=raw.get("url") or "",
        title=raw.get("title") or "",
        visible_text=visible_text,
        buttons=buttons,
        links=links,
        blocking_state=classify_blocking_state(bool(raw.get("hasBlockingOverlay")), visible_text),
        has_video=bool(raw.get("hasVideo")),
        has_canvas=bool(raw.get("hasCanvas")),
    )


class PageStateExtractor:
    """Observes a live page and returns its semantic state."""

    async def observe(self, page) -> PageState:
        """
        Snapshot the page.

        Args:
            page: Playwright page

        Returns:
            PageState for the current document

        Raises:
            ExtractionError: If the in-page script fails (e.g. the page
                navigated mid-evaluation)
        """
        try:
            raw = await page.evaluate(SNAPSHOT_SCRIPT, SNAPSHOT_OPTIONS)
        except Exception as e:
            raise ExtractionError(f"Page state extraction failed: {e}") from e

        if not isinstance(raw, dict):
            raise ExtractionError(f"Unexpected snapshot result: {type(raw).__name__}")

        state = build_page_state(raw)
        logger.debug(
            f"Observed {state.url}: {len(state.buttons)} buttons, {len(state.links)} links, "
            f"blocking={state.blocking_state.value}"
        )
        return state
