# src/sitescout/constants.py
"""Centralized constants for the site crawler.

Keyword tables and fixed limits shared by the extractor, decision engine,
executor and orchestrator. For user-configurable values, see config.py and
CrawlerConfig.
"""

# =============================================================================
# Screenshot Constants
# =============================================================================

# Hard cap on screenshots in a single CrawlResult
MAX_SCREENSHOTS = 5

# Viewport used for every crawl (width x height)
DEFAULT_VIEWPORT = {"width": 1280, "height": 800}


# =============================================================================
# Page State Extraction Constants
# =============================================================================

# Visible text excerpt kept in PageState (characters)
VISIBLE_TEXT_LIMIT = 3000

# Maximum buttons collected per observation
MAX_BUTTONS = 60

# Maximum links collected per observation
MAX_LINKS = 50

# Button/link label length kept (characters)
MAX_LABEL_LENGTH = 100

# Rendered size above which a button counts as prominent (px)
PROMINENT_MIN_WIDTH = 100
PROMINENT_MIN_HEIGHT = 30

# Minimum bounding box of a blocking overlay (px)
OVERLAY_MIN_WIDTH = 200
OVERLAY_MIN_HEIGHT = 100

# Selectors that may identify a modal/overlay element
OVERLAY_SELECTORS = [
    '[class*="modal"]',
    '[class*="overlay"]',
    '[class*="popup"]',
    '[class*="banner"]',
    '[role="dialog"]',
]

# CSS positions that let an element float above page content
BLOCKING_POSITIONS = ["fixed", "sticky", "absolute"]

# Keywords that indicate each blocking state (matched against lower-cased text)
AGE_GATE_KEYWORDS = [
    "adult website",
    "age verification",
    "18 years",
    "over 18",
    "adult content",
    "sexually explicit",
    "mature content",
    "this is an adult",
]

COOKIE_KEYWORDS = [
    "cookie",
    "gdpr",
    "privacy policy",
    "we use cookies",
]

LOGIN_WALL_KEYWORDS = [
    "please sign in",
    "log in to continue",
    "create an account",
    "sign up to access",
    "members only",
]


# =============================================================================
# Decision Engine Constants
# =============================================================================

# Dismiss labels per blocker, most specific first
AGE_GATE_DISMISS_TEXTS = [
    "I am 18 or older",
    "I am over 18",
    "I'm over 18",
    "Yes, I am 18",
    "I am 18",
    "Enter",
    "I agree",
    "Continue",
    "Accept",
]

COOKIE_DISMISS_TEXTS = [
    "Accept all",
    "Accept cookies",
    "I accept",
    "Accept",
    "OK",
    "Got it",
    "Agree",
]

LOGIN_SKIP_TEXTS = [
    "Close",
    "Skip",
    "Maybe later",
    "No thanks",
    "Continue as guest",
]

# Static candidates used when no button matches the priority table
BLOCKER_FALLBACK_COUNT = 3

# Generic labels tried when a blocker could not be dismissed
GENERIC_DISMISS_TEXTS = ["Enter", "Accept"]

# Close controls tried when no label works (icon-only "x" buttons and the like)
CLOSE_BUTTON_SELECTORS = [
    '[class*="close"]',
    '[class*="Close"]',
    '[aria-label*="close"]',
    '[aria-label*="Close"]',
    '[class*="dismiss"]',
    '[class*="Dismiss"]',
    '.modal-close',
    '.overlay-close',
    '[data-testid="close"]',
    '.cookie-close',
    '.age-close',
    '.popup-close',
]

# Button keywords that suggest a path to the main content
CONTENT_ACTION_KEYWORDS = [
    "start",
    "watch",
    "play",
    "enter",
    "view",
    "session",
    "live",
    "join",
    "stream",
]

# Href fragments of internal links that lead to content
CONTENT_LINK_PATTERNS = ["/video", "/watch", "/session", "/live"]

# URL fragments that mark a page as content
CONTENT_URL_PATTERNS = ["/video/", "/watch", "/session", "/live"]

# Visible text length that makes a canvas page count as content
CANVAS_TEXT_THRESHOLD = 500


# =============================================================================
# AI Advisor Constants
# =============================================================================

# Labels included in the navigation prompt
AI_MAX_BUTTON_LABELS = 15
AI_MAX_LINK_LABELS = 10

# Scroll steps per AI scroll depth
SCROLL_DEPTH_STEPS = {"shallow": 2, "medium": 4, "deep": 6}


# =============================================================================
# Action Executor Constants
# =============================================================================

# Default and absolute maximum scroll steps per scroll pass
DEFAULT_SCROLL_STEPS = 5
MAX_SCROLL_STEPS = 6

# Fraction of the viewport covered by one scroll step
SCROLL_MIN_FRACTION = 0.5
SCROLL_MAX_FRACTION = 0.8

# Body length change (characters) that counts as a DOM change after a click
DOM_CHANGE_THRESHOLD = 50

# Selectors searched when clicking by text
CLICKABLE_SELECTOR = 'button, a, [role="button"]'


# =============================================================================
# Network Filter Constants
# =============================================================================

# URL substrings of ad, tracking and heavy embed hosts
BLOCKED_URL_PATTERNS = [
    # Advertising
    "doubleclick", "googlesyndication", "adserver", "adsystem",
    "adnxs", "advertising", "adform", "adtech", "pubmatic",
    "rubiconproject", "openx", "criteo", "taboola", "outbrain",
    # Tracking & analytics
    "google-analytics", "googletagmanager", "facebook.net",
    "connect.facebook", "analytics", "tracking", "pixel",
    "hotjar", "clarity.ms", "segment.io", "mixpanel",
    # Heavy media embeds
    "youtube.com/embed", "player.vimeo",
]

# Resource types that are never loaded
BLOCKED_RESOURCE_TYPES = frozenset({"media", "font"})

# Stylesheets allowed per page before further ones are aborted
MAX_STYLESHEETS_PER_PAGE = 2


# =============================================================================
# Batch Constants
# =============================================================================

# Per-site retries in a batch run
BATCH_MAX_RETRIES = 3

# Backoff between per-site retries (seconds)
BATCH_BASE_DELAY_SECONDS = 2.0
BATCH_MAX_DELAY_SECONDS = 60.0

# Courtesy delay between sites (seconds)
DELAY_BETWEEN_SITES_SECONDS = 5.0


# =============================================================================
# Retry Constants
# =============================================================================

# Default attempts for retried operations
DEFAULT_MAX_RETRIES = 3

# Initial backoff delay in seconds
DEFAULT_BASE_DELAY_SECONDS = 1.0
