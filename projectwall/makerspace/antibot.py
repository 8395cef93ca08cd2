"""
Detection of anti-automation interstitial pages

Some hosts answer automated clients with a transient "checking your browser"
page instead of the real content. Detection only looks at the document title
and top-level headings, where these pages announce themselves.
"""

import logging
import time
from typing import List

from bs4 import BeautifulSoup
from playwright.sync_api import Page

from . import config

logger = logging.getLogger(__name__)

CHALLENGE_MARKERS = [
    "just a moment",
    "checking your browser",
    "verify you are human",
    "verifying you are human",
    "attention required",
    "are you a robot",
    "security check",
    "access denied",
    "please wait while we verify",
    "ddos protection",
]


def challenge_headings(html: str) -> List[str]:
    """Title and h1/h2 texts of a document, lowercased."""
    soup = BeautifulSoup(html, "html.parser")
    headings = []
    for element in soup.select("title, h1, h2"):
        text = " ".join(element.get_text(" ").split()).lower()
        if text:
            headings.append(text)
    return headings


def is_challenge_page(html: str) -> bool:
    """True if the title or a heading carries an interstitial marker."""
    if not html:
        return False
    for heading in challenge_headings(html):
        if any(marker in heading for marker in CHALLENGE_MARKERS):
            return True
    return False


def resolve_challenge(page: Page, html: str, url: str, wait_seconds: float = None) -> str:
    """
    Give an interstitial page one chance to clear.

    If html is a challenge page, wait once and read the page content again.
    The second read is returned whether or not it cleared; a persisting
    challenge is logged and left to the extractor.

    Args:
        page: Playwright page that produced html
        html: Content read right after navigation
        url: Address being fetched (for logging)
        wait_seconds: Pause before re-reading, defaults to config

    Returns:
        The HTML to parse
    """
    if not is_challenge_page(html):
        return html

    if wait_seconds is None:
        wait_seconds = config.CHALLENGE_WAIT_SECONDS

    logger.warning(f"⚠️  Anti-bot challenge detected on {url}, waiting {wait_seconds}s before retrying once")
    time.sleep(wait_seconds)
    html = page.content()

    if is_challenge_page(html):
        logger.error(f"✗ Anti-bot challenge persists on {url}, continuing with current content")
    else:
        logger.info(f"✓ Anti-bot challenge cleared on {url}")
    return html
