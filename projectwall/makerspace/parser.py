"""
Parser for Makerspace listing and project pages

Listing pages yield project URLs and a continuation decision. Project pages
yield ProjectRecord fields. Every field is resolved through an ordered list
of extraction strategies, the first non-empty result wins.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set
from urllib.parse import urldefrag, urljoin, urlparse, urlunparse

from bs4 import BeautifulSoup

from . import config
from .models import ProjectImages, ProjectRecord

logger = logging.getLogger(__name__)

Strategy = Callable[[BeautifulSoup], str]

CACHE_BUSTER_PARAM = "cb"

# Listing pages
POST_CONTAINER_SELECTOR = ".fl-post-feed-post"
POST_TITLE_LINK_SELECTOR = "h2 a, h3 a, .fl-post-title a"
POST_PROJECT_LINK_SELECTOR = 'a[href*="projects/"]'
FALLBACK_LINK_SELECTORS = [
    "article .entry-title a",
    'article a[href*="projects/"]',
    'a[href*="projects/"]',
]
NEXT_PAGE_SELECTORS = [
    ".pagination .next",
    ".wp-pagenavi .next",
    ".page-numbers.next",
    'a[rel="next"]',
    ".fl-pagination .next",
]
PAGE_NUMBER_SELECTOR = ".page-numbers"
PAGINATION_PATH = re.compile(r"^page/\d+$")
PAGE_NUMBER_TEXT = re.compile(r"(?:page\s*)?(\d+)", re.IGNORECASE)

# Project pages
IMAGE_SELECTORS = [
    # Content area images first
    ".entry-content img",
    ".post-content img",
    ".content img",
    "article img",
    ".fl-rich-text img",
    # Featured images
    ".featured-image img",
    ".hero-image img",
    ".wp-post-image",
    '[class*="featured"] img',
    # Gallery images
    ".gallery img",
    ".wp-block-gallery img",
]
IMAGE_SKIP_PATTERNS = ["banner", "header", "logo", "cropped-", "favicon"]
TAG_SELECTORS = [
    ".entry-footer .tags a",
    ".post-tags a",
    ".tag-links a",
    '[rel="tag"]',
    ".tags a",
]
TAGGED_PATTERN = re.compile(r"tagged\s+([^.]+)", re.IGNORECASE)
BY_BOUNDARY = re.compile(r"[,\s]+by\s+")
NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")
INVISIBLE_TAGS = {"script", "style", "noscript", "template"}

DEFAULT_TITLE = "Unknown Title"


def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace and strip."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def make_project_id(url: str, base_url: str = config.BASE_URL) -> str:
    """
    Derive a stable slug from a project URL.

    Example: https://sites.williams.edu/makerspace/projects/laser-cut-box/
    becomes "laser-cut-box".
    """
    slug = url.replace(base_url, "", 1)
    slug = re.sub(r"/$", "", slug)
    slug = NON_ALPHANUMERIC.sub("-", slug).lower()
    return slug[:config.ID_MAX_LENGTH]


def listing_page_url(base_url: str, page_number: int) -> str:
    """Address of listing page N (page 1 is the base URL itself)."""
    if page_number <= 1:
        return base_url
    return f"{base_url}page/{page_number}/"


def with_cache_buster(url: str, stamp: int) -> str:
    """Append a cb=<stamp> query parameter so caches never serve stale pages."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{CACHE_BUSTER_PARAM}={stamp}"


def strip_cache_buster(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.query:
        return url
    pairs = [pair for pair in parsed.query.split("&") if pair.split("=", 1)[0] != CACHE_BUSTER_PARAM]
    return urlunparse(parsed._replace(query="&".join(pairs)))


def normalize_project_url(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve a listing link and keep it only if it points at a project page.

    Returns None for links outside the listing, the listing itself and
    pagination addresses.
    """
    if not href:
        return None
    full_url, _ = urldefrag(urljoin(base_url, href.strip()))
    full_url = strip_cache_buster(full_url)

    base = urlparse(base_url)
    parsed = urlparse(full_url)
    if parsed.netloc != base.netloc or not parsed.path.startswith(base.path):
        return None
    if parsed.scheme != base.scheme:
        parsed = parsed._replace(scheme=base.scheme)
        full_url = urlunparse(parsed)

    remainder = parsed.path[len(base.path):].strip("/")
    if not remainder or PAGINATION_PATH.match(remainder):
        return None
    return full_url


@dataclass
class ListingPage:
    """What a single listing page contributed"""
    page_number: int
    urls: List[str] = field(default_factory=list)
    used_fallback: bool = False
    has_next: bool = False


def _post_link(post) -> Optional[str]:
    link = (
        post.select_one(POST_TITLE_LINK_SELECTOR)
        or post.select_one(POST_PROJECT_LINK_SELECTOR)
        or post.find("a", recursive=False)
    )
    return link.get("href") if link else None


def extract_post_links(soup: BeautifulSoup, base_url: str, seen: Set[str]) -> List[str]:
    """Primary strategy: one link per listing-post container."""
    urls = []
    for post in soup.select(POST_CONTAINER_SELECTOR):
        url = normalize_project_url(_post_link(post), base_url)
        if url and url not in seen and url not in urls:
            urls.append(url)
    return urls


def extract_fallback_links(soup: BeautifulSoup, base_url: str, seen: Set[str]) -> List[str]:
    """Broader selectors, stopping at the first one that yields anything."""
    for selector in FALLBACK_LINK_SELECTORS:
        urls = []
        for anchor in soup.select(selector):
            if not clean_text(anchor.get_text()):
                continue
            url = normalize_project_url(anchor.get("href"), base_url)
            if url and url not in seen and url not in urls:
                urls.append(url)
        if urls:
            logger.debug(f"Fallback selector '{selector}' found {len(urls)} links")
            return urls
    return []


def _page_number(text: str) -> int:
    match = PAGE_NUMBER_TEXT.fullmatch(clean_text(text))
    return int(match.group(1)) if match else 0


def has_next_page(soup: BeautifulSoup, current_page: int) -> bool:
    """A next-page control is present, or a numbered link goes past the current page."""
    for selector in NEXT_PAGE_SELECTORS:
        if soup.select_one(selector) is not None:
            return True

    page_numbers = [_page_number(el.get_text()) for el in soup.select(PAGE_NUMBER_SELECTOR)]
    return max(page_numbers, default=0) > current_page


def parse_listing_page(html: str, base_url: str, page_number: int, seen: Optional[Set[str]] = None) -> ListingPage:
    """
    Extract new project URLs from a listing page and decide whether to continue.

    Args:
        html: Rendered HTML of the listing page
        base_url: Base listing URL, used to resolve and scope links
        page_number: 1-based index of this page
        seen: URLs already collected from earlier pages

    Returns:
        ListingPage with the new URLs in document order
    """
    seen = seen or set()
    soup = BeautifulSoup(html, "html.parser")
    listing = ListingPage(page_number=page_number)

    listing.urls = extract_post_links(soup, base_url, seen)
    if not listing.urls:
        logger.warning(f"No projects found in {POST_CONTAINER_SELECTOR} on page {page_number}, trying fallback...")
        listing.urls = extract_fallback_links(soup, base_url, seen)
        listing.used_fallback = True

    # An empty page ends the crawl even if pagination controls remain
    listing.has_next = bool(listing.urls) and has_next_page(soup, page_number)
    return listing


def select_text(selector: str, max_length: Optional[int] = None) -> Strategy:
    """Strategy: text of the first non-empty element matching selector."""
    def strategy(soup: BeautifulSoup) -> str:
        for element in soup.select(selector):
            text = clean_text(element.get_text(" "))
            if text:
                return text[:max_length] if max_length else text
        return ""
    strategy.__name__ = f"select_text({selector!r})"
    return strategy


def first_non_empty(soup: BeautifulSoup, strategies: List[Strategy], default: str = "") -> str:
    for strategy in strategies:
        value = strategy(soup)
        if value:
            return value
    return default


TITLE_STRATEGIES = [
    select_text("title"),
    select_text("h1"),
    select_text(".entry-title"),
    select_text(".post-title"),
]
AUTHOR_STRATEGIES = [
    select_text(".author"),
    select_text(".post-author"),
    select_text('[class*="author"]'),
    select_text(".byline"),
]
DESCRIPTION_STRATEGIES = [
    select_text(".excerpt"),
    select_text(".entry-summary"),
    select_text(".post-excerpt"),
    select_text("p", max_length=config.DESCRIPTION_FALLBACK_LENGTH),
]
CONTENT_STRATEGIES = [
    select_text(".entry-content"),
    select_text(".post-content"),
    select_text(".content"),
]
DATE_STRATEGIES = [
    select_text(".date"),
    select_text(".post-date"),
    select_text('[class*="date"]'),
    select_text("time"),
]


def is_excluded_image(image_url: str) -> bool:
    """Banners, headers, logos, cropped thumbnails and favicons are not content."""
    lowered = image_url.lower()
    return any(pattern in lowered for pattern in IMAGE_SKIP_PATTERNS)


def _image_source(img) -> Optional[str]:
    src = img.get("src")
    # Lazy-loaded images carry a data: placeholder in src
    if not src or src.startswith("data:"):
        src = img.get("data-src") or src
    return src.strip() if src else None


def extract_images(soup: BeautifulSoup, page_url: str) -> ProjectImages:
    """
    Pick the main image and collect the remaining content images.

    Selectors are tried in priority order; the first image passing the
    exclusion filter becomes the main image.
    """
    accepted: List[str] = []
    for selector in IMAGE_SELECTORS:
        for img in soup.select(selector):
            src = _image_source(img)
            if not src or src.startswith("data:"):
                continue
            image_url = urljoin(page_url, src)
            if is_excluded_image(image_url):
                logger.debug(f"Skipping non-content image: {image_url}")
                continue
            if image_url not in accepted:
                accepted.append(image_url)

    if not accepted:
        return ProjectImages()
    return ProjectImages(main=accepted[0], gallery=accepted[1:])


def visible_text(soup: BeautifulSoup) -> str:
    """Document text without script and style contents."""
    parts = []
    for string in soup.find_all(string=True):
        if string.parent is not None and string.parent.name in INVISIBLE_TAGS:
            continue
        parts.append(str(string))
    return clean_text(" ".join(parts))


def extract_tags(soup: BeautifulSoup) -> List[str]:
    """
    Merge tag links with the trailing "tagged ..." phrase.

    "Posted in Projects and tagged Laser Cutting, Robotics by Jane." adds
    "Laser Cutting" and "Robotics". Order of first discovery is kept.
    """
    tags: List[str] = []

    def add(raw: str):
        tag = clean_text(raw)
        if tag and len(tag) <= config.MAX_TAG_LENGTH and tag not in tags:
            tags.append(tag)

    for selector in TAG_SELECTORS:
        for element in soup.select(selector):
            add(element.get_text())

    # Body prose may use the word too, the footer phrase comes last
    matches = list(TAGGED_PATTERN.finditer(visible_text(soup)))
    if matches:
        match = matches[-1]
        phrase = BY_BOUNDARY.split(match.group(1))[0]
        for tag in phrase.split(","):
            add(tag)

    return tags


def parse_project_page(html: str, url: str, base_url: str = config.BASE_URL) -> ProjectRecord:
    """
    Build a ProjectRecord (without QR code) from a project page.

    Args:
        html: Rendered HTML of the detail page
        url: Canonical URL of the project (no cache buster)
        base_url: Base listing URL, used for the id

    Returns:
        ProjectRecord with defaults for every field that could not be found
    """
    soup = BeautifulSoup(html, "html.parser")

    return ProjectRecord(
        id=make_project_id(url, base_url),
        url=url,
        title=first_non_empty(soup, TITLE_STRATEGIES, DEFAULT_TITLE),
        author=first_non_empty(soup, AUTHOR_STRATEGIES),
        description=first_non_empty(soup, DESCRIPTION_STRATEGIES),
        content=first_non_empty(soup, CONTENT_STRATEGIES),
        tags=extract_tags(soup),
        images=extract_images(soup, url),
        date_created=first_non_empty(soup, DATE_STRATEGIES),
    )


def missing_required_fields(project: ProjectRecord) -> List[str]:
    """Names of required fields that are empty."""
    return [name for name in ("title", "url") if not getattr(project, name)]
