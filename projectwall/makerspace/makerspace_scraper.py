"""
Williams College Makerspace Project Scraper

Scrapes project posts from https://sites.williams.edu/makerspace/projects/
and writes them to a single JSON dataset for the project display.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from playwright.sync_api import sync_playwright, Page, Route

from . import config
from .antibot import resolve_challenge
from .dataset import write_dataset
from .models import Dataset, ProjectRecord, ScrapeRunStats
from .parser import listing_page_url, missing_required_fields, parse_listing_page, parse_project_page, with_cache_buster
from .qr_codes import generate_qr_code
from .tag_filter import TagFilterConfig, display_tags, matches_tag_filter

logger = logging.getLogger(__name__)

NOT_FOUND_MARKERS = ("net::ERR_FAILED", "404")


def setup_logging(log_dir: Path = config.LOG_DIR, debug: bool = config.IS_DEVELOPMENT) -> Path:
    """Log to a timestamped file under log_dir and to stdout."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"scraper_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stdout)
        ]
    )
    return log_file


class PageNotFoundError(Exception):
    """A listing page does not exist."""


def is_not_found_error(error: Exception) -> bool:
    if isinstance(error, PageNotFoundError):
        return True
    message = str(error)
    return any(marker in message for marker in NOT_FOUND_MARKERS)


def _block_heavy_resources(route: Route):
    # HTML and scripts only; stylesheets and images are not needed for parsing
    if route.request.resource_type in config.BLOCKED_RESOURCE_TYPES:
        route.abort()
    else:
        route.continue_()


@contextmanager
def open_browser_page(headless: bool = config.HEADLESS) -> Iterator[Page]:
    """
    Launch Chromium and yield a configured page.

    The browser is always closed on exit. Launch failures propagate so the
    run aborts.
    """
    with sync_playwright() as p:
        logger.info("Initializing browser...")
        browser = p.chromium.launch(headless=headless, args=config.BROWSER_ARGS)
        try:
            context = browser.new_context(
                user_agent=config.USER_AGENT,
                viewport=config.VIEWPORT,
            )
            page = context.new_page()
            page.route("**/*", _block_heavy_resources)
            logger.info("Browser initialized successfully")
            yield page
        finally:
            browser.close()
            logger.info("Browser closed")


def fetch_html(page: Page, url: str) -> str:
    """
    Load url (cache-busted) and return the rendered HTML.

    Waits for network idle and for the body element, then gives an
    anti-bot interstitial one chance to clear.

    Raises:
        PageNotFoundError: If the server answers 404
        playwright.sync_api.Error: On navigation failures and timeouts
    """
    response = page.goto(
        with_cache_buster(url, int(time.time() * 1000)),
        wait_until="networkidle",
        timeout=config.NAVIGATION_TIMEOUT,
    )
    if response is not None and response.status == 404:
        raise PageNotFoundError(f"404 for {url}")

    page.wait_for_selector("body", timeout=config.BODY_TIMEOUT)
    return resolve_challenge(page, page.content(), url)


def discover_project_urls(
    page: Page,
    stats: ScrapeRunStats,
    base_url: str = config.BASE_URL,
    max_projects: Optional[int] = config.MAX_PROJECTS,
    page_delay: float = config.DELAY_BETWEEN_PAGES,
) -> List[str]:
    """
    Walk the listing pages and collect project URLs.

    Continues while a page yields links and advertises a following page.
    A fetch error ends pagination; nothing is retried.

    Args:
        page: Playwright page instance
        stats: Run statistics, projects_found is set here
        base_url: First listing page
        max_projects: Optional cap on the URLs returned
        page_delay: Seconds to wait between listing pages

    Returns:
        Project URLs in discovery order, without duplicates
    """
    logger.info("Discovering projects from main page and all pagination pages...")

    all_urls: List[str] = []
    seen: Set[str] = set()
    page_number = 1

    while True:
        page_url = listing_page_url(base_url, page_number)
        logger.info(f"Scraping page {page_number}: {page_url}")

        try:
            html = fetch_html(page, page_url)
        except Exception as e:
            if is_not_found_error(e):
                logger.info(f"Page {page_number} not found (404), stopping pagination")
            else:
                logger.warning(f"Error loading page {page_number}: {e}")
            break

        listing = parse_listing_page(html, base_url, page_number, seen)
        for url in listing.urls:
            seen.add(url)
            all_urls.append(url)
            logger.debug(f"Found project: {url}")

        logger.info(f"Found {len(listing.urls)} projects on page {page_number}")

        if not listing.urls:
            logger.info(f"No projects found on page {page_number}, assuming no more pages")
            break
        if not listing.has_next:
            logger.info(f"No more pages found after page {page_number}")
            break

        logger.info(f"Found indication of page {page_number + 1}, continuing...")
        page_number += 1
        time.sleep(page_delay)

    stats.record_found(len(all_urls))
    logger.info(f"Discovered {len(all_urls)} total projects across {page_number} pages")

    if max_projects and len(all_urls) > max_projects:
        logger.info(f"Limiting to {max_projects} projects for testing")
        return all_urls[:max_projects]

    return all_urls


def scrape_project(
    page: Page,
    url: str,
    stats: ScrapeRunStats,
    base_url: str = config.BASE_URL,
    qr_dir: Optional[Path] = config.QR_CODE_DIR,
) -> Optional[ProjectRecord]:
    """
    Scrape a single project page.

    Failures are confined to this URL: they are logged, counted in stats,
    and reported as None.
    """
    logger.info(f"Scraping project: {url}")

    try:
        html = fetch_html(page, url)
        project = parse_project_page(html, url, base_url)
        project.qr_code = generate_qr_code(url, project.id, qr_dir)
    except Exception as e:
        logger.error(f"Failed to scrape project {url}: {e}")
        stats.record_error()
        return None

    logger.debug(f"Extracted data for: {project.title}")
    logger.debug(f"Author: {project.author}")
    logger.debug(f"Main image: {project.images.main}")
    logger.debug(f"Tags found: {', '.join(project.tags)}")

    missing = missing_required_fields(project)
    if missing:
        logger.warning(f"Project missing required fields: {', '.join(missing)}")
        logger.warning(f"Invalid project data for: {url}")
        stats.record_error()
        return None

    stats.record_scraped()
    logger.info(f"Successfully scraped: {project.title}")
    return project


def collect_projects(
    page: Page,
    urls: List[str],
    stats: ScrapeRunStats,
    tag_filter: TagFilterConfig,
    base_url: str = config.BASE_URL,
    qr_dir: Optional[Path] = config.QR_CODE_DIR,
    project_delay: float = config.DELAY_BETWEEN_PROJECTS,
) -> Tuple[List[ProjectRecord], int]:
    """
    Scrape every URL and apply the tag filter.

    Inclusion is decided on the full tag list; excluded tags are stripped
    afterwards for display only.

    Returns:
        Tuple of (included_projects, filtered_out_count)
    """
    projects: List[ProjectRecord] = []
    filtered_count = 0

    for index, url in enumerate(urls, 1):
        logger.info(f"Processing project {index}/{len(urls)}")

        project = scrape_project(page, url, stats, base_url, qr_dir)
        if project:
            if matches_tag_filter(project.tags, tag_filter):
                project.tags = display_tags(project.tags, tag_filter.excluded_tags)
                projects.append(project)
                logger.debug(f"✓ Project \"{project.title}\" matches tag filter")
            else:
                filtered_count += 1
                logger.debug(f"✗ Project \"{project.title}\" filtered out (tags: {', '.join(project.tags) or 'none'})")

        if index < len(urls):
            time.sleep(project_delay)

    return projects, filtered_count


def run_scraper(
    output_path: Path = config.DATA_PATH,
    max_projects: Optional[int] = config.MAX_PROJECTS,
    tag_filter: Optional[TagFilterConfig] = None,
    base_url: str = config.BASE_URL,
) -> Optional[Dataset]:
    """
    Main scraper function - discovers, scrapes, filters and saves projects.

    Returns:
        The saved Dataset, or None if no projects were discovered
    """
    tag_filter = tag_filter or TagFilterConfig.from_config()
    stats = ScrapeRunStats()

    logger.info("=" * 80)
    logger.info("Williams College Makerspace Project Scraper")
    logger.info("=" * 80)
    logger.info(f"Base URL: {base_url}")
    logger.info(f"Output: {output_path}")
    logger.info(f"QR codes: {config.QR_CODE_DIR}")
    logger.info(f"Project limit: {max_projects or 'none'}")
    logger.info(tag_filter.describe())
    logger.info("")

    with open_browser_page() as page:
        urls = discover_project_urls(page, stats, base_url=base_url, max_projects=max_projects)

        if not urls:
            logger.warning("No projects found to scrape")
            return None

        projects, filtered_count = collect_projects(page, urls, stats, tag_filter, base_url=base_url)

    if tag_filter.enabled:
        logger.info(f"Tag filtering results: {len(projects)} projects included, {filtered_count} projects filtered out")

    dataset = write_dataset(projects, stats, output_path)

    logger.info("")
    logger.info("=" * 80)
    logger.info("Scraping Complete")
    logger.info("=" * 80)
    logger.info(f"Scraping completed in {stats.duration_seconds:.1f}s")
    logger.info(f"Projects found: {stats.projects_found}")
    logger.info(f"Projects successfully scraped: {stats.projects_scraped}")
    logger.info(f"Projects included after filtering: {dataset.total_projects}")
    logger.info(f"Errors encountered: {stats.errors}")
    logger.info("")

    return dataset


def main():
    """Run the scraper with settings from config/environment."""
    log_file = setup_logging()
    logger.info(f"Log file: {log_file}")

    try:
        run_scraper()
    except Exception as e:
        logger.error(f"Scraping process failed: {e}")
        sys.exit(1)

    logger.info("Scraping process completed successfully")


if __name__ == "__main__":
    main()
