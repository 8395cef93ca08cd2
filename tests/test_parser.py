"""
Tests for listing and project page parsing.
"""

import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from projectwall.makerspace.models import ProjectRecord
from projectwall.makerspace.parser import (
    extract_tags,
    is_excluded_image,
    listing_page_url,
    make_project_id,
    missing_required_fields,
    normalize_project_url,
    parse_listing_page,
    parse_project_page,
    strip_cache_buster,
    with_cache_buster,
)
from bs4 import BeautifulSoup

BASE = "https://sites.williams.edu/makerspace/projects/"


def listing_html(slugs, next_link=False, page_numbers=()):
    posts = "".join(
        f'<div class="fl-post-feed-post"><h2 class="fl-post-title"><a href="{BASE}{slug}/">{slug}</a></h2></div>'
        for slug in slugs
    )
    pagination = ""
    if next_link:
        pagination += f'<a class="next page-numbers" href="{BASE}page/99/">Next &raquo;</a>'
    pagination += "".join(f'<a class="page-numbers" href="{BASE}page/{n}/">{n}</a>' for n in page_numbers)
    return (
        "<html><head><title>Projects</title></head><body>"
        f"{posts}<nav class='pagination'>{pagination}</nav></body></html>"
    )


PROJECT_HTML = f"""
<html>
<head><title>Laser Cut Box | Williams College Makerspace</title></head>
<body>
  <header><img src="/wp-content/uploads/header-banner.jpg"></header>
  <article>
    <h1 class="entry-title">Laser Cut Box</h1>
    <span class="author">Jane Doe</span>
    <div class="entry-content">
      <img src="/wp-content/uploads/cropped-logo.png">
      <img src="/wp-content/uploads/box-1.jpg">
      <img data-src="/wp-content/uploads/box-2.jpg">
      <p>A box cut from   birch plywood.</p>
    </div>
    <footer class="entry-footer">
      <span class="tags"><a rel="tag" href="/tag/lasers/">Laser Cutting</a></span>
      <p>This entry was posted in Projects and tagged Laser Cutting, Makerspace Project by Jane Doe.</p>
    </footer>
  </article>
  <script>var tagged = "ignore me";</script>
</body>
</html>
"""


def test_project_id_is_deterministic_slug():
    url = BASE + "Laser_Cut Box-2024/"
    first = make_project_id(url, BASE)
    assert first == make_project_id(url, BASE)
    assert first == "laser-cut-box-2024"


def test_project_id_is_lowercase_alphanumeric_and_bounded():
    url = BASE + "A" * 40 + "/Some.Very+Long?Path=" + "x" * 40
    project_id = make_project_id(url, BASE)
    assert len(project_id) <= 50
    assert re.fullmatch(r"[a-z0-9-]+", project_id)


def test_listing_page_url():
    assert listing_page_url(BASE, 1) == BASE
    assert listing_page_url(BASE, 3) == BASE + "page/3/"


def test_cache_buster_round_trip():
    busted = with_cache_buster(BASE, 123)
    assert busted == BASE + "?cb=123"
    assert with_cache_buster(BASE + "?a=1", 5) == BASE + "?a=1&cb=5"
    assert strip_cache_buster(busted) == BASE


def test_normalize_project_url_rejects_non_project_links():
    assert normalize_project_url("/makerspace/projects/robot-arm/#comments", BASE) == BASE + "robot-arm/"
    assert normalize_project_url(BASE, BASE) is None
    assert normalize_project_url(BASE + "page/2/", BASE) is None
    assert normalize_project_url("https://example.com/projects/robot/", BASE) is None
    assert normalize_project_url(None, BASE) is None


def test_strip_cache_buster_keeps_other_query_text():
    url = "https://x/projects/a/?q=a%20b&flag"
    assert strip_cache_buster(with_cache_buster(url, 42)) == url
    assert strip_cache_buster("https://x/projects/a/?cb=1&q=a%20b") == "https://x/projects/a/?q=a%20b"


def test_normalize_project_url_uses_base_scheme():
    url = normalize_project_url("http://sites.williams.edu/makerspace/projects/robot-arm/", BASE)
    assert url == BASE + "robot-arm/"
    assert make_project_id(url, BASE) == "robot-arm"


def test_listing_primary_selector_and_next_control():
    listing = parse_listing_page(listing_html(["robot-arm", "lamp"], next_link=True), BASE, 1)
    assert listing.urls == [BASE + "robot-arm/", BASE + "lamp/"]
    assert not listing.used_fallback
    assert listing.has_next


def test_listing_skips_urls_seen_on_earlier_pages():
    seen = {BASE + "robot-arm/"}
    listing = parse_listing_page(listing_html(["robot-arm", "lamp"]), BASE, 2, seen)
    assert listing.urls == [BASE + "lamp/"]


def test_listing_fallback_selectors():
    html = f"""
    <html><body>
      <div class="grid">
        <a href="{BASE}kinetic-sculpture/">Kinetic Sculpture</a>
        <a href="{BASE}empty-text/"> </a>
        <a href="{BASE}page/2/">2</a>
      </div>
    </body></html>
    """
    listing = parse_listing_page(html, BASE, 1)
    assert listing.used_fallback
    assert listing.urls == [BASE + "kinetic-sculpture/"]


def test_listing_numbered_pagination():
    html = listing_html(["a"], page_numbers=(1, 2, 3))
    assert parse_listing_page(html, BASE, 2).has_next
    assert not parse_listing_page(html, BASE, 3).has_next


def test_empty_listing_page_never_continues():
    html = listing_html([], next_link=True, page_numbers=(1, 2, 3, 4))
    listing = parse_listing_page(html, BASE, 2)
    assert listing.urls == []
    assert not listing.has_next


def test_parse_project_page_fields():
    url = BASE + "laser-cut-box/"
    project = parse_project_page(PROJECT_HTML, url, BASE)

    assert project.id == "laser-cut-box"
    assert project.url == url
    assert project.title == "Laser Cut Box | Williams College Makerspace"
    assert project.author == "Jane Doe"
    assert project.description == "A box cut from birch plywood."
    assert project.content == "A box cut from birch plywood."
    assert project.tags == ["Laser Cutting", "Makerspace Project"]
    assert project.images.main == "https://sites.williams.edu/wp-content/uploads/box-1.jpg"
    assert project.images.gallery == ["https://sites.williams.edu/wp-content/uploads/box-2.jpg"]
    assert project.date_created == ""
    assert project.qr_code == ""


def test_parse_project_page_defaults():
    project = parse_project_page("<html><body></body></html>", BASE + "bare/", BASE)
    assert project.title == "Unknown Title"
    assert project.author == ""
    assert project.tags == []
    assert project.images.main == ""


def test_description_falls_back_to_truncated_paragraph():
    html = "<html><body><p>" + "word " * 100 + "</p></body></html>"
    project = parse_project_page(html, BASE + "long/", BASE)
    assert len(project.description) == 200


def test_excluded_images():
    assert is_excluded_image("https://x/wp-content/uploads/Site-Banner.png")
    assert is_excluded_image("https://x/favicon.ico")
    assert not is_excluded_image("https://x/wp-content/uploads/robot.jpg")


def test_tags_drop_long_and_duplicate_entries():
    long_tag = "x" * 51
    html = f"""
    <html><body>
      <a rel="tag">Robotics</a><a rel="tag">Robotics</a><a rel="tag">{long_tag}</a>
      <p>Posted and tagged 3D Printing, Robotics, standby power by admin.</p>
    </body></html>
    """
    tags = extract_tags(BeautifulSoup(html, "html.parser"))
    assert tags == ["Robotics", "3D Printing", "standby power"]


def test_tags_use_the_trailing_tagged_phrase():
    html = """
    <html><body>
      <p>My sister tagged along to the lab.</p>
      <p>This entry was posted in Projects and tagged Laser Cutting, Robotics by Jane.</p>
    </body></html>
    """
    tags = extract_tags(BeautifulSoup(html, "html.parser"))
    assert tags == ["Laser Cutting", "Robotics"]


def test_missing_required_fields():
    assert missing_required_fields(ProjectRecord(id="x", url="", title="T")) == ["url"]
    assert missing_required_fields(ProjectRecord(id="x", url=BASE + "x/", title="T")) == []
