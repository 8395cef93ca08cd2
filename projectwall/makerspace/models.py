"""
Data models for Makerspace project records and scraping runs
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ProjectImages:
    """Images found on a project page"""
    main: str = ""
    thumbnail: str = ""
    gallery: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "main": self.main,
            "thumbnail": self.thumbnail,
            "gallery": list(self.gallery),
        }


@dataclass
class ProjectRecord:
    """A single project scraped from a detail page"""

    # Identification
    id: str
    url: str

    # Content
    title: str = ""
    author: str = ""
    description: str = ""
    content: str = ""
    tags: List[str] = field(default_factory=list)
    images: ProjectImages = field(default_factory=ProjectImages)

    # Dates
    date_created: str = ""  # free text as shown on the page
    date_scraped: str = field(default_factory=utc_now_iso)

    # PNG data URL, empty when generation failed
    qr_code: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase structure read by the display."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "content": self.content,
            "tags": list(self.tags),
            "images": self.images.to_dict(),
            "dateCreated": self.date_created,
            "dateScraped": self.date_scraped,
            "qrCode": self.qr_code,
        }


@dataclass
class ScrapeRunStats:
    """
    Counters for a single scraping run.

    Updated through the record_* methods while the run is in progress.
    Once close() has been called the counters are frozen and any further
    update raises RuntimeError.
    """
    start_time: int = field(default_factory=lambda: int(time.time() * 1000))
    projects_found: int = 0
    projects_scraped: int = 0
    errors: int = 0
    finished_at: Optional[int] = None

    @property
    def closed(self) -> bool:
        return self.finished_at is not None

    def _check_open(self):
        if self.closed:
            raise RuntimeError("Scrape run statistics are closed")

    def record_found(self, count: int):
        self._check_open()
        self.projects_found = count

    def record_scraped(self):
        self._check_open()
        self.projects_scraped += 1

    def record_error(self):
        self._check_open()
        self.errors += 1

    def close(self) -> "ScrapeRunStats":
        self._check_open()
        self.finished_at = int(time.time() * 1000)
        return self

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else int(time.time() * 1000)
        return (end - self.start_time) / 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startTime": self.start_time,
            "projectsFound": self.projects_found,
            "projectsScraped": self.projects_scraped,
            "errors": self.errors,
        }


@dataclass
class Dataset:
    """The persisted output of a run, replaced wholesale every time"""
    stats: ScrapeRunStats
    projects: List[ProjectRecord] = field(default_factory=list)
    last_updated: str = field(default_factory=utc_now_iso)

    @property
    def total_projects(self) -> int:
        return len(self.projects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastUpdated": self.last_updated,
            "totalProjects": self.total_projects,
            "scrapingStats": self.stats.to_dict(),
            "projects": [project.to_dict() for project in self.projects],
        }
