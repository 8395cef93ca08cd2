"""
Terminal slideshow for scraped Makerspace projects

Loads the dataset once, then shows windows of project cards on a timer.
Keys (followed by Enter): n or empty = next, p = previous, r = reload,
h = hide/show, q = quit.
"""

import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Dict, Any, Optional, TextIO

from . import config
from .cycler import DisplayCycler, EmptyDatasetError

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load project data. Please try again later."
EMPTY_MESSAGE = "No projects found to display."


class DatasetLoadError(Exception):
    """The dataset file could not be read or parsed."""


def load_projects(path: Path = config.DATA_PATH) -> List[Dict[str, Any]]:
    """
    Read the dataset and keep the projects that can be displayed.

    Raises:
        DatasetLoadError: If the file is missing or not valid JSON
    """
    logger.info(f"Loading project data from {path}...")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DatasetLoadError(f"Error loading projects from {path}: {e}") from e

    if not isinstance(data, dict):
        raise DatasetLoadError(f"Unexpected dataset format in {path}")

    projects = data.get("projects") or []
    logger.info(f"Loaded {len(projects)} projects")

    projects = [
        project for project in projects
        if isinstance(project, dict) and all(project.get(name) for name in config.REQUIRED_FIELDS)
    ]
    logger.info(f"{len(projects)} projects after filtering")
    return projects


def clean_title(title: str, suffixes: Optional[List[str]] = None) -> str:
    """Remove the site name appended to page titles."""
    for suffix in suffixes if suffixes is not None else config.TITLE_SUFFIXES:
        title = title.replace(suffix, "")
    return title.strip()


def format_card(project: Dict[str, Any], width: int = config.CARD_WIDTH) -> str:
    title = clean_title(project.get("title", ""))
    lines = [title[:width]]

    author = project.get("author") or ""
    if author:
        lines.append(f"  By: {author}"[:width])

    tags = (project.get("tags") or [])[:config.MAX_CARD_TAGS]
    if tags:
        lines.append("  " + " · ".join(f"[{tag}]" for tag in tags))

    image = (project.get("images") or {}).get("main") or "No Image Available"
    lines.append(f"  Image: {image}"[:width])
    lines.append(f"  Scan: {project.get('url', '')}"[:width])
    return "\n".join(lines)


def render_window(window: List[Dict[str, Any]], page_label: str, width: int = config.CARD_WIDTH) -> str:
    rule = "=" * width
    parts = [rule, f"Makerspace Projects  {page_label}".rjust(width), rule]
    for slot, project in enumerate(window, 1):
        parts.append(f"{slot}. {format_card(project, width)}")
    parts.append(rule)
    return "\n".join(parts)


def render_error(message: str, width: int = config.CARD_WIDTH) -> str:
    rule = "!" * width
    return "\n".join([rule, "⚠️ Error", message, rule])


class Slideshow:
    """Drives a DisplayCycler and draws its windows to a text stream."""

    def __init__(
        self,
        data_path: Path = config.DATA_PATH,
        window_size: int = config.WINDOW_SIZE,
        cycle_duration: float = config.CYCLE_DURATION,
        animation_duration: float = config.ANIMATION_DURATION,
        output: Optional[TextIO] = None,
        timer_factory=None,
    ):
        self.data_path = Path(data_path)
        self.window_size = window_size
        self.cycle_duration = cycle_duration
        self.animation_duration = animation_duration
        self.output = output if output is not None else sys.stdout
        self.timer_factory = timer_factory
        self.cycler: Optional[DisplayCycler] = None
        self.error: Optional[str] = None
        self.hidden = False

    def load(self) -> bool:
        """Load the dataset and build the cycler; on failure show the error panel."""
        try:
            projects = load_projects(self.data_path)
            kwargs = {"timer_factory": self.timer_factory} if self.timer_factory else {}
            self.cycler = DisplayCycler(
                projects,
                window_size=self.window_size,
                cycle_duration=self.cycle_duration,
                on_render=self.show,
                on_progress_reset=self.progress,
                on_transition=self.fade_out,
                **kwargs,
            )
        except DatasetLoadError as e:
            logger.error(f"Failed to initialize display: {e}")
            self.show_error(LOAD_ERROR_MESSAGE)
            return False
        except EmptyDatasetError:
            self.show_error(EMPTY_MESSAGE)
            return False

        self.error = None
        return True

    def fade_out(self):
        # Half the animation clears the old cards, the new ones follow
        if self.animation_duration > 0:
            time.sleep(self.animation_duration / 2)

    def show(self, window: List[Dict[str, Any]], page_label: str):
        self.output.write(render_window(window, page_label) + "\n")
        self.output.flush()

    def progress(self, duration: float):
        logger.debug(f"Progress reset, next set in {duration}s")

    def show_error(self, message: str):
        self.error = message
        self.output.write(render_error(message) + "\n")
        self.output.flush()
        logger.error(f"Error displayed to user: {message}")

    def handle_key(self, key: str) -> bool:
        """
        Apply one keyboard command.

        Returns:
            False when the slideshow should quit
        """
        key = key.strip().lower()
        if key == "q":
            return False
        if key == "r":
            self.reload()
            return True
        if self.cycler is None:
            return True

        if key in ("", "n"):
            self.fade_out()
            self.cycler.next()
        elif key == "p":
            self.fade_out()
            self.cycler.previous()
        elif key == "h":
            self.hidden = not self.hidden
            self.cycler.set_hidden(self.hidden)
        return True

    def reload(self):
        if self.cycler is not None:
            self.cycler.stop()
        self.cycler = None
        self.hidden = False
        if self.load():
            self.cycler.start()

    def run(self, once: bool = False, keys: Optional[TextIO] = None) -> int:
        """
        Show the slideshow until quit (or a single window when once is set).

        Returns:
            Process exit code, 1 if the dataset could not be shown
        """
        if not self.load():
            return 1

        if once:
            self.cycler.render()
            return 0

        keys = keys or sys.stdin
        logger.info("Press ENTER or 'n' to advance, 'p' to go back, 'r' to reload, 'q' to quit")
        self.cycler.start()
        try:
            for line in keys:
                if not self.handle_key(line):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            if self.cycler is not None:
                self.cycler.stop()
        return 0 if self.error is None else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Run the slideshow with settings from config/environment."""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    return Slideshow().run(once="--once" in (argv or sys.argv[1:]))


if __name__ == "__main__":
    sys.exit(main())
