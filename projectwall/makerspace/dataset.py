"""
Persisting the project dataset

The dataset file is the only thing the display reads. Each run replaces it
wholesale; nothing is merged with earlier output.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple

from . import config
from .models import Dataset, ProjectRecord, ScrapeRunStats

logger = logging.getLogger(__name__)


def build_dataset(projects: List[ProjectRecord], stats: ScrapeRunStats) -> Dataset:
    """Assemble the dataset for a finished run, closing its stats."""
    if not stats.closed:
        stats.close()
    return Dataset(stats=stats, projects=list(projects))


def load_existing_dataset(path: Path = config.DATA_PATH) -> Optional[Dict[str, Any]]:
    """
    Load the dataset written by a previous run.

    Returns:
        The parsed JSON, or None if missing or unreadable
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.info(f"Loaded {len(data.get('projects') or [])} existing projects")
        return data
    except (OSError, ValueError, AttributeError) as e:
        logger.warning(f"Could not load existing data: {e}")
        return None


def compare_with_previous(previous: Optional[Dict[str, Any]], projects: List[ProjectRecord]) -> Tuple[List[str], List[str]]:
    """
    Ids added and removed since the previous dataset.

    Returns:
        Tuple of (new_ids, removed_ids), both in a stable order
    """
    current_ids = [project.id for project in projects]
    if not previous:
        return current_ids, []

    previous_ids = [p.get("id") for p in previous.get("projects") or [] if isinstance(p, dict) and p.get("id")]
    previous_set = set(previous_ids)
    current_set = set(current_ids)

    new_ids = [pid for pid in current_ids if pid not in previous_set]
    removed_ids = [pid for pid in previous_ids if pid not in current_set]
    return new_ids, removed_ids


def save_dataset(dataset: Dataset, path: Path = config.DATA_PATH) -> Path:
    """
    Write the dataset as pretty-printed JSON, replacing any previous file.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(dataset.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.error(f"Failed to save data: {e}")
        raise

    logger.info(f"Saved {dataset.total_projects} projects to {path}")
    return path


def write_dataset(projects: List[ProjectRecord], stats: ScrapeRunStats, path: Path = config.DATA_PATH) -> Dataset:
    """Build, compare against the previous run, and persist."""
    previous = load_existing_dataset(path)
    dataset = build_dataset(projects, stats)

    new_ids, removed_ids = compare_with_previous(previous, dataset.projects)
    if previous is not None:
        logger.info(f"Changes since last run: {len(new_ids)} new, {len(removed_ids)} removed")
        for project_id in removed_ids:
            logger.debug(f"  Removed: {project_id}")

    save_dataset(dataset, path)
    return dataset
