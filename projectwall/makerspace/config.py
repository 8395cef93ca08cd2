"""
Configuration for the Williams College Makerspace project scraper
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: list) -> list:
    value = os.getenv(name)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


# Base URL for the project listing (must end with a slash)
BASE_URL = os.getenv("MAKERSPACE_BASE_URL", "https://sites.williams.edu/makerspace/projects/")

# Output paths
DATA_PATH = Path(os.getenv("PROJECTS_DATA_PATH", PROJECT_ROOT / "data" / "projects.json"))
QR_CODE_DIR = Path(os.getenv("QR_CODE_DIR", PROJECT_ROOT / "assets" / "qr-codes"))
LOG_DIR = Path(os.getenv("LOG_DIR", PROJECT_ROOT / "logs"))

# Run mode
IS_DEVELOPMENT = os.getenv("SCRAPER_ENV", "").lower() == "development"
IS_CI = os.getenv("CI", "").lower() == "true"  # GitHub Actions sets CI=true

# Limit for development/testing runs
MAX_PROJECTS = int(os.getenv("MAX_PROJECTS")) if os.getenv("MAX_PROJECTS") else (5 if IS_DEVELOPMENT else None)

# Delays (in seconds), faster in CI
DELAY_BETWEEN_PAGES = 1.0 if IS_CI else 2.0
DELAY_BETWEEN_PROJECTS = 0.5 if IS_CI else 1.0

# Browser settings
HEADLESS = True
NAVIGATION_TIMEOUT = int(os.getenv("NAVIGATION_TIMEOUT_MS", "60000"))
BODY_TIMEOUT = int(os.getenv("BODY_TIMEOUT_MS", "10000"))
USER_AGENT = "Mozilla/5.0 (compatible; MakerspaceBot/1.0)"
VIEWPORT = {"width": 1280, "height": 720}
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",  # For GitHub Actions
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
]
BLOCKED_RESOURCE_TYPES = {"stylesheet", "image"}

# Anti-bot interstitial handling
CHALLENGE_WAIT_SECONDS = float(os.getenv("CHALLENGE_WAIT_SECONDS", "10"))

# Tag filtering
TAG_FILTER_ENABLED = _env_bool("TAG_FILTER_ENABLED", True)
TAG_FILTER_MODE = os.getenv("TAG_FILTER_MODE", "any")  # 'any' or 'all'
REQUIRED_TAGS = _env_list("REQUIRED_TAGS", ["makerspace"])

# Tags stripped from saved records (case-insensitive)
EXCLUDED_TAGS = _env_list("EXCLUDED_TAGS", ["makerspace", "fablab", "fab lab", "williams", "college"])

# QR code rendering
QR_WIDTH = 200
QR_MARGIN = 2

# Extraction limits
MAX_TAG_LENGTH = 50
ID_MAX_LENGTH = 50
DESCRIPTION_FALLBACK_LENGTH = 200
