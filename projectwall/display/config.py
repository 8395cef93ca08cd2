"""
Configuration for the project display
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

load_dotenv(PROJECT_ROOT / ".env")

# Dataset written by the scraper
DATA_PATH = Path(os.getenv("PROJECTS_DATA_PATH", PROJECT_ROOT / "data" / "projects.json"))

# Timing (in seconds)
CYCLE_DURATION = float(os.getenv("DISPLAY_CYCLE_SECONDS", "15"))  # per project set
ANIMATION_DURATION = float(os.getenv("DISPLAY_ANIMATION_SECONDS", "0.5"))

# Number of projects shown at once (3x3 grid)
WINDOW_SIZE = int(os.getenv("DISPLAY_WINDOW_SIZE", "9"))

# Card rendering
MAX_CARD_TAGS = 4
CARD_WIDTH = 72
TITLE_SUFFIXES = [
    " | Williams College: Makerspace & FabLab",
    " | Williams College Makerspace",
]

# Fields a project needs before it can be shown
REQUIRED_FIELDS = ["title", "url", "qrCode"]
