"""Configuration for Recipe Shopper."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# App directories
APP_NAME = "recipe-shopper"
CONFIG_DIR = Path(os.getenv("RECIPE_SHOPPER_HOME", Path.home() / f".{APP_NAME}"))
REGISTRY_FILE = CONFIG_DIR / "ingredients.json"
CATEGORIES_FILE = CONFIG_DIR / "categories.json"
PANTRY_FILE = CONFIG_DIR / "pantry.json"

# Lines parsed with a lower confidence are reported as failures
MIN_CONFIDENCE = float(os.getenv("RECIPE_SHOPPER_MIN_CONFIDENCE", "0.5"))

# Upper bound on edits allowed when fuzzy-matching ingredient names
FUZZY_MAX_EDITS = int(os.getenv("RECIPE_SHOPPER_FUZZY_MAX_EDITS", "2"))

LOG_LEVEL = os.getenv("RECIPE_SHOPPER_LOG_LEVEL", "WARNING")
