import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
DATA_DIR = BASE_DIR / os.getenv("DATA_DIR", "data")
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Document Names ---
# Each document is persisted as <name>.json inside DATA_DIR.
STOCK_DOCUMENT = "stock_master"
RUNS_DOCUMENT = "replan_runs"
NEW_COLLECTION_DOCUMENT = "new_collection"
LIMITS_DOCUMENT = "floor_limits"

# --- Output ---
REPORT_FILENAME_BASE = os.getenv("REPORT_FILENAME", "floor_report")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")

# --- Pull Limits ---
# Used until someone stores their own defaults.
DEFAULT_MIN_PULL = int(os.getenv("DEFAULT_MIN_PULL", "1"))
DEFAULT_MAX_PULL = int(os.getenv("DEFAULT_MAX_PULL", "1"))

# --- Dashboard ---
DASHBOARD_WINDOW_DAYS = 30
DASHBOARD_STALE_DAYS = 14
TOP_CATEGORIES_LIMIT = 15
TOP_SKUS_LIMIT = 20
NO_REPLAN_LIMIT = 200

# --- Stock Search ---
SEARCH_DEFAULT_LIMIT = 200
SEARCH_MAX_LIMIT = 2000

# --- Text Parsing ---
# Header row some exports carry above the items; never a category.
QUANTITY_HEADER_TOKEN = "quantity"

# Letter sizes recognised inside "(color, size)" groups.
SIZE_LETTER_TOKENS = [
    "XXS",
    "XS",
    "S",
    "M",
    "L",
    "XL",
    "XXL",
    "XXXL",
]

# Suffixes for kids' age sizes such as "6Y" or "18MO".
AGE_SIZE_SUFFIXES = [
    "Y",
    "YR",
    "YEARS",
    "M",
    "MO",
    "MONTHS",
]
