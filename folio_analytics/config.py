"""Central configuration loader for folio-analytics."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root is the parent of the folio_analytics/ package
PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent

load_dotenv(PROJECT_ROOT / ".env")


def load_settings() -> dict:
    """Load settings from configs/settings.yaml."""
    settings_path = Path(os.getenv("FOLIO_SETTINGS", PROJECT_ROOT / "configs" / "settings.yaml"))
    if not settings_path.exists():
        return {}
    with open(settings_path) as f:
        return yaml.safe_load(f) or {}


SETTINGS = load_settings()

LOG_LEVEL = os.getenv("LOG_LEVEL", SETTINGS.get("app", {}).get("log_level", "INFO"))


def setting(section: str, key: str, default=None):
    """Read ``SETTINGS[section][key]`` with a default."""
    return (SETTINGS.get(section) or {}).get(key, default)


# --- Paths ---
class Paths:
    ROOT = PROJECT_ROOT
    DATA_CACHE = PROJECT_ROOT / "data" / "cache"
    HOLDINGS = PROJECT_ROOT / "configs" / "holdings.yaml"
    REPORTS_OUTPUT = PROJECT_ROOT / "reports" / "output"
    REPORTS_TEMPLATES = PACKAGE_ROOT / "reports" / "templates"
