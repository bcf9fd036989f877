import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()  # default search
# Also load from project root and autoleadgen/.env if present
_PKG_DIR = Path(__file__).resolve().parent
_ROOT_DIR = _PKG_DIR.parent
load_dotenv(_ROOT_DIR / ".env")
load_dotenv(_PKG_DIR / ".env")


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() in ("1", "true", "yes", "on")


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


# Where stores (seen URLs, leads) live
DATA_DIR = Path(os.getenv("AUTOLEADGEN_DATA_DIR") or (_ROOT_DIR / ".data")).expanduser()
SEEN_URLS_FILE = Path(os.getenv("SEEN_URLS_FILE") or (DATA_DIR / "seen_profile_urls.json"))
LEADS_FILE = Path(os.getenv("LEADS_FILE") or (DATA_DIR / "leads.json"))

# Key/model broker. The secret is sent as a Bearer token; device id identifies this install.
KEY_BROKER_URL = (os.getenv("KEY_BROKER_URL") or "").strip().rstrip("/") or None
KEY_BROKER_SECRET = (os.getenv("KEY_BROKER_SECRET") or "").strip() or None
DEVICE_ID = os.getenv("DEVICE_ID", "autoleadgen-cli")
KEY_BROKER_TIMEOUT_S = _float("KEY_BROKER_TIMEOUT_S", 30.0)

# Outbound automation pacing (seconds)
AUTOMATION_MIN_DELAY_S = _int("AUTOMATION_MIN_DELAY_S", 30)
AUTOMATION_MAX_DELAY_S = _int("AUTOMATION_MAX_DELAY_S", 90)
MESSAGE_DELAY_MIN_S = _int("MESSAGE_DELAY_MIN_S", 5)
MESSAGE_DELAY_MAX_S = _int("MESSAGE_DELAY_MAX_S", 15)
PAGE_LOAD_TIMEOUT_S = _float("PAGE_LOAD_TIMEOUT_S", 30.0)
DIALOG_TIMEOUT_S = _float("DIALOG_TIMEOUT_S", 15.0)
MESSAGE_TEMPLATE = os.getenv("MESSAGE_TEMPLATE", "")

# Lead discovery
DISCOVERY_TARGET = _int("DISCOVERY_TARGET", 50)
DISCOVERY_MAX_PAGES = _int("DISCOVERY_MAX_PAGES", 50)
PROFILE_DELAY_S = _float("PROFILE_DELAY_S", 3.0)

# AI generation. Default OFF until a model is chosen.
AI_ENABLED = _flag("AI_ENABLED", "false")
AI_MODEL = (os.getenv("AI_MODEL") or "").strip() or None
AI_TIMEOUT_S = _float("AI_TIMEOUT_S", 60.0)
AI_SAMPLE_MESSAGE = os.getenv("AI_SAMPLE_MESSAGE") or None

# Contact enrichment (Apollo)
APOLLO_ENABLED = _flag("APOLLO_ENABLED", "false")
APOLLO_API_KEY = (os.getenv("APOLLO_API_KEY") or "").strip() or None
APOLLO_TIMEOUT_S = _float("APOLLO_TIMEOUT_S", 30.0)

# Engagement / connection requests
CONNECTION_MIN_DELAY_S = _int("CONNECTION_MIN_DELAY_S", 30)
CONNECTION_MAX_DELAY_S = _int("CONNECTION_MAX_DELAY_S", 90)

# Logging
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()
LOGS_DIR = os.getenv("LOGS_DIR") or None
