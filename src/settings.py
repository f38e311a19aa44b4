"""Static configuration for feedingest.

All user-editable settings (serving domain, database, logging) live in a
single JSON file for quick edits without touching Python. The path can be
overridden with FEEDINGEST_CONFIG, also read from a local .env file.
"""

import json
import os

from dotenv import load_dotenv

from core.config import PUBLIC_COLLECTION, IngestConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.getenv("FEEDINGEST_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The domain this server answers for. Mentions on this host are local
# accounts and tags minted for it are local statuses.
LOCAL_DOMAIN = os.getenv("LOCAL_DOMAIN") or _CONFIG.get("local_domain", "localhost")

# Mention href that addresses everyone rather than an account.
PUBLIC_COLLECTION_HREF = _CONFIG.get("public_collection", PUBLIC_COLLECTION)

# Where to store the SQLite database (statuses, accounts and the job queue).
DB_PATH = _resolve_path(_CONFIG.get("db_path", "feedingest.db"))

INGEST = IngestConfig(local_domain=LOCAL_DOMAIN, public_collection=PUBLIC_COLLECTION_HREF)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
