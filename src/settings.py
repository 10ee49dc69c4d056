"""Static configuration for telesearch.

All user-editable settings (search, indexing, storage, logging) live in a
single JSON file for quick edits without touching Python.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Settings are loaded from config.json so operators can tune search and
# retention without editing code.
CONFIG_PATH = os.environ.get("TELESEARCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


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

# Search controls:
# - SEARCH_COMMAND: command name without the leading slash
# - HIT_RATIO: share of query keywords a message must contain
# - EXTRA_STOPWORDS: added to the built-in stopword set
_search = _CONFIG.get("search", {})
SEARCH_COMMAND = _search.get("command", "search")
HIT_RATIO = float(_search.get("hit_ratio", 0.75))
EXTRA_STOPWORDS = frozenset(_search.get("extra_stopwords", []))

# Indexing controls. Messages starting with COMMAND_PREFIX are never indexed.
_indexing = _CONFIG.get("indexing", {})
COMMAND_PREFIX = _indexing.get("command_prefix", "/")
INDEX_PRIVATE_CHATS = bool(_indexing.get("index_private_chats", False))
TOKENIZER_USER_DICT = _indexing.get("user_dict")

# Posting store. Keyword hashing keeps plaintext keywords out of the DB;
# RETENTION_DAYS = 0 keeps postings forever.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("db_path", "telesearch.db"))
HASH_KEYWORDS = bool(_storage.get("hash_keywords", True))
RETENTION_DAYS = int(_storage.get("retention_days", 0))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
