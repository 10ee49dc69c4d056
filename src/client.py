"""Telegram client factory for telesearch.

telesearch logs in as a bot. Telethon still talks MTProto, so the client
needs the application's API_ID/API_HASH, while the bot identity comes from
BOT_TOKEN, which app.py hands to ``client.start(bot_token=...)``. The
session file caches the bot authorization between restarts.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient


def build_client() -> TelegramClient:
    """Create an unstarted Telethon client from API_ID, API_HASH and SESSION_NAME."""

    load_dotenv()

    api_id = os.getenv("API_ID")
    api_hash = os.getenv("API_HASH")
    session_name = os.getenv("SESSION_NAME", "telesearch")

    # Without these Telethon cannot even reach the bot login step.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    logging.getLogger(__name__).info("Initializing Telegram client")

    return TelegramClient(session_name, int(api_id), api_hash)


def bot_token() -> str:
    """Return the bot token from the environment, failing fast when missing."""

    load_dotenv()
    token = os.getenv("BOT_TOKEN")
    if not token:
        raise RuntimeError("Missing BOT_TOKEN in environment")
    return token
