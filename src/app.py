"""Application entry point for the telesearch bot."""

from __future__ import annotations

import argparse
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.jieba_tokenizer import JiebaTokenizer
from adapters.sqlite_storage import SQLitePostingStore
from adapters.telegram_mapper import (
    build_callback_request,
    build_command_request,
    build_context,
    callback_data,
)
from adapters.telegram_messenger import TelethonMessenger
from client import bot_token, build_client
from core import formatting
from core.config import IndexingConfig, SearchConfig
from core.indexer import MessageIndexer
from core.pagination import PaginationTokenError, is_search_token
from core.renderer import PreviewRegistry, SearchResultRenderer
from core.search_engine import KeywordSearchEngine
from core.search_service import SearchCommandService

NAME = "TELESEARCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/telesearch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # jieba logs its dictionary loading at DEBUG through its own handler.
    logging.getLogger("jieba").setLevel(max(level, logging.INFO))


def _is_search_callback(data: bytes) -> bool:
    return is_search_token(data.decode("utf-8", errors="replace"))


def _build_store() -> SQLitePostingStore:
    store = SQLitePostingStore(settings.DB_PATH, hash_keywords=settings.HASH_KEYWORDS)
    store.init_db()
    return store


def _apply_retention(store: SQLitePostingStore) -> int:
    if settings.RETENTION_DAYS <= 0:
        return 0
    return store.cleanup_postings(settings.RETENTION_DAYS)


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting telesearch")

    store = _build_store()
    removed = _apply_retention(store)
    if removed:
        logger.info("Retention cleanup removed %s postings", removed)

    search_config = SearchConfig(
        hit_ratio=settings.HIT_RATIO,
        extra_stopwords=settings.EXTRA_STOPWORDS,
        command=settings.SEARCH_COMMAND,
    )
    indexing_config = IndexingConfig(
        command_prefix=settings.COMMAND_PREFIX,
        index_private_chats=settings.INDEX_PRIVATE_CHATS,
    )
    tokenizer = JiebaTokenizer(settings.TOKENIZER_USER_DICT)

    client = build_client()
    messenger = TelethonMessenger(client)
    indexer = MessageIndexer(store, tokenizer, indexing_config)
    engine = KeywordSearchEngine(store, tokenizer, search_config)
    # One registry for the process lifetime; it only tracks transient previews.
    renderer = SearchResultRenderer(
        messenger,
        indexer,
        PreviewRegistry(),
        formatting.privacy_notice(settings.HASH_KEYWORDS),
    )
    service = SearchCommandService(engine, renderer, messenger, search_config)

    command_pattern = re.compile(rf"^/{re.escape(settings.SEARCH_COMMAND)}(@\w+)?(\s|$)")

    @client.on(events.NewMessage(incoming=True, pattern=command_pattern))
    async def search_handler(event) -> None:
        try:
            await service.handle_command(build_command_request(event))
        except Exception:
            logger.exception("Error while handling search command")

    @client.on(events.CallbackQuery(data=_is_search_callback))
    async def pagination_handler(event) -> None:
        try:
            await service.handle_pagination(build_callback_request(event), callback_data(event))
            await event.answer()
        except PaginationTokenError:
            logger.warning("Rejected malformed pagination token from chat %s", event.chat_id)
            await event.answer(formatting.INVALID_CONTROL, alert=True)
        except Exception:
            logger.exception("Error while handling pagination")
            await event.answer(formatting.INVALID_CONTROL, alert=True)

    # Every incoming message goes through the indexer; commands are filtered there.
    @client.on(events.NewMessage(incoming=True))
    async def index_handler(event) -> None:
        try:
            await indexer.handle(build_context(event.message))
        except Exception:
            logger.exception("Error while indexing message")

    @client.on(events.MessageEdited(incoming=True))
    async def edit_handler(event) -> None:
        try:
            await indexer.handle(build_context(event.message), edited=True)
        except Exception:
            logger.exception("Error while re-indexing edited message")

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    client.start(bot_token=bot_token())
    logger.info("Bot connected. Listening for messages...")
    client.run_until_disconnected()


def _cleanup() -> None:
    _configure_logging()
    store = _build_store()
    if settings.RETENTION_DAYS <= 0:
        print("Retention is disabled (storage.retention_days = 0); nothing to clean up.")
        return
    removed = store.cleanup_postings(settings.RETENTION_DAYS)
    print(f"Removed {removed} postings older than {settings.RETENTION_DAYS} days.")


def _stats(chat_id: Optional[int]) -> None:
    store = _build_store()
    total = store.count_postings(chat_id)
    scope = f"chat {chat_id}" if chat_id is not None else "all chats"
    print(f"{total} postings stored for {scope}.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="telesearch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("cleanup", help="Delete postings older than the retention horizon")
    stats_parser = subparsers.add_parser("stats", help="Show how many postings are stored")
    stats_parser.add_argument("--chat-id", type=int, default=None, help="Limit the count to one chat")

    args = parser.parse_args(argv)
    if args.command == "cleanup":
        _cleanup()
        return
    if args.command == "stats":
        _stats(args.chat_id)
        return
    _run()


if __name__ == "__main__":
    main()
