"""Reply formatting helpers.

Keeping every user-facing text here prevents drift between the command
handling and rendering paths. All texts are Telegram HTML.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Optional

from core.models import Posting

PRIVACY_NOTICE_HASHED = (
    "⚠️ The bot only stores message ids, chat ids, keyword hashes and timestamps. "
    "Message content, groups and senders are not kept; the preview below is "
    "forwarded by Telegram."
)
PRIVACY_NOTICE_PLAIN = (
    "⚠️ The bot only stores message ids, chat ids, keywords and timestamps. "
    "Message content, groups and senders are not kept; the preview below is "
    "forwarded by Telegram."
)
MISSING_NOTICE = "[This message no longer exists; its index entries will be removed]"
FORWARD_FAILED_NOTICE = "[This message could not be forwarded]"
SELF_CHAT_REJECTED = "Searching the conversation with the bot itself is not supported."
INVALID_CONTROL = "This search button is no longer valid."

EARLIER_LABEL = "Earlier"
LATER_LABEL = "Later"
LINK_LABEL = "🔗"


def privacy_notice(hash_keywords: bool) -> str:
    return PRIVACY_NOTICE_HASHED if hash_keywords else PRIVACY_NOTICE_PLAIN


def format_timestamp(timestamp_ms: int) -> str:
    """Render a posting timestamp in the host's local time zone."""

    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.astimezone().strftime("%H:%M:%S %d-%m-%Y").strip()


def format_no_results(keywords: str, skip: int) -> str:
    safe_keywords = html.escape(keywords)
    if skip > 0:
        return f"No further messages found for <b>{safe_keywords}</b>"
    return f"No messages found for <b>{safe_keywords}</b>"


def format_result(keywords: str, posting: Posting, skip: int, notice: Optional[str] = None) -> str:
    """Create the header shown above a forwarded search result."""

    lines = [
        f"Result #{skip + 1} for <b>{html.escape(keywords)}</b>:",
        f"🕙 {html.escape(format_timestamp(posting.timestamp_ms))}",
    ]
    if notice:
        lines.extend(["", html.escape(notice)])
    return "\n".join(lines)


def format_group_hint(command: str, chat_id: int) -> str:
    return (
        f"Send <code>/{html.escape(command)} {chat_id} &lt;keywords&gt;</code> "
        "to the bot in a private chat to search this conversation."
    )


def format_usage(command: str) -> str:
    return (
        f"Usage: <code>/{html.escape(command)} &lt;chat_id&gt; &lt;keywords&gt;</code>\n"
        f"Send <code>/{html.escape(command)}</code> inside a group to get its chat id."
    )


def format_no_keywords(keywords: str) -> str:
    return f"<b>{html.escape(keywords)}</b> contains no searchable keywords."


def format_query_too_long(keywords: str) -> str:
    return f"<b>{html.escape(keywords)}</b> is too long to search; please use fewer keywords."
