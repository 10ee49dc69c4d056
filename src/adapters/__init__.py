"""Adapters binding the core ports to Telegram, SQLite and jieba."""
