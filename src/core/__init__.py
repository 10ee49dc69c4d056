"""Core domain package for telesearch.

Core contains keyword extraction, the merge-match search, and the
pagination protocol without any Telegram or storage-specific code, keeping
the business logic portable.
"""
