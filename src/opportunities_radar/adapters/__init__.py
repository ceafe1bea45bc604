"""Adapters for fetching, summarization and storage."""
