"""Indexer, identity, push and notification services."""
