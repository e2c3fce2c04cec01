"""Markdown rendering of analytics snapshots."""
