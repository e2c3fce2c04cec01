"""Shared helpers: logging, file cache, numeric guards."""
