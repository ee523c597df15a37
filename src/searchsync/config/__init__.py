"""Configuration — application settings and per-entity index configuration."""

from searchsync.config.settings import IndexConfig, Settings

__all__ = ["IndexConfig", "Settings"]
