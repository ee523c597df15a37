"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (SEARCHSYNC_ prefix)
  3. Default values

Per-entity index configuration lives in ``IndexConfig`` objects, which are
immutable and handed to ``Searcher`` / ``Indexer`` at construction time.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from searchsync.exceptions import ConfigurationError


class TransportSettings(BaseModel):
    """Search backend connection configuration."""

    hosts: list[str] = Field(default_factory=lambda: ["http://localhost:9200"], description="Backend node URLs")
    username: str | None = Field(default=None, description="HTTP basic-auth username")
    password: str | None = Field(default=None, description="HTTP basic-auth password")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_certs: bool = Field(default=True, description="Verify TLS certificates")

    @field_validator("hosts", mode="before")
    @classmethod
    def _parse_hosts(cls, v: Any) -> list[str]:
        """Parse hosts from JSON string (env var) or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(h) for h in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            # Single host as plain string
            return [v] if v else []
        return list(v)


DEFAULT_INDEX = "searchsync"


class SearchSettings(BaseModel):
    """Search behavior configuration."""

    default_per_page: int = Field(default=20, ge=1, description="Page size when neither caller nor index sets one")


class IndexingSettings(BaseModel):
    """Indexing behavior configuration."""

    default_index: str = Field(default=DEFAULT_INDEX, description="Index used when an IndexConfig names none")
    batch_size: int = Field(default=1000, ge=1, description="Records per bulk request during reindexing")
    offline: bool = Field(default=False, description="Skip all indexing (search is unaffected)")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class IndexConfig(BaseModel):
    """Immutable per-entity index configuration.

    Attributes:
        name: Entity name (e.g. ``"things"``); also the default document type.
        index: Index name. ``None`` means the application default index.
        type: Document type within the index. Defaults to ``name``.
        per_page: Entity page size for searches.
        max_per_page: Upper bound applied to any requested page size.
        mapping: Field mapping sent when creating the index / updating the mapping.
        index_options: Index settings sent when creating the index.
        percolate: Percolate documents while indexing them.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1, description="Entity name")
    index: str | None = Field(default=None, description="Index name")
    type: str | None = Field(default=None, description="Document type")
    per_page: int | None = Field(default=None, ge=1, description="Default page size for this entity")
    max_per_page: int | None = Field(default=None, ge=1, description="Maximum page size for this entity")
    mapping: dict[str, Any] | None = Field(default=None, description="Field mapping")
    index_options: dict[str, Any] | None = Field(default=None, description="Index settings")
    percolate: bool = Field(default=False, description="Percolate on index")

    @model_validator(mode="before")
    @classmethod
    def _default_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("type") is None and data.get("name"):
            data = {**data, "type": data["name"]}
        return data

    def resolve(self, default_index: str) -> IndexConfig:
        """Return a copy with ``index`` filled in from the application default."""
        if self.index is not None:
            return self
        return self.model_copy(update={"index": default_index})

    def index_path(self, action: str | None = None) -> str:
        """``/{index}[/{action}]``"""
        return "/" + "/".join(part for part in (self.index, action) if part)

    def index_type_path(self, action: str | None = None) -> str:
        """``/{index}/{type}[/{action}]``"""
        return self.index_path("/".join(part for part in (self.type, action) if part))


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the SEARCHSYNC_ prefix.
    Nested settings use double underscores: SEARCHSYNC_TRANSPORT__TIMEOUT=10

    Example:
        SEARCHSYNC_TRANSPORT__HOSTS='["http://es1:9200","http://es2:9200"]'
        SEARCHSYNC_INDEXING__BATCH_SIZE=500
        SEARCHSYNC_SEARCH__DEFAULT_PER_PAGE=25
    """

    model_config = {
        "env_prefix": "SEARCHSYNC_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="searchsync", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    transport: TransportSettings = Field(default_factory=TransportSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    indexing: IndexingSettings = Field(default_factory=IndexingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    indices: dict[str, IndexConfig] = Field(default_factory=dict, description="Index configurations by entity name")

    @model_validator(mode="before")
    @classmethod
    def _name_indices(cls, data: Any) -> Any:
        """Let YAML index entries omit ``name``; the mapping key is used instead."""
        if isinstance(data, dict) and isinstance(data.get("indices"), dict):
            data = dict(data)
            data["indices"] = {
                key: {"name": key, **value} if isinstance(value, dict) and "name" not in value else value
                for key, value in data["indices"].items()
            }
        return data

    def index_config(self, name: str) -> IndexConfig:
        """Look up an entity's index configuration with the default index applied.

        Raises:
            ConfigurationError: If no index is configured under ``name``.
        """
        try:
            config = self.indices[name]
        except KeyError:
            raise ConfigurationError(
                f"No index configured with name '{name}'. Available indices: {list(self.indices.keys())}"
            ) from None
        return config.resolve(self.indexing.default_index)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments, so they
        override environment variables for the keys they set.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
