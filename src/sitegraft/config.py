"""Configuration loading and validation for sitegraft."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from sitegraft.core.errors import ConfigError

# Environment variable -> (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "SITEGRAFT_ASSETS_PATH": ("assets", "base_path"),
    "SITEGRAFT_LOCAL_CSS": ("assets", "css_dir"),
    "SITEGRAFT_LOCAL_SCRIPT": ("assets", "script_dir"),
    "SITEGRAFT_LOCAL_POST_BODY_SCRIPT": ("assets", "post_body_script_dir"),
    "SITEGRAFT_VERSION": (None, "version"),
    "SITEGRAFT_EMBED_THEME": ("embed", "theme"),
}


class ExportConfig(BaseModel):
    """How to read the source export."""

    link_marker_class: str = Field(
        default="link-to-page", description="CSS class of internal link marker elements"
    )
    identifier_attribute: str = Field(
        default="id", description="Attribute on a marker holding the target page identifier"
    )
    export_hosts: list[str] = Field(
        default_factory=lambda: ["notion.so", "www.notion.so"],
        description="Hosts whose links encode page identifiers",
    )
    strip_id_suffix: bool = Field(
        default=True, description="Strip the identifier suffix from output file names"
    )
    table_id_column: str | None = Field(
        default="__id", description="Table column header to remove from database exports"
    )
    categories_file: str | None = Field(
        default=None, description="Categories page, relative to the input directory"
    )


class AssetConfig(BaseModel):
    """Stylesheets and scripts injected into every emitted page."""

    base_path: str = Field(default="", description="URL prefix for injected assets")
    css_dir: str | None = Field(default=None, description="Directory of stylesheets to link")
    script_dir: str | None = Field(default=None, description="Directory of head scripts")
    post_body_script_dir: str | None = Field(
        default=None, description="Directory of scripts appended to the end of <body>"
    )


class EmbedConfig(BaseModel):
    """Embeddable widget resolution."""

    enabled: bool = Field(default=True)
    marker: str = Field(default="codepen", description="Substring identifying widget links")
    template_marker: str = Field(default="template", description="Substring excluding a link")
    endpoint: str = Field(default="https://codepen.io/api/oembed", description="oEmbed endpoint")
    height: int = Field(default=500, description="Rendered widget height")
    theme: str | None = Field(default=None, description="Theme id appended to widget URLs")
    max_retries: int = Field(default=5, ge=0, description="Retry rounds after the first batch")
    retry_delay: float = Field(default=0.5, ge=0, description="Seconds to wait between rounds")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    @field_validator("marker", "template_marker")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        """Markers are matched case-insensitively and must be non-empty."""
        if not v.strip():
            raise ValueError("Marker must not be empty")
        return v.lower()


class SitegraftConfig(BaseModel):
    """Top-level sitegraft configuration."""

    export: ExportConfig = Field(default_factory=ExportConfig)
    assets: AssetConfig = Field(default_factory=AssetConfig)
    embed: EmbedConfig = Field(default_factory=EmbedConfig)
    version: str | None = Field(default=None, description="Output subdirectory tag")
    nav_file: str = Field(default="page-links.json", description="Navigation description file")
    categories_output: str = Field(default="categories.json")
    max_concurrent_pages: int = Field(default=8, ge=1)
    log_level: str = Field(default="INFO", description="Logging level")

    def output_root(self, output_dir: Path) -> Path:
        """Directory the site is emitted into for this configuration."""
        return output_dir / self.version if self.version else output_dir


def load_config(path: str | None = None) -> SitegraftConfig:
    """Load and validate configuration.

    With no path, defaults are used. Environment variable overrides:
        SITEGRAFT_ASSETS_PATH: assets.base_path
        SITEGRAFT_LOCAL_CSS: assets.css_dir
        SITEGRAFT_LOCAL_SCRIPT: assets.script_dir
        SITEGRAFT_LOCAL_POST_BODY_SCRIPT: assets.post_body_script_dir
        SITEGRAFT_VERSION: version
        SITEGRAFT_EMBED_THEME: embed.theme

    Args:
        path: Optional path to a YAML config file.

    Returns:
        Validated SitegraftConfig.

    Raises:
        ConfigError: If the config file is missing, unreadable, or invalid.
    """
    data: dict = {}
    if path is not None:
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            raw = config_path.read_text()
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("Config file must contain a YAML mapping")
        data = loaded

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            target = data.setdefault(section, {})
            if not isinstance(target, dict):
                raise ConfigError(f"Config section {section!r} must be a mapping")
            target[key] = value

    try:
        return SitegraftConfig(**data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
