"""Error hierarchy for sitegraft."""

from __future__ import annotations


class SitegraftError(Exception):
    """Base exception for all sitegraft errors."""

    pass


class ConfigError(SitegraftError):
    """Configuration loading or validation error."""

    pass


class ExportReadError(SitegraftError):
    """A page or directory of the source export could not be read."""

    pass


class EmitError(SitegraftError):
    """Writing a page or copying a resource into the output tree failed."""

    pass


class EmbedError(SitegraftError):
    """Transport-level failure talking to the oEmbed endpoint."""

    pass


class ContextFrozenError(SitegraftError):
    """The build context was used outside of its allowed phase."""

    pass
