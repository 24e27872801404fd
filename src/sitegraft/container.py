"""Dependency injection container for sitegraft."""

from __future__ import annotations

from dataclasses import dataclass

from sitegraft.config import SitegraftConfig
from sitegraft.core.interfaces import EmbedClientPort, SiteWriterPort


@dataclass
class Container:
    """DI container holding all ports and adapters."""

    config: SitegraftConfig
    embed_client: EmbedClientPort
    writer: SiteWriterPort

    @staticmethod
    def create_default(config: SitegraftConfig) -> Container:
        """Create a container with production adapters."""
        from sitegraft.adapters.oembed_client import OEmbedClient
        from sitegraft.adapters.site_writer import FileSiteWriter

        return Container(
            config=config,
            embed_client=OEmbedClient(config.embed.endpoint, timeout=config.embed.timeout),
            writer=FileSiteWriter(),
        )

    @staticmethod
    def create_for_testing(
        config: SitegraftConfig | None = None,
        embed_client: EmbedClientPort | None = None,
        writer: SiteWriterPort | None = None,
    ) -> Container:
        """Create a container with test/mock adapters.

        The writer defaults to the real filesystem writer (tests point it at
        ``tmp_path``); the embed client defaults to a stub that refuses to be
        called.
        """
        from sitegraft.adapters.site_writer import FileSiteWriter

        class StubEmbedClient(EmbedClientPort):
            async def connect(self) -> None:
                pass

            async def disconnect(self) -> None:
                pass

            async def fetch(self, target_url: str, height: int) -> str:
                raise NotImplementedError("Provide a mock embed_client")

        return Container(
            config=config or SitegraftConfig(),
            embed_client=embed_client or StubEmbedClient(),
            writer=writer or FileSiteWriter(),
        )
