"""Prompt source protocol.

Defines the interface for the upstream table service the catalog is
read from. The default implementation is the Feishu Bitable client.
"""

from typing import Protocol, runtime_checkable

from prompt_catalog.entities import PromptRecord


@runtime_checkable
class PromptSource(Protocol):
    """Protocol for upstream prompt sources."""

    async def fetch_records(self) -> list[PromptRecord]:
        """Fetch every normalized prompt record.

        Returns:
            Records with a non-empty title, unique by id

        Raises:
            ConfigurationError: If credentials or table identifiers are missing
            UpstreamError: If the remote call fails
        """
        ...

    async def close(self) -> None:
        """Release any network resources held by the source."""
        ...
