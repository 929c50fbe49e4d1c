"""Prompt record domain entity."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PromptRecord:
    """Domain entity for one catalog entry.

    Attributes:
        id: Feishu record id, unique within one fetched batch
        title: Display title, never empty for retained records
        description: Short description
        content: Full prompt text
        category: Single category label, may be empty
        tags: Ordered tag labels
        created_at: Stamped at fetch time
        updated_at: Stamped at fetch time
    """

    id: str
    title: str
    description: str
    content: str
    category: str
    created_at: datetime
    updated_at: datetime
    tags: list[str] = field(default_factory=list)
