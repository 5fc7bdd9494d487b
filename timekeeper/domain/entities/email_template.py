"""Domain entities for email templates and their rendered output."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailTemplate:
    """Static template definition with ``{{placeholder}}`` patterns."""

    id: str
    name: str
    subject: str
    html: str
    text: str
    variables: frozenset[str]


@dataclass(frozen=True)
class RenderedContent:
    """Subject and bodies produced by rendering a template."""

    subject: str
    html: str
    text: str


__all__ = ["EmailTemplate", "RenderedContent"]
