"""Domain entities describing user mentions inside comments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MentionCandidate:
    """A user resolved from an ``@token`` in free text."""

    user_id: int
    first_name: str
    last_name: str
    email: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Mention:
    """Persisted link between a comment and the user it mentions."""

    id: int | None
    comment_id: int
    mentioned_user_id: int
    created_at: datetime | None = None


__all__ = ["Mention", "MentionCandidate"]
