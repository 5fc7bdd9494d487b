"""Outcome of handing a notification to a delivery channel."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    reason: str | None = None

    @classmethod
    def delivered(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: str) -> "DeliveryResult":
        return cls(ok=False, reason=reason)


__all__ = ["DeliveryResult"]
