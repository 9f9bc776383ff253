from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class RequestTemplate:
    """One candidate request. Never mutated; every tick works on a clone."""

    url: str
    weight: float = 1
    method: str = "GET"
    body: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Freeze the header mapping so shared templates stay read-only.
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers or {})))

    def clone(self) -> "WorkingRequest":
        return WorkingRequest(
            method=self.method,
            url=self.url,
            body=self.body,
            headers=dict(self.headers),
        )


@dataclass
class WorkingRequest:
    method: str
    url: str
    body: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
