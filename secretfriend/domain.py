from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Participant:
    name: str
    contact: str

    @property
    def key(self) -> str:
        """Name as compared for uniqueness (case-insensitive)."""
        return self.name.casefold()


@dataclass(frozen=True)
class Assignment:
    giver: Participant
    receiver: Participant
    token: str

    def as_dict(self) -> dict:
        return {
            "name": self.giver.name,
            "contact": self.giver.contact,
            "token": self.token,
            "assignee_name": self.receiver.name,
        }


@dataclass(frozen=True)
class DrawEntry:
    name: str
    contact: str
    token: str
    assignee_name: str
    sent_at: datetime | None = None
    opened_at: datetime | None = None

    @property
    def sent(self) -> bool:
        return self.sent_at is not None

    @property
    def opened(self) -> bool:
        return self.opened_at is not None

    @classmethod
    def from_assignment(cls, assignment: Assignment) -> "DrawEntry":
        return cls(
            name=assignment.giver.name,
            contact=assignment.giver.contact,
            token=assignment.token,
            assignee_name=assignment.receiver.name,
        )


@dataclass(frozen=True)
class Draw:
    id: str
    created_at: datetime
    entries: tuple[DrawEntry, ...] = field(default_factory=tuple)

    def entry_for(self, token: str) -> DrawEntry | None:
        for entry in self.entries:
            if entry.token == token:
                return entry
        return None

    def with_entry(self, entry: DrawEntry) -> "Draw":
        """Copy of this draw with the entry of the same token replaced."""
        entries = tuple(entry if e.token == entry.token else e for e in self.entries)
        return replace(self, entries=entries)


@dataclass(frozen=True)
class TokenLookup:
    participant: str
    assignee: str


@dataclass(frozen=True)
class DrawResult:
    draw: Draw
    persisted: bool
