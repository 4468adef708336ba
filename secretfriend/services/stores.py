from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..domain import Draw, DrawEntry, TokenLookup, utcnow
from ..extensions import db
from .. import models
from ..security import open_assignee, seal_assignee


class StoreError(RuntimeError):
    pass


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything we write is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DrawStore(ABC):
    """
    Keyed storage for draws.

    Draws older than ttl (when given) are invisible to every lookup and
    mark, so their tokens read as not found.
    """

    def __init__(self, ttl: timedelta | None = None):
        self.ttl = ttl

    def _expired(self, created_at: datetime) -> bool:
        return self.ttl is not None and _aware(created_at) + self.ttl < utcnow()

    @abstractmethod
    def save(self, draw: Draw) -> None: ...

    @abstractmethod
    def find_by_id(self, draw_id: str) -> Draw | None: ...

    @abstractmethod
    def find_by_token(self, token: str) -> TokenLookup | None: ...

    @abstractmethod
    def mark_sent(self, token: str) -> bool:
        """Record (or refresh) the time the token's link was sent."""

    @abstractmethod
    def mark_opened(self, token: str) -> bool:
        """Record the first open. True only when this call recorded it."""

    @abstractmethod
    def list_draws(self) -> list[Draw]: ...


class SqlDrawStore(DrawStore):
    """Flask-SQLAlchemy backed store. Needs an application context."""

    def _commit(self) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StoreError("Could not write to the database") from e

    def _to_domain(self, row: models.Draw) -> Draw:
        try:
            entries = tuple(
                DrawEntry(
                    name=e.name,
                    contact=e.contact,
                    token=e.token,
                    assignee_name=open_assignee(e.assignee_ciphertext),
                    sent_at=_aware(e.sent_at),
                    opened_at=_aware(e.opened_at),
                )
                for e in row.entries
            )
        except ValueError as e:
            raise StoreError(f"Draw {row.id} cannot be decrypted with the current key") from e
        return Draw(id=row.id, created_at=_aware(row.created_at), entries=entries)

    def _live_entry(self, token: str) -> models.DrawEntry | None:
        try:
            entry = models.DrawEntry.query.filter_by(token=token).first()
        except SQLAlchemyError as e:
            raise StoreError("Could not read from the database") from e
        if entry is None or self._expired(entry.draw.created_at):
            return None
        return entry

    def save(self, draw: Draw) -> None:
        try:
            sealed = [seal_assignee(entry.assignee_name) for entry in draw.entries]
        except ValueError as e:
            # Fernet rejects a malformed ASSIGNMENT_ENC_KEY with ValueError
            raise StoreError("Assignments cannot be encrypted with the configured key") from e

        row = models.Draw(id=draw.id, created_at=draw.created_at)
        for position, (entry, ciphertext) in enumerate(zip(draw.entries, sealed)):
            row.entries.append(
                models.DrawEntry(
                    position=position,
                    name=entry.name,
                    contact=entry.contact,
                    token=entry.token,
                    assignee_ciphertext=ciphertext,
                    sent_at=entry.sent_at,
                    opened_at=entry.opened_at,
                )
            )
        db.session.add(row)
        self._commit()

    def find_by_id(self, draw_id: str) -> Draw | None:
        try:
            row = db.session.get(models.Draw, draw_id)
        except SQLAlchemyError as e:
            raise StoreError("Could not read from the database") from e
        if row is None or self._expired(row.created_at):
            return None
        return self._to_domain(row)

    def find_by_token(self, token: str) -> TokenLookup | None:
        entry = self._live_entry(token)
        if entry is None:
            return None
        try:
            assignee = open_assignee(entry.assignee_ciphertext)
        except ValueError as e:
            raise StoreError("Assignment cannot be decrypted with the current key") from e
        return TokenLookup(participant=entry.name, assignee=assignee)

    def mark_sent(self, token: str) -> bool:
        entry = self._live_entry(token)
        if entry is None:
            return False
        entry.sent_at = utcnow()
        self._commit()
        return True

    def mark_opened(self, token: str) -> bool:
        entry = self._live_entry(token)
        if entry is None or entry.opened_at is not None:
            return False
        entry.opened_at = utcnow()
        self._commit()
        return True

    def list_draws(self) -> list[Draw]:
        try:
            rows = models.Draw.query.order_by(models.Draw.created_at.asc()).all()
        except SQLAlchemyError as e:
            raise StoreError("Could not read from the database") from e
        return [self._to_domain(r) for r in rows if not self._expired(r.created_at)]


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return _aware(datetime.fromisoformat(value)) if value else None


def _draw_to_json(draw: Draw) -> dict:
    return {
        "id": draw.id,
        "created_at": _ts(draw.created_at),
        "entries": [
            {
                "name": e.name,
                "contact": e.contact,
                "token": e.token,
                "assignee_name": e.assignee_name,
                "sent_at": _ts(e.sent_at),
                "opened_at": _ts(e.opened_at),
            }
            for e in draw.entries
        ],
    }


def _draw_from_json(data: dict) -> Draw:
    return Draw(
        id=data["id"],
        created_at=_parse_ts(data["created_at"]),
        entries=tuple(
            DrawEntry(
                name=e["name"],
                contact=e["contact"],
                token=e["token"],
                assignee_name=e["assignee_name"],
                sent_at=_parse_ts(e.get("sent_at")),
                opened_at=_parse_ts(e.get("opened_at")),
            )
            for e in data.get("entries", [])
        ),
    )


class JsonFileDrawStore(DrawStore):
    """
    All draws in a single JSON document: {"draws": [...]}.
    A missing file is an empty store; every write rewrites the file.
    """

    def __init__(self, path: str | os.PathLike, ttl: timedelta | None = None):
        super().__init__(ttl=ttl)
        self.path = Path(path)

    def _read(self) -> list[Draw]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            return [_draw_from_json(d) for d in data.get("draws", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StoreError(f"Could not read draws from {self.path}") from e

    def _write(self, draws: list[Draw]) -> None:
        payload = {"draws": [_draw_to_json(d) for d in draws]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".draws-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh, indent=2)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StoreError(f"Could not write draws to {self.path}") from e

    def _locate(self, draws: list[Draw], token: str) -> tuple[int, DrawEntry] | None:
        for i, draw in enumerate(draws):
            if self._expired(draw.created_at):
                continue
            entry = draw.entry_for(token)
            if entry is not None:
                return i, entry
        return None

    def _update_entry(self, token: str, **changes) -> bool:
        draws = self._read()
        found = self._locate(draws, token)
        if found is None:
            return False
        i, entry = found
        draws[i] = draws[i].with_entry(replace(entry, **changes))
        self._write(draws)
        return True

    def save(self, draw: Draw) -> None:
        draws = self._read()
        draws.append(draw)
        self._write(draws)

    def find_by_id(self, draw_id: str) -> Draw | None:
        for draw in self._read():
            if draw.id == draw_id and not self._expired(draw.created_at):
                return draw
        return None

    def find_by_token(self, token: str) -> TokenLookup | None:
        found = self._locate(self._read(), token)
        if found is None:
            return None
        _, entry = found
        return TokenLookup(participant=entry.name, assignee=entry.assignee_name)

    def mark_sent(self, token: str) -> bool:
        return self._update_entry(token, sent_at=utcnow())

    def mark_opened(self, token: str) -> bool:
        found = self._locate(self._read(), token)
        if found is None or found[1].opened_at is not None:
            return False
        return self._update_entry(token, opened_at=utcnow())

    def list_draws(self) -> list[Draw]:
        return [d for d in self._read() if not self._expired(d.created_at)]


def build_store(kind: str, path: str | os.PathLike | None = None, ttl: timedelta | None = None) -> DrawStore:
    kind = (kind or "").strip().lower()
    if kind == "sql":
        return SqlDrawStore(ttl=ttl)
    if kind == "json":
        if not path:
            raise ValueError("The json draw store needs a file path.")
        return JsonFileDrawStore(path, ttl=ttl)
    raise ValueError(f"Unknown draw store: {kind!r}")


def get_store() -> DrawStore:
    """The DrawStore the current app was created with."""
    return current_app.extensions["draw_store"]
