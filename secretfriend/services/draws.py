from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Iterable, Mapping

from ..domain import Draw, DrawEntry, DrawResult, Participant, utcnow
from .generator import ValidationError, generate
from .stores import DrawStore, StoreError


logger = logging.getLogger(__name__)


def run_draw(
    participants: Iterable[Participant | Mapping],
    store: DrawStore,
    rng: random.Random | None = None,
) -> DrawResult:
    """
    Generate a draw and try to persist it.

    Validation errors propagate before anything is stored. A store failure
    is logged and reported through DrawResult.persisted; the generated
    tokens are returned either way.
    """
    assignments = generate(participants, rng=rng)
    draw = Draw(
        id=str(uuid.uuid4()),
        created_at=utcnow(),
        entries=tuple(DrawEntry.from_assignment(a) for a in assignments),
    )

    try:
        store.save(draw)
    except StoreError:
        logger.warning("Draw %s could not be saved; returning tokens anyway", draw.id, exc_info=True)
        return DrawResult(draw=draw, persisted=False)

    logger.info("Draw %s saved with %d participants", draw.id, len(draw.entries))
    return DrawResult(draw=draw, persisted=True)


def parse_participant_lines(text: str) -> list[dict]:
    """Parse `name, contact` lines; blank lines are skipped."""
    participants = []
    for lineno, line in enumerate((text or "").splitlines(), start=1):
        if not line.strip():
            continue
        name, sep, contact = line.partition(",")
        if not sep:
            raise ValidationError(f"Line {lineno}: expected 'name, contact'.")
        participants.append({"name": name.strip(), "contact": contact.strip()})
    return participants
