from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable, Iterable, Mapping

from ..domain import Assignment, Participant


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 1000


class ValidationError(ValueError):
    pass


def new_token() -> str:
    return str(uuid.uuid4())


def _coerce(item: Participant | Mapping) -> Participant:
    if isinstance(item, Participant):
        name, contact = item.name, item.contact
    elif isinstance(item, Mapping):
        name, contact = item.get("name"), item.get("contact")
    else:
        raise ValidationError("Each participant needs a name and a contact.")

    name = name.strip() if isinstance(name, str) else ""
    contact = contact.strip() if isinstance(contact, str) else ""
    if not name or not contact:
        raise ValidationError("Every participant needs a name and a contact.")
    return Participant(name=name, contact=contact)


def validate_participants(participants: Iterable[Participant | Mapping]) -> list[Participant]:
    """
    Normalize the input into Participants.
    Raises ValidationError for fewer than 2 entries, blank fields or a
    name repeated case-insensitively.
    """
    if participants is None or isinstance(participants, (str, bytes, Mapping)):
        raise ValidationError("Participants must be a list.")

    people = [_coerce(p) for p in participants]
    if len(people) < 2:
        raise ValidationError("At least 2 participants are required.")

    seen: set[str] = set()
    for p in people:
        if p.key in seen:
            raise ValidationError(f"Duplicate participant name: {p.name}")
        seen.add(p.key)
    return people


def _find_derangement(
    givers: list[Participant], rng: random.Random, max_attempts: int
) -> list[Participant] | None:
    n = len(givers)
    for _ in range(max_attempts):
        receivers = givers[:]
        rng.shuffle(receivers)
        if any(g.key == r.key for g, r in zip(givers, receivers)):
            continue
        if len({r.key for r in receivers}) != n:
            continue
        return receivers
    return None


def generate(
    participants: Iterable[Participant | Mapping],
    rng: random.Random | None = None,
    max_attempts: int = MAX_ATTEMPTS,
    token_factory: Callable[[], str] = new_token,
) -> list[Assignment]:
    """
    Draw who gifts whom.

    Every participant gives exactly once and receives exactly once, and
    nobody draws themself. Random receiver orders are tried up to
    max_attempts times; after that the shuffled givers are paired with a
    cyclic shift of themselves, which is a valid derangement for n >= 2.
    """
    people = validate_participants(participants)
    rng = rng or random.SystemRandom()

    givers = people[:]
    rng.shuffle(givers)

    receivers = _find_derangement(givers, rng, max_attempts)
    if receivers is None:
        logger.debug("No derangement after %d attempts, using cyclic shift", max_attempts)
        receivers = givers[1:] + givers[:1]

    tokens: set[str] = set()
    assignments: list[Assignment] = []
    for giver, receiver in zip(givers, receivers):
        token = token_factory()
        while token in tokens:
            token = token_factory()
        tokens.add(token)
        assignments.append(Assignment(giver=giver, receiver=receiver, token=token))

    logger.info("Generated %d assignments", len(assignments))
    return assignments
