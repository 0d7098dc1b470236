# Overview: Gapless business-number allocation backed by a counter row.

from __future__ import annotations

from sqlalchemy import func, update

from ..extensions import db
from ..models import NumberSequence


class SequenceError(Exception):
    """Raised when sequence operations fail."""
    pass


def next_number(name: str, *, seed_from=None) -> int:
    """
    Atomically allocate the next number of sequence `name`.

    The increment is a single UPDATE ... SET next_number = next_number + 1,
    so two writers never read the same value; the row lock it takes is held
    until the caller's transaction ends. A rollback hands the number back.

    seed_from: optional scalar SQL expression giving how many numbers were
    already used before the sequence row existed (e.g. a row count); the
    first allocation returns seed + 1. Two writers racing to create the row
    collide on uq_number_sequences_name and the loser's transaction fails.
    """
    if not name:
        raise SequenceError("sequence name is required")

    stmt = (
        update(NumberSequence)
        .where(NumberSequence.name == name)
        .values(next_number=NumberSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        used = 0
        if seed_from is not None:
            used = db.session.execute(seed_from).scalar() or 0
        db.session.add(NumberSequence(name=name, next_number=used + 2))
        db.session.flush()
        return used + 1

    current = (
        db.session.query(NumberSequence.next_number)
        .filter(NumberSequence.name == name)
        .scalar()
    )
    return current - 1


def ensure_sequence(name: str, *, seed_from=None) -> NumberSequence:
    """Create the counter row ahead of time (idempotent)."""
    seq = db.session.query(NumberSequence).filter_by(name=name).first()
    if seq:
        return seq
    used = 0
    if seed_from is not None:
        used = db.session.execute(seed_from).scalar() or 0
    seq = NumberSequence(name=name, next_number=used + 1)
    db.session.add(seq)
    db.session.flush()
    return seq


def count_of(model):
    """Scalar `SELECT count(*) FROM model` for seeding a sequence."""
    return db.select(func.count()).select_from(model)
