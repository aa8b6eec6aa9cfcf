"""
Position arithmetic for sequence entries.

Pure functions, no database access. The manager feeds them the current
(entry id, position) pairs of one sequence and gets back the ordered list of
single-row writes that keeps positions dense (exactly 1..N).

Write order matters because (sequence_id, position) is unique and both
SQLite and PostgreSQL check that per row, not per statement:

- shifting a block up (+1) goes from the highest position down
- shifting a block down (-1) goes from the lowest position up
- a moving entry is first parked on the free slot N+1, so its old slot can
  be taken by a neighbour before it lands on its new one

With those rules every individual write targets a position nobody holds.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from services.errors import InvalidPositionError

MIN_POSITION = 1


@dataclass(frozen=True)
class EntryPosition:
    """Current position of one entry, as read from the store."""
    entry_id: uuid.UUID
    position: int


@dataclass(frozen=True)
class PositionShift:
    """A single-row position write: entry `entry_id` goes from `old` to `new`."""
    entry_id: uuid.UUID
    old: int
    new: int


class PositionCollisionError(RuntimeError):
    """A write would put two entries of a sequence on the same position."""


def next_position(count: int) -> int:
    """The append slot of a sequence holding `count` entries."""
    return count + 1


def resolve_insert_position(count: int, requested: Optional[int]) -> int:
    """
    Validate the position of a new entry.

    Insert may target the one-past-the-end slot (count + 1); omitted means
    append there.
    """
    max_position = next_position(count)
    if requested is None:
        return max_position
    if requested < MIN_POSITION or requested > max_position:
        raise InvalidPositionError(requested, MIN_POSITION, max_position)
    return requested


def validate_move_position(count: int, new_position: int) -> int:
    """
    Validate the target of a move.

    Unlike insert, the range stops at `count`: the moving entry already
    holds one of the slots, so there is no free slot past the end.
    """
    if new_position < MIN_POSITION or new_position > count:
        raise InvalidPositionError(new_position, MIN_POSITION, count)
    return new_position


def plan_insert_shifts(entries: Iterable[EntryPosition], position: int) -> List[PositionShift]:
    """Shifts that free `position` for a new entry: +1 for position >= p, descending."""
    affected = sorted(
        (e for e in entries if e.position >= position),
        key=lambda e: e.position,
        reverse=True,
    )
    return [PositionShift(e.entry_id, e.position, e.position + 1) for e in affected]


def plan_move_shifts(
    entries: Iterable[EntryPosition],
    entry_id: uuid.UUID,
    old_position: int,
    new_position: int,
) -> List[PositionShift]:
    """
    Writes that move one entry from `old_position` to `new_position`.

    Empty when the positions are equal.
    """
    if new_position == old_position:
        return []

    entries = list(entries)
    parking = next_position(len(entries))
    plan = [PositionShift(entry_id, old_position, parking)]

    others = [e for e in entries if e.entry_id != entry_id]
    if new_position > old_position:
        # Moving later: (old, new] closes up by one, lowest first
        affected = sorted(
            (e for e in others if old_position < e.position <= new_position),
            key=lambda e: e.position,
        )
        plan.extend(PositionShift(e.entry_id, e.position, e.position - 1) for e in affected)
    else:
        # Moving earlier: [new, old) opens up by one, highest first
        affected = sorted(
            (e for e in others if new_position <= e.position < old_position),
            key=lambda e: e.position,
            reverse=True,
        )
        plan.extend(PositionShift(e.entry_id, e.position, e.position + 1) for e in affected)

    plan.append(PositionShift(entry_id, parking, new_position))
    return plan


def plan_remove_shifts(entries: Iterable[EntryPosition], removed_position: int) -> List[PositionShift]:
    """Shifts that close the gap left by a removed entry: -1 for position > p, ascending."""
    affected = sorted(
        (e for e in entries if e.position > removed_position),
        key=lambda e: e.position,
    )
    return [PositionShift(e.entry_id, e.position, e.position - 1) for e in affected]


def apply_shifts(positions: Dict[uuid.UUID, int], shifts: Iterable[PositionShift]) -> Dict[uuid.UUID, int]:
    """
    Apply a plan to an {entry_id: position} map one write at a time.

    Raises PositionCollisionError as soon as a write lands on an occupied
    position, i.e. exactly when a per-row unique check would fail.
    """
    result = dict(positions)
    occupied = {position: entry_id for entry_id, position in result.items()}
    for shift in shifts:
        current = result.get(shift.entry_id)
        if current != shift.old:
            raise PositionCollisionError(
                f"Entry {shift.entry_id} is at {current}, expected {shift.old}"
            )
        holder = occupied.get(shift.new)
        if holder is not None and holder != shift.entry_id:
            raise PositionCollisionError(
                f"Position {shift.new} is already held by entry {holder}"
            )
        del occupied[shift.old]
        occupied[shift.new] = shift.entry_id
        result[shift.entry_id] = shift.new
    return result


def is_dense(positions: Iterable[int]) -> bool:
    """True when the positions are exactly 1..N with no gaps or duplicates."""
    ordered = sorted(positions)
    return ordered == list(range(MIN_POSITION, len(ordered) + MIN_POSITION))
