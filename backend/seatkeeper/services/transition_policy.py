"""
Seat status transition rules.

Pure decisions only: given the seat's current status and occupant, a target
status and what the dealer supplied, decide whether the change is allowed,
who sits in the seat afterwards and which timing action the ledger must run.

Rejections are returned as values so the caller can translate them into
domain errors in one place; nothing here touches storage.

Rules:
- Open/Closed vacate the seat. Timing stops only if the seat was Playing.
- Playing -> Playing keeps the occupant unless another player is selected,
  in which case timing switches from the old player to the new one.
- Break/Blocked -> Playing resumes timing for the player already seated;
  a selection or new name sent with the resume is ignored.
- Open -> Playing needs a player: a new name (created by the caller) or a
  selected existing player. The same applies to Open -> Blocked.
- Playing -> Break pauses timing and keeps the player on the seat.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from ..core.exceptions import SeatStateError
from ..models.entities import OCCUPIED_STATUSES, SeatStatus

OPEN = SeatStatus.OPEN
PLAYING = SeatStatus.PLAYING
BREAK = SeatStatus.BREAK
BLOCKED = SeatStatus.BLOCKED
CLOSED = SeatStatus.CLOSED

ALLOWED_TRANSITIONS: dict[SeatStatus, frozenset[SeatStatus]] = {
    OPEN: frozenset({OPEN, PLAYING, BLOCKED, CLOSED}),
    PLAYING: frozenset({PLAYING, BREAK, OPEN, CLOSED}),
    BREAK: frozenset({BREAK, PLAYING, OPEN, CLOSED}),
    BLOCKED: frozenset({BLOCKED, PLAYING, OPEN, CLOSED}),
    CLOSED: frozenset({CLOSED, OPEN}),
}

PAUSED_STATUSES = frozenset({BREAK, BLOCKED})


@dataclass(frozen=True)
class TransitionContext:
    club_id: int | None = None
    selected_player_id: int | None = None
    new_player_name: str | None = None

    @property
    def clean_new_player_name(self) -> str | None:
        if self.new_player_name is None:
            return None
        name = self.new_player_name.strip()
        return name or None


# Ledger actions. A player id of None on StartTiming/SwitchTiming means
# "the player the caller is about to create".


@dataclass(frozen=True)
class StartTiming:
    player_id: int | None


@dataclass(frozen=True)
class StopTiming:
    player_id: int


@dataclass(frozen=True)
class SwitchTiming:
    old_player_id: int
    new_player_id: int | None


LedgerAction = Union[StartTiming, StopTiming, SwitchTiming, None]


class RejectionReason(str, Enum):
    INVALID_TRANSITION = "InvalidTransition"
    PLAYER_REQUIRED = "PlayerRequired"


@dataclass(frozen=True)
class Accepted:
    status: SeatStatus
    player_id: int | None
    ledger_action: LedgerAction = None
    new_player_name: str | None = None

    @property
    def creates_player(self) -> bool:
        return self.new_player_name is not None

    @property
    def starts_timing(self) -> bool:
        return isinstance(self.ledger_action, (StartTiming, SwitchTiming))

    def with_player(self, player_id: int) -> Accepted:
        """Resolve a pending new player to the id it was created with."""
        action = self.ledger_action
        if isinstance(action, StartTiming) and action.player_id is None:
            action = StartTiming(player_id)
        elif isinstance(action, SwitchTiming) and action.new_player_id is None:
            action = SwitchTiming(action.old_player_id, player_id)
        return replace(self, player_id=player_id, ledger_action=action, new_player_name=None)


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str


Decision = Union[Accepted, Rejected]


def parse_status(raw: str | SeatStatus | None) -> SeatStatus | None:
    """Map a raw status string onto SeatStatus; unknown values give None."""
    if isinstance(raw, SeatStatus):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        return SeatStatus(raw.strip())
    except ValueError:
        return None


def is_allowed(current: SeatStatus, target: SeatStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def _reject_transition(current: SeatStatus, target: SeatStatus | str) -> Rejected:
    label = target.value if isinstance(target, SeatStatus) else str(target)
    return Rejected(
        RejectionReason.INVALID_TRANSITION,
        f"Cannot change seat from {current.value} to {label}",
    )


def _player_required(target: SeatStatus, why: str = "") -> Rejected:
    message = f"A player is required for {target.value}"
    if why:
        message = f"{message}: {why}"
    return Rejected(RejectionReason.PLAYER_REQUIRED, message)


def _accept(
    status: SeatStatus,
    player_id: int | None,
    ledger_action: LedgerAction = None,
    new_player_name: str | None = None,
) -> Accepted:
    # The single place a decision is accepted; the occupancy invariant holds here.
    occupied = player_id is not None or new_player_name is not None
    if occupied != (status in OCCUPIED_STATUSES):
        raise SeatStateError(f"Seat cannot be {status.value} with player {player_id}")
    return Accepted(status, player_id, ledger_action, new_player_name)


def _supplied_player(target: SeatStatus, context: TransitionContext) -> tuple[int | None, str | None] | Rejected:
    """Player coming from the dialog: a new name wins over a selection."""
    name = context.clean_new_player_name
    if name is not None:
        if context.club_id is None:
            return _player_required(target, "a club is needed to create a new player")
        return None, name
    if context.selected_player_id is not None:
        return context.selected_player_id, None
    return _player_required(target, "select a player or enter a new player name")


def _to_vacant(current: SeatStatus, current_player_id: int | None, target: SeatStatus) -> Accepted:
    action = None
    if current == PLAYING and current_player_id is not None:
        action = StopTiming(current_player_id)
    return _accept(target, None, action)


def _to_playing(current: SeatStatus, current_player_id: int | None, context: TransitionContext) -> Decision:
    if current == PLAYING and current_player_id is not None:
        # New-name on an occupied playing seat is treated as a switch too.
        name = context.clean_new_player_name
        if name is not None:
            if context.club_id is None:
                return _player_required(PLAYING, "a club is needed to create a new player")
            return _accept(PLAYING, None, SwitchTiming(current_player_id, None), name)
        new_id = context.selected_player_id if context.selected_player_id is not None else current_player_id
        if new_id == current_player_id:
            return _accept(PLAYING, current_player_id)
        return _accept(PLAYING, new_id, SwitchTiming(current_player_id, new_id))

    if current in PAUSED_STATUSES and current_player_id is not None:
        return _accept(PLAYING, current_player_id, StartTiming(current_player_id))

    supplied = _supplied_player(PLAYING, context)
    if isinstance(supplied, Rejected):
        return supplied
    player_id, name = supplied
    return _accept(PLAYING, player_id, StartTiming(player_id), name)


def _to_paused(
    current: SeatStatus, current_player_id: int | None, target: SeatStatus, context: TransitionContext
) -> Decision:
    if current_player_id is not None and current in OCCUPIED_STATUSES:
        action = StopTiming(current_player_id) if current == PLAYING else None
        return _accept(target, current_player_id, action)

    supplied = _supplied_player(target, context)
    if isinstance(supplied, Rejected):
        return supplied
    player_id, name = supplied
    return _accept(target, player_id, None, name)


def evaluate_transition(
    current_status: SeatStatus,
    current_player_id: int | None,
    target_status: SeatStatus | str,
    context: TransitionContext | None = None,
) -> Decision:
    """
    Decide a seat status change.

    Args:
        current_status: Status the seat is in now
        current_player_id: Player attached to the seat, if any
        target_status: Requested status; raw strings are accepted and unknown
            values are rejected as an invalid transition
        context: Player selection or new player name from the dealer

    Returns:
        Accepted with the resulting occupant and ledger action, or Rejected
    """
    context = context or TransitionContext()
    target = parse_status(target_status)
    if target is None or not is_allowed(current_status, target):
        return _reject_transition(current_status, target or target_status)

    if target in (OPEN, CLOSED):
        return _to_vacant(current_status, current_player_id, target)
    if target == PLAYING:
        return _to_playing(current_status, current_player_id, context)
    return _to_paused(current_status, current_player_id, target, context)
