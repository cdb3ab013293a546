"""
Event owners, notification recipients and ticket states.

Storage keeps owners and recipients as plain strings (a user id, or the
``"external"`` / ``"all"`` markers). Everything above the model layer works
with the tagged values defined here instead of comparing strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from crusades.core.errors import Conflict

EXTERNAL_OWNER_MARKER = "external"
BROADCAST_MARKER = "all"


# -------- Event ownership --------

@dataclass(frozen=True)
class OwnedBy:
    user_id: str


@dataclass(frozen=True)
class ExternalOwner:
    """Event sourced from the external feed, not persisted locally."""


EXTERNAL = ExternalOwner()

EventOwner = Union[OwnedBy, ExternalOwner]


def owner_from_column(value: str) -> EventOwner:
    if value == EXTERNAL_OWNER_MARKER:
        return EXTERNAL
    return OwnedBy(value)


def owner_to_column(owner: EventOwner) -> str:
    if isinstance(owner, OwnedBy):
        return owner.user_id
    return EXTERNAL_OWNER_MARKER


def is_owned_by(owner: EventOwner, user_id: str) -> bool:
    return isinstance(owner, OwnedBy) and owner.user_id == user_id


# -------- Notification addressing --------

@dataclass(frozen=True)
class UserRecipient:
    user_id: str


@dataclass(frozen=True)
class Broadcast:
    """Single notification record read by every user."""


BROADCAST = Broadcast()

Recipient = Union[UserRecipient, Broadcast]


def recipient_from_column(value: str) -> Recipient:
    if value == BROADCAST_MARKER:
        return BROADCAST
    return UserRecipient(value)


def recipient_to_column(recipient: Recipient) -> str:
    if isinstance(recipient, UserRecipient):
        return recipient.user_id
    return BROADCAST_MARKER


def is_addressed_to(recipient: Recipient, user_id: str) -> bool:
    if isinstance(recipient, Broadcast):
        return True
    return recipient.user_id == user_id


# -------- Ticket lifecycle --------

class TicketStatus(str, enum.Enum):
    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not TicketStatus.ACTIVE


_TRANSITION_ERRORS = {
    TicketStatus.USED: "Ticket has already been used",
    TicketStatus.CANCELLED: "Ticket has been cancelled",
}


def transition(current: TicketStatus | str, target: TicketStatus) -> TicketStatus:
    """Validate a status change; only ``active`` may move, and never to itself."""
    current = TicketStatus(current)
    if current.is_terminal:
        raise Conflict(_TRANSITION_ERRORS[current])
    if target is TicketStatus.ACTIVE:
        raise Conflict("Ticket is already active")
    return target


class TestimonyStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StaffRole(str, enum.Enum):
    CHECKER = "checker"
    COORDINATOR = "coordinator"
    USHER = "usher"
    OTHER = "other"


class NotificationType(str, enum.Enum):
    SYSTEM = "system"
    EVENT = "event"
    REGISTRATION = "registration"
    TESTIMONY = "testimony"
    TICKET = "ticket"
