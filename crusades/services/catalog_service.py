"""
Event catalog: local events merged with the external crusade feed
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from crusades.core.errors import NotFound, PermissionDenied, ValidationFailed
from crusades.core.parties import (
    EXTERNAL,
    EventOwner,
    NotificationType,
    OwnedBy,
    UserRecipient,
    is_owned_by,
    owner_from_column,
    owner_to_column,
)
from crusades.models import Event, EventStaff, Ticket, User
from crusades.schemas.event import EventQuery
from crusades.services.external_feed import ExternalFeedClient, as_event
from crusades.services.notification_service import NotificationService
from crusades.services.repositories import EventRepo
from crusades.services.serializers import event_to_dict
from crusades.utils.validator import validate

logger = logging.getLogger(__name__)


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def is_iso_date(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return len(value) == 10


@dataclass
class ResolvedEvent:
    """An event found locally or in the external feed"""
    id: int
    title: str
    owner: EventOwner
    capacity: Optional[int]
    data: Dict[str, Any]
    local: Optional[Event] = None

    @property
    def is_external(self) -> bool:
        return self.local is None


def matches_search(item: Dict[str, Any], search: str) -> bool:
    needle = search.lower()
    return any(
        needle in (item.get(field) or "").lower()
        for field in ("title", "venue", "address")
    )


def filter_external(items: Iterable[Dict[str, Any]], query: EventQuery, today: str) -> List[Dict[str, Any]]:
    """Apply the free-text and upcoming predicates to feed items"""
    selected = []
    for item in items:
        if query.search and not matches_search(item, query.search):
            continue
        if query.upcoming and item.get("date", "") < today:
            continue
        selected.append(as_event(item))
    return selected


def merge_events(local: List[Dict[str, Any]], external: List[Dict[str, Any]], today: str) -> List[Dict[str, Any]]:
    """Combine both sources, local ids winning, then order upcoming before past.

    Upcoming events (date >= today) come first, nearest date first; past
    events follow, most recent first.
    """
    local_ids = {event["id"] for event in local}
    merged = local + [event for event in external if event["id"] not in local_ids]

    upcoming = [event for event in merged if event["date"] >= today]
    past = [event for event in merged if event["date"] < today]
    upcoming.sort(key=lambda event: event["date"])
    past.sort(key=lambda event: event["date"], reverse=True)
    return upcoming + past


class CatalogService:
    """Listing, lookup and lifecycle of events"""

    @staticmethod
    def query_local(db: Session, query: EventQuery, today: str) -> Tuple[List[Event], int]:
        q = db.query(Event)

        if query.search:
            pattern = f"%{query.search}%"
            q = q.filter(or_(
                Event.title.ilike(pattern),
                Event.venue.ilike(pattern),
                Event.address.ilike(pattern),
            ))
        if query.category:
            q = q.filter(Event.category == query.category)
        if query.upcoming:
            q = q.filter(Event.date >= today)
        if query.featured:
            q = q.filter(Event.featured.is_(True))

        total = q.count()
        order = Event.date.asc() if query.upcoming else Event.date.desc()
        events = q.order_by(order).offset((query.page - 1) * query.limit).limit(query.limit).all()
        return events, total

    @staticmethod
    def list_events(
        db: Session,
        feed: ExternalFeedClient,
        query: EventQuery,
        viewer_id: Optional[str] = None,
        today: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of merged events and the local-only total.

        The total deliberately counts local events only; external items are
        layered on top of each page.
        """
        today = today or today_iso()
        local_events, total = CatalogService.query_local(db, query, today)
        external = filter_external(feed.fetch_all(), query, today)

        merged = merge_events([event_to_dict(e) for e in local_events], external, today)
        page = merged[:query.limit]
        return CatalogService.attach_registrations(db, page, viewer_id), total

    @staticmethod
    def attach_registrations(db: Session, events: List[Dict[str, Any]], viewer_id: Optional[str]) -> List[Dict[str, Any]]:
        event_ids = [event["id"] for event in events]
        if not event_ids:
            return []

        counts = dict(
            db.query(Ticket.event_id, func.count(Ticket.id))
            .filter(Ticket.event_id.in_(event_ids))
            .group_by(Ticket.event_id)
            .all()
        )
        registered = set()
        if viewer_id:
            registered = {
                row.event_id
                for row in db.query(Ticket.event_id).filter(
                    Ticket.user_id == viewer_id,
                    Ticket.event_id.in_(event_ids)
                )
            }

        return [
            {
                **event,
                "registration_count": counts.get(event["id"], 0),
                "user_registered": event["id"] in registered,
            }
            for event in events
        ]

    @staticmethod
    def resolve_event(db: Session, feed: ExternalFeedClient, event_id: int) -> Optional[ResolvedEvent]:
        """Look an event up locally first, then in the external feed"""
        event = EventRepo.get(db, event_id)
        if event is not None:
            return ResolvedEvent(
                id=event.id,
                title=event.title,
                owner=owner_from_column(event.created_by),
                capacity=event.capacity,
                data=event_to_dict(event),
                local=event,
            )

        item = feed.find(event_id)
        if item is None:
            return None
        # External events are uncapped here
        return ResolvedEvent(
            id=event_id,
            title=item.get("title", ""),
            owner=EXTERNAL,
            capacity=None,
            data=as_event(item),
        )

    @staticmethod
    def get_event(db: Session, feed: ExternalFeedClient, event_id: int, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        resolved = CatalogService.resolve_event(db, feed, event_id)
        if resolved is None:
            raise NotFound("Event not found")
        return CatalogService.attach_registrations(db, [resolved.data], viewer_id)[0]

    @staticmethod
    def create_event(db: Session, creator: User, payload: Dict[str, Any]) -> Event:
        validator = (
            validate(payload)
            .required("title", "Title is required")
            .required("description", "Description is required")
            .required("date", "Date is required")
            .required("venue", "Venue is required")
            .optional("time")
            .optional("address")
            .optional("country")
            .optional("city")
            .optional("category")
            .optional("image")
            .optional("capacity")
            .numeric("capacity", "Capacity must be a number")
            .min("capacity", 1, "Capacity must be at least 1")
        )
        if payload.get("date"):
            validator.custom("date", is_iso_date, "Date must be in YYYY-MM-DD format")
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        event = Event(
            id=EventRepo.next_id(db),
            title=data["title"],
            description=data["description"],
            date=data["date"],
            time=data.get("time"),
            venue=data["venue"],
            address=data.get("address"),
            country=data.get("country") or creator.country,
            city=data.get("city"),
            category=data.get("category") or "Crusade",
            image=data.get("image"),
            capacity=int(float(data["capacity"])) if data.get("capacity") is not None else None,
            featured=False,
            created_by=owner_to_column(OwnedBy(creator.id)),
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"Event {event.id} created by user {creator.id}")

        CatalogService._notify_nearby_users(db, event, creator, data.get("country"), data.get("city"))
        return event

    @staticmethod
    def _notify_nearby_users(db: Session, event: Event, creator: User, country: Optional[str], city: Optional[str]):
        """Tell users sharing the requested country/city about a new event"""
        if not country and not city:
            return

        users = db.query(User.id).filter(User.id != creator.id)
        if country:
            users = users.filter(User.country == country)
        if city:
            users = users.filter(User.city == city)

        NotificationService.notify_many(
            db,
            [UserRecipient(row.id) for row in users],
            NotificationType.EVENT,
            "New Crusade Near You!",
            f"{event.title} is happening in {city or country}. Register now!",
            {"event_id": event.id},
        )

    @staticmethod
    def delete_event(db: Session, actor: User, event_id: int) -> None:
        event = EventRepo.get(db, event_id)
        if event is None:
            raise NotFound("Event not found")
        if not is_owned_by(owner_from_column(event.created_by), actor.id):
            raise PermissionDenied("Only the event creator can delete this event")

        db.query(Ticket).filter(Ticket.event_id == event_id).delete(synchronize_session=False)
        db.query(EventStaff).filter(EventStaff.event_id == event_id).delete(synchronize_session=False)
        db.delete(event)
        db.commit()
        logger.info(f"Event {event_id} deleted by user {actor.id}")

    @staticmethod
    def events_created_by(db: Session, user: User) -> List[Dict[str, Any]]:
        """The caller's own events with registration and staff counts"""
        results = []
        for event in EventRepo.list_by_creator(db, user.id):
            results.append({
                **event_to_dict(event),
                "registration_count": db.query(Ticket).filter(Ticket.event_id == event.id).count(),
                "staff_count": db.query(EventStaff).filter(EventStaff.event_id == event.id).count(),
            })
        return results
