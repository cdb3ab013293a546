"""
Testimony submission, moderation-aware listing, likes and categories.

Visibility: anonymous callers see approved testimonies only; a signed-in
caller also sees their own at any status. Authors may edit while a testimony
is pending or rejected, and may delete it at any status.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from crusades.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from crusades.core.parties import TestimonyStatus
from crusades.models import Event, Testimony, TestimonyCategory, TestimonyLike, User
from crusades.services.serializers import category_to_dict, testimony_to_dict
from crusades.utils.validator import validate

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _is_int(value: Any) -> bool:
    if value is None or value == "":
        return True
    try:
        int(value)
    except (TypeError, ValueError):
        return False
    return True


class TestimonyService:
    """Testimonies as seen by app users"""

    @staticmethod
    def enrich(db: Session, testimony: Testimony, viewer_id: Optional[str]) -> Dict[str, Any]:
        author = db.get(User, testimony.user_id)
        event = db.get(Event, testimony.event_id) if testimony.event_id else None
        category = db.get(TestimonyCategory, testimony.category_id) if testimony.category_id else None
        liked_by = testimony.liked_by
        return {
            **testimony_to_dict(testimony),
            "user_name": author.full_name if author else None,
            "event_title": event.title if event else None,
            "category": category_to_dict(category) if category else None,
            "likes_count": len(liked_by),
            "user_has_liked": bool(viewer_id) and viewer_id in liked_by,
        }

    @staticmethod
    def list_testimonies(
        db: Session,
        viewer: Optional[User],
        event_id: Optional[int] = None,
        category_id: Optional[int] = None,
        category_slug: Optional[str] = None,
        my: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Dict[str, Any]], int]:
        query = db.query(Testimony)

        if my and viewer:
            query = query.filter(Testimony.user_id == viewer.id)
        elif viewer:
            query = query.filter(or_(
                Testimony.status == TestimonyStatus.APPROVED.value,
                Testimony.user_id == viewer.id,
            ))
        else:
            query = query.filter(Testimony.status == TestimonyStatus.APPROVED.value)

        if event_id is not None:
            query = query.filter(Testimony.event_id == event_id)

        if category_id is not None:
            query = query.filter(Testimony.category_id == category_id)
        elif category_slug:
            category = db.query(TestimonyCategory).filter(TestimonyCategory.slug == category_slug).first()
            # Unknown slugs leave the listing unfiltered
            if category:
                query = query.filter(Testimony.category_id == category.id)

        total = query.count()
        testimonies = (
            query.options(selectinload(Testimony.likes))
            .order_by(Testimony.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        viewer_id = viewer.id if viewer else None
        return [TestimonyService.enrich(db, t, viewer_id) for t in testimonies], total

    @staticmethod
    def get_testimony(db: Session, testimony_id: str, viewer: Optional[User]) -> Dict[str, Any]:
        testimony = db.get(Testimony, testimony_id)
        if testimony is None:
            raise NotFound("Testimony not found")

        is_own = viewer is not None and testimony.user_id == viewer.id
        if testimony.status != TestimonyStatus.APPROVED.value and not is_own:
            raise NotFound("Testimony not found")

        return TestimonyService.enrich(db, testimony, viewer.id if viewer else None)

    @staticmethod
    def create_testimony(db: Session, author: User, payload: Dict[str, Any]) -> Testimony:
        # The mobile app sends "content"; older clients send "text"
        text = payload.get("content") or payload.get("text")
        validator = (
            validate({**payload, "text": text})
            .required("title", "Title is required")
            .required("text", "Testimony text is required")
            .optional("event_id")
            .optional("category_id")
            .optional("image")
            .custom("event_id", _is_int, "Event id must be a number")
            .custom("category_id", _is_int, "Category id must be a number")
        )
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        testimony = Testimony(
            user_id=author.id,
            title=data["title"],
            text=data["text"],
            event_id=_as_int(data.get("event_id")),
            category_id=_as_int(data.get("category_id")),
            image=data.get("image"),
            status=TestimonyStatus.PENDING.value,
        )
        db.add(testimony)
        db.commit()
        db.refresh(testimony)
        logger.info(f"Testimony {testimony.id} submitted by user {author.id}")
        return testimony

    @staticmethod
    def update_testimony(db: Session, author: User, testimony_id: str, payload: Dict[str, Any]) -> Testimony:
        text_key = "content" if "content" in payload else "text"
        validator = validate({**payload, "text": payload.get(text_key)})
        if "title" in payload:
            validator.required("title", "Title is required")
        if text_key in payload:
            validator.required("text", "Testimony text is required")
        for field in ("event_id", "category_id"):
            validator.custom(field, _is_int, f"{field} must be a number")
        if validator.fails():
            raise ValidationFailed(validator.errors())
        data = validator.validated()

        testimony = db.get(Testimony, testimony_id)
        if testimony is None:
            raise NotFound("Testimony not found")
        if testimony.user_id != author.id:
            raise PermissionDenied("You can only edit your own testimonies")
        if testimony.status == TestimonyStatus.APPROVED.value:
            raise Conflict("Cannot edit approved testimonies")

        if "title" in data:
            testimony.title = data["title"]
        if text_key in payload:
            testimony.text = data["text"]
        if "event_id" in payload:
            testimony.event_id = _as_int(payload["event_id"])
        if "category_id" in payload:
            testimony.category_id = _as_int(payload["category_id"])
        if "image" in payload:
            testimony.image = payload["image"]

        db.commit()
        db.refresh(testimony)
        return testimony

    @staticmethod
    def delete_testimony(db: Session, author: User, testimony_id: str) -> None:
        testimony = db.get(Testimony, testimony_id)
        if testimony is None:
            raise NotFound("Testimony not found")
        if testimony.user_id != author.id:
            raise PermissionDenied("You can only delete your own testimonies")
        db.delete(testimony)
        db.commit()

    @staticmethod
    def toggle_like(db: Session, user: User, testimony_id: str) -> Tuple[Dict[str, Any], str]:
        """Flip the caller's like; returns the updated testimony and a message"""
        testimony = db.get(Testimony, testimony_id)
        if testimony is None:
            raise NotFound("Testimony not found")

        existing = next((like for like in testimony.likes if like.user_id == user.id), None)
        if existing is None:
            testimony.likes.append(TestimonyLike(user_id=user.id))
            message = "Testimony liked"
        else:
            testimony.likes.remove(existing)
            message = "Testimony unliked"
        db.commit()
        db.refresh(testimony)

        liked_by = testimony.liked_by
        return {
            **testimony_to_dict(testimony),
            "likes_count": len(liked_by),
            "user_has_liked": user.id in liked_by,
        }, message


class CategoryService:
    """Public view of testimony categories"""

    @staticmethod
    def list_active(db: Session) -> List[Dict[str, Any]]:
        categories = (
            db.query(TestimonyCategory)
            .filter(TestimonyCategory.active.is_(True))
            .order_by(TestimonyCategory.order.asc())
            .all()
        )
        return [category_to_dict(c) for c in categories]

    @staticmethod
    def get_category(db: Session, ref: str) -> Dict[str, Any]:
        """Look a category up by numeric id, or by slug otherwise"""
        if ref.isdigit():
            category = db.get(TestimonyCategory, int(ref))
        else:
            category = db.query(TestimonyCategory).filter(TestimonyCategory.slug == ref).first()
        if category is None:
            raise NotFound("Category not found")
        return category_to_dict(category)
