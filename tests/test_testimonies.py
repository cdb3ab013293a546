"""
Tests for testimony submission, visibility, editing and likes
"""

import pytest

from conftest import auth_headers
from crusades.core.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from crusades.models import Testimony, TestimonyCategory
from crusades.services.testimony_service import CategoryService, TestimonyService


@pytest.fixture
def make_testimony(db_session):
    def _make(author, status="pending", **fields):
        testimony = Testimony(
            user_id=author.id,
            title=fields.pop("title", "Healed"),
            text=fields.pop("text", "I was healed at the crusade"),
            status=status,
            **fields,
        )
        db_session.add(testimony)
        db_session.commit()
        db_session.refresh(testimony)
        return testimony

    return _make


class TestSubmit:
    def test_starts_pending_and_accepts_content(self, db_session, make_user):
        testimony = TestimonyService.create_testimony(
            db_session, make_user(), {"title": "Job", "content": "I got the job", "category_id": "2"}
        )

        assert testimony.status == "pending"
        assert testimony.text == "I got the job"
        assert testimony.category_id == 2

    def test_text_required(self, db_session, make_user):
        with pytest.raises(ValidationFailed) as exc:
            TestimonyService.create_testimony(db_session, make_user(), {"title": "Empty"})
        assert exc.value.errors == {"text": "Testimony text is required"}


class TestEdit:
    def test_author_edits_pending(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author)

        updated = TestimonyService.update_testimony(db_session, author, testimony.id, {"content": "Updated story"})

        assert updated.text == "Updated story"

    def test_author_edits_rejected(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author, status="rejected")

        assert TestimonyService.update_testimony(db_session, author, testimony.id, {"title": "Retry"}).title == "Retry"

    def test_approved_cannot_be_edited(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author, status="approved")

        with pytest.raises(Conflict) as exc:
            TestimonyService.update_testimony(db_session, author, testimony.id, {"title": "Changed"})
        assert exc.value.message == "Cannot edit approved testimonies"

    def test_other_user_forbidden(self, db_session, make_user, make_testimony):
        testimony = make_testimony(make_user())

        with pytest.raises(PermissionDenied) as exc:
            TestimonyService.update_testimony(db_session, make_user(), testimony.id, {"title": "Mine now"})
        assert exc.value.message == "You can only edit your own testimonies"

    def test_author_may_delete_approved(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author, status="approved")

        with pytest.raises(PermissionDenied):
            TestimonyService.delete_testimony(db_session, make_user(), testimony.id)
        TestimonyService.delete_testimony(db_session, author, testimony.id)

        assert db_session.query(Testimony).count() == 0

    def test_fields_cannot_be_blanked(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author)

        with pytest.raises(ValidationFailed) as exc:
            TestimonyService.update_testimony(db_session, author, testimony.id, {"title": "", "content": "  "})

        assert exc.value.errors == {"title": "Title is required", "text": "Testimony text is required"}
        db_session.refresh(testimony)
        assert testimony.title == "Healed"

    def test_blank_text_via_api(self, client, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author)

        response = client.put(f"/api/v1/testimonies/{testimony.id}", json={"text": ""}, headers=auth_headers(author))

        assert response.status_code == 422

    def test_edit_api_status_codes(self, client, make_user, make_testimony):
        author = make_user()
        approved = make_testimony(author, status="approved")
        pending = make_testimony(author)

        blocked = client.put(f"/api/v1/testimonies/{approved.id}", json={"title": "x"}, headers=auth_headers(author))
        forbidden = client.put(f"/api/v1/testimonies/{pending.id}", json={"title": "x"}, headers=auth_headers(make_user()))

        assert blocked.status_code == 400
        assert forbidden.status_code == 403


class TestVisibility:
    def test_listing_rules(self, db_session, make_user, make_testimony):
        author, other = make_user(), make_user()
        approved = make_testimony(other, status="approved")
        own_pending = make_testimony(author)
        make_testimony(other)

        anonymous, total = TestimonyService.list_testimonies(db_session, None)
        assert [t["id"] for t in anonymous] == [approved.id]
        assert total == 1

        signed_in, _ = TestimonyService.list_testimonies(db_session, author)
        assert {t["id"] for t in signed_in} == {approved.id, own_pending.id}

        mine, _ = TestimonyService.list_testimonies(db_session, author, my=True)
        assert [t["id"] for t in mine] == [own_pending.id]

    def test_enrichment(self, db_session, make_user, make_event, make_testimony):
        author = make_user(full_name="Kemi Ade")
        make_event(author, event_id=1000, title="Ibadan Crusade")
        db_session.add(TestimonyCategory(id=1, name="Healing", slug="healing", icon="medkit-outline", color="#10B981"))
        db_session.commit()
        make_testimony(author, status="approved", event_id=1000, category_id=1)

        items, _ = TestimonyService.list_testimonies(db_session, None, category_slug="healing")

        item = items[0]
        assert item["user_name"] == "Kemi Ade"
        assert item["event_title"] == "Ibadan Crusade"
        assert item["category"]["slug"] == "healing"
        assert item["content"] == "I was healed at the crusade"
        assert item["likes_count"] == 0
        assert item["user_has_liked"] is False

    def test_pending_hidden_from_others(self, db_session, make_user, make_testimony):
        author = make_user()
        testimony = make_testimony(author)

        with pytest.raises(NotFound):
            TestimonyService.get_testimony(db_session, testimony.id, make_user())
        assert TestimonyService.get_testimony(db_session, testimony.id, author)["id"] == testimony.id


class TestLikes:
    def test_toggle_twice_restores_count(self, db_session, make_user, make_testimony):
        testimony = make_testimony(make_user(), status="approved")
        fan = make_user()

        liked, message = TestimonyService.toggle_like(db_session, fan, testimony.id)
        assert (liked["likes_count"], liked["user_has_liked"], message) == (1, True, "Testimony liked")

        unliked, message = TestimonyService.toggle_like(db_session, fan, testimony.id)
        assert (unliked["likes_count"], unliked["user_has_liked"], message) == (0, False, "Testimony unliked")

    def test_like_api(self, client, make_user, make_testimony):
        testimony = make_testimony(make_user(), status="approved")
        headers = auth_headers(make_user())

        response = client.post(f"/api/v1/testimonies/{testimony.id}/like", headers=headers)

        assert response.json()["message"] == "Testimony liked"
        assert response.json()["data"]["likes_count"] == 1


class TestCategories:
    def test_active_in_order_and_lookup(self, db_session):
        db_session.add_all([
            TestimonyCategory(id=1, name="Salvation", slug="salvation", icon="heart-outline", color="#EF4444", order=1),
            TestimonyCategory(id=2, name="Healing", slug="healing", icon="medkit-outline", color="#10B981", order=0),
            TestimonyCategory(id=3, name="Hidden", slug="hidden", icon="star-outline", color="#007bff", order=2, active=False),
        ])
        db_session.commit()

        assert [c["slug"] for c in CategoryService.list_active(db_session)] == ["healing", "salvation"]
        assert CategoryService.get_category(db_session, "1")["slug"] == "salvation"
        assert CategoryService.get_category(db_session, "healing")["id"] == 2
        with pytest.raises(NotFound):
            CategoryService.get_category(db_session, "missing")
