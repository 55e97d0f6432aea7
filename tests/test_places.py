"""Tests for user and place management."""

import pytest

from conftest import NOW
from placetrack.core.config import Settings
from placetrack.core.errors import Conflict, NotFound, ValidationFailed
from placetrack.models import Competitor, PlaceKeyword, ReviewHistory
from placetrack.services import build_services


def place_payload(user_id, external_id, name="Branch", **extra):
    return {
        "user_id": user_id,
        "external_place_id": external_id,
        "name": name,
        "place_url": f"https://map.example.com/place/{external_id}",
        **extra,
    }


class TestUserService:
    """User creation and lookup."""

    def test_duplicate_email_conflicts(self, services, test_user):
        with pytest.raises(Conflict):
            services.users.create_user({"email": "owner@example.com", "name": "Other"})

    def test_get_missing_user(self, services):
        with pytest.raises(NotFound):
            services.users.get_user("missing")

    def test_invalid_email_rejected(self, services):
        with pytest.raises(ValidationFailed) as exc_info:
            services.users.create_user({"email": "not-an-email", "name": "X"})
        assert exc_info.value.details[0]["field"] == "email"


class TestPlaceService:
    """Place lifecycle."""

    def test_create_place_is_active(self, test_place):
        assert test_place.is_active is True
        assert test_place.name == "Corner Cafe"

    def test_create_place_requires_owner(self, services):
        with pytest.raises(NotFound):
            services.places.create_place(place_payload("missing", "555"))

    def test_duplicate_external_id_conflicts(self, services, test_user, test_place):
        with pytest.raises(Conflict):
            services.places.create_place(place_payload(test_user.id, test_place.external_place_id))

    def test_get_place_without_relations_omits_them(self, services, test_place):
        data = services.places.get_place(test_place.id).to_dict()
        assert "user_id" not in data
        assert "keyword_count" not in data

    def test_get_place_with_relations_counts(self, services, test_place, test_place_keyword):
        view = services.places.get_place(test_place.id, include_relations=True)
        assert view.keyword_count == 1
        assert view.review_count == 0
        assert view.user_id is not None

    def test_get_missing_place(self, services):
        with pytest.raises(NotFound):
            services.places.get_place("missing")

    def test_update_place_partial(self, services, test_place):
        updated = services.places.update_place(test_place.id, {"name": "Corner Cafe II"})
        assert updated.name == "Corner Cafe II"
        assert updated.address == "1 Main St"

    def test_update_rejects_null_name(self, services, test_place):
        with pytest.raises(ValidationFailed):
            services.places.update_place(test_place.id, {"name": None})

    def test_list_places_paginates(self, services, db_session, test_user):
        for i in range(5):
            services.places.create_place(place_payload(test_user.id, f"ext-{i}", name=f"Branch {i}"))
        db_session.commit()

        page = services.places.list_places({"user_id": test_user.id, "page": 2, "limit": 2, "sort_by": "name",
                                            "sort_order": "asc"})
        assert page.total == 5
        assert page.total_pages == 3
        assert page.has_more is True
        assert [p.name for p in page.items] == ["Branch 2", "Branch 3"]

    def test_list_places_default_page_size_from_settings(self, db_session, test_user):
        services = build_services(db_session, settings=Settings(_env_file=None, default_page_size=2))
        for i in range(3):
            services.places.create_place(place_payload(test_user.id, f"ext-{i}"))

        page = services.places.list_places({"user_id": test_user.id})
        assert page.limit == 2
        assert len(page.items) == 2
        assert page.has_more is True

    def test_list_active_only(self, services, db_session, test_user, test_place):
        other = services.places.create_place(place_payload(test_user.id, "ext-x"))
        services.places.update_active_status(other.id, False)

        page = services.places.list_places({"user_id": test_user.id, "active_only": True})
        assert [p.id for p in page.items] == [test_place.id]

    def test_list_places_unknown_sort_rejected(self, services, test_user):
        with pytest.raises(ValidationFailed):
            services.places.list_places({"user_id": test_user.id, "sort_by": "address"})

    def test_place_stats(self, services, test_user, test_place):
        other = services.places.create_place(place_payload(test_user.id, "ext-y"))
        services.places.update_active_status(other.id, False)

        stats = services.places.get_place_stats(test_user.id)
        assert (stats.total_places, stats.active_places, stats.inactive_places) == (2, 1, 1)

    def test_delete_place_cascades(self, services, db_session, test_place, test_place_keyword, test_competitor):
        services.review_histories.record_review_history(
            {"place_id": test_place.id, "blog_review_count": 1, "visitor_review_count": 2, "checked_at": NOW}
        )
        db_session.commit()

        services.places.delete_place(test_place.id)
        db_session.commit()

        assert db_session.query(PlaceKeyword).count() == 0
        assert db_session.query(Competitor).count() == 0
        assert db_session.query(ReviewHistory).count() == 0
        with pytest.raises(NotFound):
            services.places.get_place(test_place.id)

    def test_delete_missing_place(self, services):
        with pytest.raises(NotFound):
            services.places.delete_place("missing")
