"""Tests for competitor tracking."""

import pytest

from conftest import NOW, days_ago
from placetrack.core.errors import Conflict, InvalidState, NotFound
from placetrack.models import Competitor, CompetitorSnapshot


def snapshot(competitor_id, checked_at=NOW, **metrics):
    return {"competitor_id": competitor_id, "checked_at": checked_at, **metrics}


class TestAddCompetitor:
    """(place, competitor external id) uniqueness."""

    def test_second_add_conflicts_and_store_keeps_one(self, services, db_session, test_place, test_competitor):
        with pytest.raises(Conflict):
            services.competitors.add_competitor(
                {"place_id": test_place.id, "competitor_external_id": "9876543210", "competitor_name": "Again"}
            )
        rows = db_session.query(Competitor).filter(Competitor.competitor_external_id == "9876543210").all()
        assert len(rows) == 1

    def test_same_competitor_for_another_place(self, services, test_user, test_competitor):
        other = services.places.create_place(
            {"user_id": test_user.id, "external_place_id": "other", "name": "Other", "place_url": "https://x"}
        )
        added = services.competitors.add_competitor(
            {"place_id": other.id, "competitor_external_id": "9876543210", "competitor_name": "Rival Roasters"}
        )
        assert added.place_id == other.id

    def test_unknown_place(self, services):
        with pytest.raises(NotFound):
            services.competitors.add_competitor(
                {"place_id": "missing", "competitor_external_id": "1", "competitor_name": "X"}
            )

    def test_created_active_with_place_name(self, test_competitor):
        assert test_competitor.is_active is True
        assert test_competitor.place_name == "Corner Cafe"


class TestPlaceCompetitors:
    def test_active_only(self, services, test_place, test_competitor):
        second = services.competitors.add_competitor(
            {"place_id": test_place.id, "competitor_external_id": "222", "competitor_name": "Bean There"}
        )
        services.competitors.update_competitor_status(test_competitor.id, False)

        all_ids = [c.id for c in services.competitors.get_place_competitors(test_place.id)]
        active_ids = [c.id for c in services.competitors.get_place_competitors(test_place.id, active_only=True)]
        assert all_ids == [test_competitor.id, second.id]
        assert active_ids == [second.id]

    def test_update_status_unknown(self, services):
        with pytest.raises(NotFound):
            services.competitors.update_competitor_status("missing", False)


class TestCompetitorSnapshots:
    """Snapshot gating and reads."""

    def test_record_snapshot_computes_total(self, services, test_competitor):
        view = services.competitors.record_snapshot(
            snapshot(test_competitor.id, rank=2, blog_review_count=5, visitor_review_count=7, average_rating=4.1)
        )
        assert view.total_review_count == 12
        assert view.competitor_name == "Rival Roasters"

    def test_total_absent_when_a_count_is_unknown(self, services, test_competitor):
        view = services.competitors.record_snapshot(snapshot(test_competitor.id, blog_review_count=5))
        assert "total_review_count" not in view.to_dict()

    def test_inactive_competitor_rejected(self, services, db_session, test_competitor):
        services.competitors.update_competitor_status(test_competitor.id, False)
        with pytest.raises(InvalidState):
            services.competitors.record_snapshot(snapshot(test_competitor.id, rank=1))
        assert db_session.query(CompetitorSnapshot).count() == 0

    def test_unknown_competitor(self, services):
        with pytest.raises(NotFound):
            services.competitors.record_snapshot(snapshot("missing"))

    def test_latest_and_history(self, services, test_competitor):
        assert services.competitors.get_latest_snapshot(test_competitor.id) is None
        for day in (1, 0, 2):
            services.competitors.record_snapshot(snapshot(test_competitor.id, checked_at=days_ago(day), rank=day + 1))

        assert services.competitors.get_latest_snapshot(test_competitor.id).rank == 1
        rows = services.competitors.get_competitor_history(
            {"competitor_id": test_competitor.id, "start_date": days_ago(1), "end_date": NOW}
        )
        assert [r.rank for r in rows] == [1, 2]
        limited = services.competitors.get_competitor_history({"competitor_id": test_competitor.id, "limit": 1})
        assert [r.rank for r in limited] == [1]
