"""Tests for response projection."""

from datetime import datetime

import pytest

from placetrack.models import Competitor, CompetitorSnapshot, Keyword, PlaceKeyword, ReviewHistory
from placetrack.models.place import Place
from placetrack.schemas.responses import (
    project_competitor_snapshot,
    project_place,
    project_place_keyword,
    project_review_history,
    total_review_count,
)

STAMP = datetime(2024, 6, 1, 12)


@pytest.fixture
def place():
    return Place(
        id="p-1",
        user_id="u-1",
        external_place_id="1234567890",
        name="Corner Cafe",
        place_url="https://example.com/p/1",
        is_active=True,
        created_at=STAMP,
        updated_at=STAMP,
    )


@pytest.mark.parametrize(
    "blog,visitor,expected",
    [(3, 4, 7), (0, 0, 0), (None, 4, None), (3, None, None), (None, None, None)],
)
def test_total_review_count(blog, visitor, expected):
    assert total_review_count(blog, visitor) == expected


class TestRelationAbsence:
    """Unrequested relations are absent, not null."""

    def test_place_without_relations(self, place):
        data = project_place(place).to_dict()
        assert "user_id" not in data
        assert "keyword_count" not in data
        assert data["category"] is None

    def test_place_with_relations(self, place):
        data = project_place(place, include_relations=True, keyword_count=2, review_count=0).to_dict()
        assert (data["user_id"], data["keyword_count"], data["review_count"]) == ("u-1", 2, 0)

    def test_place_keyword_region(self, place):
        place_keyword = PlaceKeyword(
            id="pk-1",
            place_id=place.id,
            keyword_id="k-1",
            region="",
            is_active=True,
            created_at=STAMP,
        )
        place_keyword.place = place
        place_keyword.keyword = Keyword(id="k-1", keyword="latte", created_at=STAMP)

        bare = project_place_keyword(place_keyword).to_dict()
        assert bare["region"] is None
        assert "keyword_text" not in bare

        full = project_place_keyword(place_keyword, include_relations=True).to_dict()
        assert full["keyword_text"] == "latte"
        assert full["place_name"] == "Corner Cafe"


class TestComputedTotals:
    def test_review_history_total_only_when_requested(self):
        history = ReviewHistory(
            id="rh-1",
            place_id="p-1",
            blog_review_count=0,
            visitor_review_count=0,
            checked_at=STAMP,
            created_at=STAMP,
        )
        assert "total_review_count" not in project_review_history(history).to_dict()
        assert project_review_history(history, include_computed=True).to_dict()["total_review_count"] == 0

    def test_snapshot_total_absent_when_unknown(self):
        competitor = Competitor(
            id="c-1",
            place_id="p-1",
            competitor_external_id="9876543210",
            competitor_name="Rival Roasters",
            category="Cafe",
            is_active=True,
            created_at=STAMP,
        )
        snapshot = CompetitorSnapshot(
            id="cs-1",
            competitor_id=competitor.id,
            rank=4,
            visitor_review_count=8,
            checked_at=STAMP,
            created_at=STAMP,
        )
        snapshot.competitor = competitor

        data = project_competitor_snapshot(snapshot, include_computed=True, include_relations=True).to_dict()
        assert "total_review_count" not in data
        assert data["competitor_name"] == "Rival Roasters"
        assert data["category"] == "Cafe"
        assert data["blog_review_count"] is None
