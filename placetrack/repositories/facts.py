"""Fact repositories: append-only time series keyed to a parent entity."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import joinedload

from placetrack.models.competitor import Competitor, CompetitorSnapshot
from placetrack.models.keyword import PlaceKeyword
from placetrack.models.tracking import RankingHistory, Review, ReviewHistory, Sentiment
from placetrack.repositories.base import FactRepository


class RankingHistoryRepository(FactRepository[RankingHistory]):
    """Rankings per PlaceKeyword; reads populate place_keyword, its place and keyword."""

    model = RankingHistory
    entity_name = "RankingHistory"
    parent_attr = "place_keyword_id"

    def load_options(self):
        return (
            joinedload(RankingHistory.place_keyword).joinedload(PlaceKeyword.place),
            joinedload(RankingHistory.place_keyword).joinedload(PlaceKeyword.keyword),
        )


class ReviewHistoryRepository(FactRepository[ReviewHistory]):
    model = ReviewHistory
    entity_name = "ReviewHistory"
    parent_attr = "place_id"


class CompetitorSnapshotRepository(FactRepository[CompetitorSnapshot]):
    """Snapshots per Competitor; reads populate the competitor."""

    model = CompetitorSnapshot
    entity_name = "CompetitorSnapshot"
    parent_attr = "competitor_id"

    def load_options(self):
        return (joinedload(CompetitorSnapshot.competitor).joinedload(Competitor.place),)


class ReviewRepository(FactRepository[Review]):
    """Individual reviews per Place, ordered by publication time (unknown last)."""

    model = Review
    entity_name = "Review"
    parent_attr = "place_id"
    observed_attr = "published_at"
    observed_nullable = True

    def find_by_external_id(self, external_review_id: str) -> Optional[Review]:
        return self.first(self.query().filter(Review.external_review_id == external_review_id))

    def find_by_sentiment(self, place_id: str, sentiment: Sentiment) -> List[Review]:
        """Unbounded: every review of the place with this sentiment."""
        query = self._for_parent(place_id).filter(Review.sentiment == sentiment)
        return self.all(self._ordered(query))

    def find_published_since(self, place_id: str, since: datetime) -> List[Review]:
        """Unbounded: reviews published at or after ``since``."""
        query = self._for_parent(place_id).filter(Review.published_at >= since)
        return self.all(self._ordered(query))
