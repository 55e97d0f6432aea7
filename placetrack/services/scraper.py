"""Scraper interface consumed by the scrape use cases.

The real scraper lives outside this package. To plug one in:
1. Subclass ListingScraper
2. Implement the three abstract methods
3. Pass an instance to ``build_services(db, scraper=...)``

Whatever a scraper returns is treated as already-validated input.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from placetrack.models.tracking import ReviewType


@dataclass
class ObservedMetrics:
    """One observation of a listing. Every metric may be unknown."""

    observed_at: datetime
    rank: Optional[int] = None
    search_result_count: Optional[int] = None
    blog_review_count: Optional[int] = None
    visitor_review_count: Optional[int] = None
    average_rating: Optional[float] = None

    @property
    def found(self) -> bool:
        return self.rank is not None


@dataclass
class ScrapedReview:
    """A single review as read from the listing page."""

    review_type: ReviewType
    external_review_id: Optional[str] = None
    content: Optional[str] = None
    rating: Optional[int] = None
    author: Optional[str] = None
    published_at: Optional[datetime] = None


class ListingScraper(ABC):
    """Abstract base class for listing scrapers."""

    @abstractmethod
    def scrape_ranking(self, keyword: str, region: Optional[str], external_place_id: str) -> ObservedMetrics:
        """
        Search for ``keyword`` (optionally within ``region``) and locate the place.

        Returns:
            Metrics with ``rank`` None when the place is not in the results
        """
        pass

    @abstractmethod
    def scrape_review_stats(self, external_place_id: str) -> ObservedMetrics:
        """Read the current blog/visitor review counts and average rating."""
        pass

    @abstractmethod
    def scrape_reviews(self, external_place_id: str, limit: int) -> list[ScrapedReview]:
        """Read up to ``limit`` most recent reviews."""
        pass
