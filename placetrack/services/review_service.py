"""Review statistics and individual reviews."""

import logging
import time
from typing import List, Optional, Union

from placetrack.core.config import Settings, settings as default_settings
from placetrack.core.errors import Conflict, InvalidState, TrackingError
from placetrack.db.base import utcnow
from placetrack.models.place import Place
from placetrack.models.tracking import Review, ReviewHistory, Sentiment
from placetrack.repositories.entities import PlaceRepository
from placetrack.repositories.facts import ReviewHistoryRepository, ReviewRepository
from placetrack.schemas.commands import (
    ReviewHistoryQuery,
    ReviewHistoryRecord,
    ReviewQuery,
    ReviewRecord,
    validate_command,
)
from placetrack.schemas.responses import (
    ReviewHistoryView,
    ReviewView,
    ScrapeReviewsView,
    project_review,
    project_review_history,
)
from placetrack.services.guards import require, require_active
from placetrack.services.notification_trigger import NotificationTrigger
from placetrack.services.scraper import ListingScraper

logger = logging.getLogger(__name__)


class ReviewHistoryService:
    """Periodic review-count snapshots of a place. Recording requires an active place."""

    def __init__(
        self,
        places: PlaceRepository,
        histories: ReviewHistoryRepository,
        trigger: Optional[NotificationTrigger] = None,
        scraper: Optional[ListingScraper] = None,
    ):
        self.places = places
        self.histories = histories
        self.trigger = trigger
        self.scraper = scraper

    def _active_place(self, place_id: str, action: str) -> Place:
        place = require(self.places.find_by_id(place_id), "Place", place_id)
        require_active(place, "Place", action)
        return place

    def record_review_history(self, command: Union[ReviewHistoryRecord, dict]) -> ReviewHistoryView:
        command = validate_command(ReviewHistoryRecord, command)
        place = self._active_place(command.place_id, "record review history")
        return project_review_history(self._record(place, command), include_computed=True)

    def _record(self, place: Place, command: ReviewHistoryRecord) -> ReviewHistory:
        previous = self.histories.find_latest(place.id) if self.trigger else None

        history = ReviewHistory(
            place=place,
            blog_review_count=command.blog_review_count,
            visitor_review_count=command.visitor_review_count,
            average_rating=command.average_rating,
            checked_at=command.checked_at,
        )
        history = self.histories.save(history)
        logger.info(
            f"Recorded review stats for place {place.id}: "
            f"blog={history.blog_review_count} visitor={history.visitor_review_count}"
        )

        if self.trigger:
            self.trigger.evaluate(place, history, previous)
        return history

    def get_latest_review_stats(self, place_id: str) -> Optional[ReviewHistoryView]:
        require(self.places.find_by_id(place_id), "Place", place_id)
        latest = self.histories.find_latest(place_id)
        if latest is None:
            return None
        return project_review_history(latest, include_computed=True)

    def get_review_history(self, query: Union[ReviewHistoryQuery, dict]) -> List[ReviewHistoryView]:
        query = validate_command(ReviewHistoryQuery, query, self.histories.settings)
        require(self.places.find_by_id(query.place_id), "Place", query.place_id)

        if query.has_range:
            histories = self.histories.find_in_date_range(query.place_id, query.start_date, query.end_date)
        else:
            histories = self.histories.find_by_parent_id(query.place_id, query.limit)
        return [project_review_history(h, include_computed=True) for h in histories]

    def scrape_review_stats(self, place_id: str) -> ReviewHistoryView:
        """Record the scraper's current review counts for the place."""
        if self.scraper is None:
            raise InvalidState("No scraper configured")
        place = self._active_place(place_id, "scrape review stats")

        metrics = self.scraper.scrape_review_stats(place.external_place_id)
        command = validate_command(
            ReviewHistoryRecord,
            {
                "place_id": place.id,
                "blog_review_count": metrics.blog_review_count or 0,
                "visitor_review_count": metrics.visitor_review_count or 0,
                "average_rating": metrics.average_rating,
                "checked_at": metrics.observed_at,
            },
        )
        return project_review_history(self._record(place, command), include_computed=True)


class ReviewService:
    """Individual reviews, deduplicated by external review id when one is known."""

    def __init__(
        self,
        places: PlaceRepository,
        reviews: ReviewRepository,
        scraper: Optional[ListingScraper] = None,
        settings: Optional[Settings] = None,
    ):
        self.places = places
        self.reviews = reviews
        self.scraper = scraper
        self.settings = settings or default_settings

    def record_review(self, command: Union[ReviewRecord, dict]) -> ReviewView:
        command = validate_command(ReviewRecord, command)
        place = require(self.places.find_by_id(command.place_id), "Place", command.place_id)
        require_active(place, "Place", "record review")
        return project_review(self._record(place, command))

    def _record(self, place: Place, command: ReviewRecord) -> Review:
        if command.external_review_id is not None:
            if self.reviews.find_by_external_id(command.external_review_id) is not None:
                raise Conflict(f"Review {command.external_review_id} has already been recorded")

        review = Review(
            place=place,
            external_review_id=command.external_review_id,
            review_type=command.review_type,
            content=command.content,
            rating=command.rating,
            author=command.author,
            sentiment=command.sentiment,
            sentiment_score=command.sentiment_score,
            published_at=command.published_at,
        )
        review = self.reviews.save(review)
        logger.info(f"Recorded {review.review_type.value} review {review.id} for place {place.id}")
        return review

    def get_place_reviews(self, query: Union[ReviewQuery, dict]) -> List[ReviewView]:
        """
        Reviews of a place, newest first.

        Order of operations: the store query is chosen by the first filter
        given (sentiment, then published_after, else a recency window of
        ``limit`` or the default), the review type filter runs in memory on
        that result, and ``limit`` caps what is left. A type filter can
        therefore return fewer than ``limit`` rows even when more exist.

        ``published_after`` is an exact lower bound on ``published_at``
        (inclusive), not a count of whole days back from now.
        """
        query = validate_command(ReviewQuery, query, self.settings)
        require(self.places.find_by_id(query.place_id), "Place", query.place_id)

        if query.sentiment is not None:
            reviews = self.reviews.find_by_sentiment(query.place_id, query.sentiment)
        elif query.published_after is not None:
            reviews = self.reviews.find_published_since(query.place_id, query.published_after)
        else:
            reviews = self.reviews.find_by_parent_id(query.place_id, query.limit)

        if query.review_type is not None:
            reviews = [r for r in reviews if r.review_type == query.review_type]

        if query.limit is not None:
            reviews = reviews[: query.limit]

        return [project_review(r) for r in reviews]

    def get_reviews_by_sentiment(self, place_id: str, sentiment: Union[Sentiment, str]) -> List[ReviewView]:
        query = validate_command(ReviewQuery, {"place_id": place_id, "sentiment": sentiment})
        require(self.places.find_by_id(place_id), "Place", place_id)
        return [project_review(r) for r in self.reviews.find_by_sentiment(place_id, query.sentiment)]

    def scrape_reviews(self, place_id: str, limit: Optional[int] = None) -> ScrapeReviewsView:
        """
        Scrape recent reviews and record each one independently.

        Known reviews are skipped and counted as duplicates. A review that
        fails to record is logged and counted; the rest of the batch still
        runs. Store outages abort the batch.
        """
        if self.scraper is None:
            raise InvalidState("No scraper configured")
        started = time.monotonic()
        scraped_at = utcnow()

        place = require(self.places.find_by_id(place_id), "Place", place_id)
        require_active(place, "Place", "scrape reviews")

        limit = limit or self.settings.review_scrape_limit
        scraped = self.scraper.scrape_reviews(place.external_place_id, limit)
        logger.info(f"Scraped {len(scraped)} reviews for place {place.id}")

        saved = duplicates = failed = 0
        for item in scraped:
            if item.external_review_id and self.reviews.find_by_external_id(item.external_review_id):
                duplicates += 1
                logger.debug(f"Duplicate review skipped: {item.external_review_id}")
                continue
            try:
                command = validate_command(
                    ReviewRecord,
                    {
                        "place_id": place.id,
                        "external_review_id": item.external_review_id,
                        "review_type": item.review_type,
                        "content": item.content,
                        "rating": item.rating,
                        "author": item.author,
                        "published_at": item.published_at,
                    },
                )
                self._record(place, command)
                saved += 1
            except TrackingError as e:
                failed += 1
                logger.error(f"Failed to record review {item.external_review_id} for place {place.id}: {e}")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Review scrape for place {place.id} finished: {saved} saved, "
            f"{duplicates} duplicates, {failed} failed in {elapsed_ms}ms"
        )
        return ScrapeReviewsView(
            place_id=place.id,
            scraped_count=len(scraped),
            saved_count=saved,
            duplicate_count=duplicates,
            failed_count=failed,
            execution_time_ms=elapsed_ms,
            scraped_at=scraped_at,
        )
