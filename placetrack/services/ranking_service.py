"""Keyword ranking history."""

import logging
from typing import List, Optional, Union

from placetrack.core.errors import InvalidState
from placetrack.models.keyword import PlaceKeyword
from placetrack.models.tracking import RankingHistory
from placetrack.repositories.entities import PlaceKeywordRepository
from placetrack.repositories.facts import RankingHistoryRepository
from placetrack.schemas.commands import RankingHistoryQuery, RankingRecord, validate_command
from placetrack.schemas.responses import RankingView, ScrapeRankingView, project_ranking
from placetrack.services.guards import require, require_active
from placetrack.services.notification_trigger import NotificationTrigger
from placetrack.services.scraper import ListingScraper

logger = logging.getLogger(__name__)


class RankingService:
    """Record and query where a place ranks for its tracked keywords.

    Recording requires an active PlaceKeyword. When a trigger is wired,
    every recorded ranking is evaluated against the owner's RANKING settings.
    """

    def __init__(
        self,
        place_keywords: PlaceKeywordRepository,
        rankings: RankingHistoryRepository,
        trigger: Optional[NotificationTrigger] = None,
        scraper: Optional[ListingScraper] = None,
    ):
        self.place_keywords = place_keywords
        self.rankings = rankings
        self.trigger = trigger
        self.scraper = scraper

    def _active_place_keyword(self, place_keyword_id: str, action: str) -> PlaceKeyword:
        place_keyword = require(
            self.place_keywords.find_by_id_with_relations(place_keyword_id), "PlaceKeyword", place_keyword_id
        )
        require_active(place_keyword, "PlaceKeyword", action)
        return place_keyword

    def record_ranking(self, command: Union[RankingRecord, dict]) -> RankingView:
        command = validate_command(RankingRecord, command)
        place_keyword = self._active_place_keyword(command.place_keyword_id, "record ranking")
        return project_ranking(self._record(place_keyword, command), include_relations=True)

    def _record(self, place_keyword: PlaceKeyword, command: RankingRecord) -> RankingHistory:
        previous = self.rankings.find_latest(place_keyword.id) if self.trigger else None

        ranking = RankingHistory(
            place_keyword=place_keyword,
            rank=command.rank,
            search_result_count=command.search_result_count,
            checked_at=command.checked_at,
        )
        ranking = self.rankings.save(ranking)
        logger.info(f"Recorded rank {ranking.rank} for PlaceKeyword {place_keyword.id} at {ranking.checked_at}")

        if self.trigger:
            self.trigger.evaluate(place_keyword.place, ranking, previous)
        return ranking

    def get_latest_ranking(self, place_keyword_id: str) -> Optional[RankingView]:
        """None when nothing has been recorded yet."""
        require(self.place_keywords.find_by_id(place_keyword_id), "PlaceKeyword", place_keyword_id)
        latest = self.rankings.find_latest(place_keyword_id)
        if latest is None:
            return None
        return project_ranking(latest, include_relations=True)

    def get_ranking_history(self, query: Union[RankingHistoryQuery, dict]) -> List[RankingView]:
        query = validate_command(RankingHistoryQuery, query, self.rankings.settings)
        require(self.place_keywords.find_by_id(query.place_keyword_id), "PlaceKeyword", query.place_keyword_id)

        if query.has_range:
            rankings = self.rankings.find_in_date_range(query.place_keyword_id, query.start_date, query.end_date)
        else:
            rankings = self.rankings.find_by_parent_id(query.place_keyword_id, query.limit)
        return [project_ranking(r, include_relations=True) for r in rankings]

    def scrape_ranking(self, place_keyword_id: str) -> ScrapeRankingView:
        """Ask the scraper where the place ranks right now and record it."""
        if self.scraper is None:
            raise InvalidState("No scraper configured")
        place_keyword = self._active_place_keyword(place_keyword_id, "scrape ranking")

        metrics = self.scraper.scrape_ranking(
            place_keyword.keyword.keyword,
            place_keyword.region or None,
            place_keyword.place.external_place_id,
        )
        command = RankingRecord(
            place_keyword_id=place_keyword.id,
            rank=metrics.rank,
            search_result_count=metrics.search_result_count,
            checked_at=metrics.observed_at,
        )
        ranking = self._record(place_keyword, command)
        return ScrapeRankingView(
            place_keyword_id=place_keyword.id,
            rank=ranking.rank,
            search_result_count=ranking.search_result_count,
            found=metrics.found,
            checked_at=ranking.checked_at,
            ranking_history_id=ranking.id,
        )
