"""Competitor tracking."""

import logging
from typing import List, Optional, Union

from placetrack.core.errors import Conflict
from placetrack.models.competitor import Competitor, CompetitorSnapshot
from placetrack.repositories.entities import CompetitorRepository, PlaceRepository
from placetrack.repositories.facts import CompetitorSnapshotRepository
from placetrack.schemas.commands import (
    CompetitorCreate,
    CompetitorHistoryQuery,
    CompetitorSnapshotRecord,
    validate_command,
)
from placetrack.schemas.responses import (
    CompetitorSnapshotView,
    CompetitorView,
    project_competitor,
    project_competitor_snapshot,
)
from placetrack.services.guards import require, require_active
from placetrack.services.notification_trigger import NotificationTrigger

logger = logging.getLogger(__name__)


class CompetitorService:
    def __init__(
        self,
        places: PlaceRepository,
        competitors: CompetitorRepository,
        snapshots: CompetitorSnapshotRepository,
        trigger: Optional[NotificationTrigger] = None,
    ):
        self.places = places
        self.competitors = competitors
        self.snapshots = snapshots
        self.trigger = trigger

    def add_competitor(self, command: Union[CompetitorCreate, dict]) -> CompetitorView:
        """Track a rival listing; at most one per (place, competitor external id)."""
        command = validate_command(CompetitorCreate, command)
        place = require(self.places.find_by_id(command.place_id), "Place", command.place_id)

        existing = self.competitors.find_by_place_and_external_id(place.id, command.competitor_external_id)
        if existing is not None:
            raise Conflict(
                f"Competitor {command.competitor_external_id} is already tracked for place {place.id}"
            )

        competitor = Competitor(
            place=place,
            competitor_external_id=command.competitor_external_id,
            competitor_name=command.competitor_name,
            category=command.category,
            is_active=True,
        )
        competitor = self.competitors.save(competitor)
        logger.info(f"Tracking competitor {competitor.competitor_external_id} for place {place.id}")
        return project_competitor(competitor, include_relations=True)

    def get_place_competitors(self, place_id: str, active_only: bool = False) -> List[CompetitorView]:
        require(self.places.find_by_id(place_id), "Place", place_id)
        if active_only:
            competitors = self.competitors.find_active_by_place_id(place_id)
        else:
            competitors = self.competitors.find_by_place_id(place_id)
        return [project_competitor(c, include_relations=True) for c in competitors]

    def update_competitor_status(self, competitor_id: str, is_active: bool) -> CompetitorView:
        competitor = self.competitors.update_active_status(competitor_id, is_active)
        logger.info(f"Competitor {competitor_id} is_active={is_active}")
        return project_competitor(competitor)

    def record_snapshot(self, command: Union[CompetitorSnapshotRecord, dict]) -> CompetitorSnapshotView:
        command = validate_command(CompetitorSnapshotRecord, command)
        competitor = require(
            self.competitors.find_by_id_with_place(command.competitor_id), "Competitor", command.competitor_id
        )
        require_active(competitor, "Competitor", "record snapshot")
        previous = self.snapshots.find_latest(competitor.id) if self.trigger else None

        snapshot = CompetitorSnapshot(
            competitor=competitor,
            rank=command.rank,
            blog_review_count=command.blog_review_count,
            visitor_review_count=command.visitor_review_count,
            average_rating=command.average_rating,
            checked_at=command.checked_at,
        )
        snapshot = self.snapshots.save(snapshot)
        logger.info(f"Recorded snapshot {snapshot.id} for competitor {competitor.id}")

        if self.trigger:
            self.trigger.evaluate(competitor.place, snapshot, previous)
        return project_competitor_snapshot(snapshot, include_computed=True, include_relations=True)

    def get_latest_snapshot(self, competitor_id: str) -> Optional[CompetitorSnapshotView]:
        require(self.competitors.find_by_id(competitor_id), "Competitor", competitor_id)
        latest = self.snapshots.find_latest(competitor_id)
        if latest is None:
            return None
        return project_competitor_snapshot(latest, include_computed=True, include_relations=True)

    def get_competitor_history(self, query: Union[CompetitorHistoryQuery, dict]) -> List[CompetitorSnapshotView]:
        query = validate_command(CompetitorHistoryQuery, query, self.snapshots.settings)
        require(self.competitors.find_by_id(query.competitor_id), "Competitor", query.competitor_id)

        if query.has_range:
            snapshots = self.snapshots.find_in_date_range(query.competitor_id, query.start_date, query.end_date)
        else:
            snapshots = self.snapshots.find_by_parent_id(query.competitor_id, query.limit)
        return [project_competitor_snapshot(s, include_computed=True, include_relations=True) for s in snapshots]
