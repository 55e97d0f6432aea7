"""Keyword tracking: attaching search terms to places."""

import logging
from typing import List, Union

from placetrack.core.errors import Conflict
from placetrack.models.keyword import PlaceKeyword, normalize_region
from placetrack.repositories.entities import KeywordRepository, PlaceKeywordRepository, PlaceRepository
from placetrack.schemas.commands import PlaceKeywordCreate, validate_command
from placetrack.schemas.responses import KeywordView, PlaceKeywordView, project_keyword, project_place_keyword
from placetrack.services.guards import require

logger = logging.getLogger(__name__)


class KeywordService:
    def __init__(
        self,
        places: PlaceRepository,
        keywords: KeywordRepository,
        place_keywords: PlaceKeywordRepository,
    ):
        self.places = places
        self.keywords = keywords
        self.place_keywords = place_keywords

    def add_place_keyword(self, command: Union[PlaceKeywordCreate, dict]) -> PlaceKeywordView:
        """
        Start tracking a keyword (optionally within a region) for a place.

        The existence check gives the common-case Conflict; the store's
        (place, keyword, region) unique constraint catches concurrent
        duplicates and surfaces them as the same Conflict.
        """
        command = validate_command(PlaceKeywordCreate, command)
        place = require(self.places.find_by_id(command.place_id), "Place", command.place_id)
        keyword = self.keywords.find_or_create(command.keyword)
        region = normalize_region(command.region)

        if self.place_keywords.find_by_place_and_keyword(place.id, keyword.id, region) is not None:
            raise Conflict(
                f"Keyword '{keyword.keyword}' is already tracked for place {place.id}"
                + (f" in region '{region}'" if region else "")
            )

        place_keyword = PlaceKeyword(place=place, keyword=keyword, region=region, is_active=True)
        place_keyword = self.place_keywords.save(place_keyword)
        logger.info(f"Tracking keyword '{keyword.keyword}' for place {place.id} as {place_keyword.id}")
        return project_place_keyword(place_keyword, include_relations=True)

    def get_place_keywords(self, place_id: str) -> List[PlaceKeywordView]:
        require(self.places.find_by_id(place_id), "Place", place_id)
        return [
            project_place_keyword(pk, include_relations=True)
            for pk in self.place_keywords.find_by_place_id(place_id)
        ]

    def list_keywords(self) -> List[KeywordView]:
        return [project_keyword(k) for k in self.keywords.find_all()]

    def update_place_keyword_status(self, place_keyword_id: str, is_active: bool) -> PlaceKeywordView:
        place_keyword = self.place_keywords.update_active_status(place_keyword_id, is_active)
        logger.info(f"PlaceKeyword {place_keyword_id} is_active={is_active}")
        return project_place_keyword(place_keyword)

    def remove_place_keyword(self, place_keyword_id: str) -> None:
        """Stop tracking; the keyword itself stays for other places."""
        self.place_keywords.delete(place_keyword_id)
        logger.info(f"Removed PlaceKeyword {place_keyword_id}")
