"""User and place management."""

import logging
from typing import Union

from placetrack.core.errors import Conflict
from placetrack.models.place import Place
from placetrack.models.user import User
from placetrack.repositories.entities import PlaceRepository, UserRepository
from placetrack.schemas.commands import PlaceCreate, PlaceListQuery, PlaceUpdate, UserCreate, validate_command
from placetrack.schemas.pagination import PaginatedResponse
from placetrack.schemas.responses import (
    PlaceStatsView,
    PlaceView,
    UserView,
    project_place,
    project_place_stats,
    project_user,
)
from placetrack.services.guards import require

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    def create_user(self, command: Union[UserCreate, dict]) -> UserView:
        command = validate_command(UserCreate, command)
        if self.users.find_by_email(command.email) is not None:
            raise Conflict(f"User with email {command.email} already exists")
        user = self.users.save(User(email=command.email, name=command.name))
        logger.info(f"Created user {user.id}")
        return project_user(user)

    def get_user(self, user_id: str) -> UserView:
        return project_user(require(self.users.find_by_id(user_id), "User", user_id))


class PlaceService:
    """Lifecycle of monitored places.

    Deactivation is the soft delete: recorded history stays, new review
    facts are refused. ``delete_place`` removes the place and everything
    recorded against it.
    """

    def __init__(self, places: PlaceRepository, users: UserRepository):
        self.places = places
        self.users = users

    def create_place(self, command: Union[PlaceCreate, dict]) -> PlaceView:
        command = validate_command(PlaceCreate, command)
        require(self.users.find_by_id(command.user_id), "User", command.user_id)
        if self.places.find_by_external_id(command.external_place_id) is not None:
            raise Conflict(f"Place with external id {command.external_place_id} already exists")

        place = Place(
            user_id=command.user_id,
            external_place_id=command.external_place_id,
            name=command.name,
            category=command.category,
            address=command.address,
            place_url=command.place_url,
            is_active=True,
        )
        place = self.places.save(place)
        logger.info(f"Created place {place.id} ({place.external_place_id}) for user {place.user_id}")
        return project_place(place)

    def get_place(self, place_id: str, include_relations: bool = False) -> PlaceView:
        if not include_relations:
            return project_place(require(self.places.find_by_id(place_id), "Place", place_id))
        place, keyword_count, review_count = require(self.places.find_with_counts(place_id), "Place", place_id)
        return project_place(place, include_relations=True, keyword_count=keyword_count, review_count=review_count)

    def list_places(self, query: Union[PlaceListQuery, dict]) -> PaginatedResponse[PlaceView]:
        query = validate_command(PlaceListQuery, query)
        require(self.users.find_by_id(query.user_id), "User", query.user_id)
        limit = query.limit or self.places.settings.default_page_size
        places, total = self.places.find_by_user_id(
            query.user_id,
            page=query.page,
            limit=limit,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            active_only=query.active_only,
        )
        return PaginatedResponse[PlaceView].create(
            items=[project_place(p) for p in places],
            total=total,
            page=query.page,
            limit=limit,
        )

    def update_place(self, place_id: str, command: Union[PlaceUpdate, dict]) -> PlaceView:
        command = validate_command(PlaceUpdate, command)
        changes = command.model_dump(exclude_unset=True)
        place = self.places.update(place_id, **changes)
        logger.info(f"Updated place {place_id}: {sorted(changes)}")
        return project_place(place)

    def update_active_status(self, place_id: str, is_active: bool) -> PlaceView:
        place = self.places.update_active_status(place_id, is_active)
        logger.info(f"Place {place_id} is_active={is_active}")
        return project_place(place)

    def delete_place(self, place_id: str) -> None:
        self.places.delete(place_id)
        logger.info(f"Deleted place {place_id}")

    def get_place_stats(self, user_id: str) -> PlaceStatsView:
        require(self.users.find_by_id(user_id), "User", user_id)
        total = self.places.count_by_user_id(user_id)
        active = self.places.count_active_by_user_id(user_id)
        return project_place_stats(total, active)
