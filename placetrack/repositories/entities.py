"""Entity store repositories: users, places, keywords, competitors."""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import joinedload

from placetrack.core.errors import Conflict
from placetrack.models.competitor import Competitor
from placetrack.models.keyword import Keyword, PlaceKeyword, normalize_keyword, normalize_region
from placetrack.models.place import Place
from placetrack.models.tracking import Review
from placetrack.models.user import User
from placetrack.repositories.base import BaseRepository
from placetrack.schemas.pagination import paginate_query

logger = logging.getLogger(__name__)

PLACE_SORT_COLUMNS = {
    "created_at": Place.created_at,
    "updated_at": Place.updated_at,
    "name": Place.name,
}


class UserRepository(BaseRepository[User]):
    model = User
    entity_name = "User"

    def find_by_email(self, email: str) -> Optional[User]:
        return self.first(self.query().filter(User.email == email))


class PlaceRepository(BaseRepository[Place]):
    model = Place
    entity_name = "Place"

    def find_by_external_id(self, external_place_id: str) -> Optional[Place]:
        return self.first(self.query().filter(Place.external_place_id == external_place_id))

    def find_by_user_id(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "created_at",
        sort_order: str = "DESC",
        active_only: bool = False,
    ) -> Tuple[List[Place], int]:
        """One page of a user's places and the total count."""
        column = PLACE_SORT_COLUMNS.get(sort_by)
        if column is None:
            raise ValueError(f"Unsupported sort column: {sort_by}")
        order = column.desc() if sort_order.upper() == "DESC" else column.asc()
        query = self.query().filter(Place.user_id == user_id)
        if active_only:
            query = query.filter(Place.is_active.is_(True))
        # id keeps page boundaries stable when sort values tie
        query = query.order_by(order, Place.id)
        with self.store_errors():
            return paginate_query(query, page=page, limit=limit)

    def find_with_counts(self, id: str) -> Optional[Tuple[Place, int, int]]:
        """The place with its keyword count and review count, or None."""
        place = self.find_by_id(id)
        if place is None:
            return None
        return place, self.count_keywords(id), self.count_reviews(id)

    def count_by_user_id(self, user_id: str) -> int:
        with self.store_errors():
            return self.query().filter(Place.user_id == user_id).count()

    def count_active_by_user_id(self, user_id: str) -> int:
        with self.store_errors():
            return self.query().filter(Place.user_id == user_id, Place.is_active.is_(True)).count()

    def count_keywords(self, place_id: str) -> int:
        with self.store_errors():
            return self.db.query(PlaceKeyword).filter(PlaceKeyword.place_id == place_id).count()

    def count_reviews(self, place_id: str) -> int:
        with self.store_errors():
            return self.db.query(Review).filter(Review.place_id == place_id).count()

    def update_active_status(self, id: str, is_active: bool) -> Place:
        return self.update(id, is_active=is_active)


class KeywordRepository(BaseRepository[Keyword]):
    model = Keyword
    entity_name = "Keyword"

    def find_by_text(self, text: str) -> Optional[Keyword]:
        return self.first(self.query().filter(Keyword.keyword == normalize_keyword(text)))

    def find_all(self) -> List[Keyword]:
        return self.all(self.query().order_by(Keyword.keyword))

    def find_or_create(self, text: str) -> Keyword:
        """Return the keyword for ``text``, creating it on first use."""
        existing = self.find_by_text(text)
        if existing is not None:
            return existing
        try:
            return self.save(Keyword(keyword=normalize_keyword(text)))
        except Conflict:
            # Another unit of work inserted the same text between check and insert
            winner = self.find_by_text(text)
            if winner is None:
                raise
            logger.info(f"Keyword '{winner.keyword}' created concurrently, reusing {winner.id}")
            return winner


class PlaceKeywordRepository(BaseRepository[PlaceKeyword]):
    model = PlaceKeyword
    entity_name = "PlaceKeyword"

    def _with_relations(self):
        return self.query().options(joinedload(PlaceKeyword.place), joinedload(PlaceKeyword.keyword))

    def find_by_id_with_relations(self, id: str) -> Optional[PlaceKeyword]:
        """Lookup with ``place`` and ``keyword`` populated."""
        return self.first(self._with_relations().filter(PlaceKeyword.id == id))

    def find_by_place_id(self, place_id: str) -> List[PlaceKeyword]:
        query = self._with_relations().filter(PlaceKeyword.place_id == place_id)
        return self.all(query.order_by(PlaceKeyword.created_at))

    def find_active_by_place_id(self, place_id: str) -> List[PlaceKeyword]:
        query = self._with_relations().filter(
            PlaceKeyword.place_id == place_id, PlaceKeyword.is_active.is_(True)
        )
        return self.all(query.order_by(PlaceKeyword.created_at))

    def find_by_place_and_keyword(
        self, place_id: str, keyword_id: str, region: Optional[str]
    ) -> Optional[PlaceKeyword]:
        query = self.query().filter(
            PlaceKeyword.place_id == place_id,
            PlaceKeyword.keyword_id == keyword_id,
            PlaceKeyword.region == normalize_region(region),
        )
        return self.first(query)

    def update_active_status(self, id: str, is_active: bool) -> PlaceKeyword:
        return self.update(id, is_active=is_active)


class CompetitorRepository(BaseRepository[Competitor]):
    model = Competitor
    entity_name = "Competitor"

    def _with_place(self):
        return self.query().options(joinedload(Competitor.place))

    def find_by_id_with_place(self, id: str) -> Optional[Competitor]:
        return self.first(self._with_place().filter(Competitor.id == id))

    def find_by_place_and_external_id(self, place_id: str, competitor_external_id: str) -> Optional[Competitor]:
        query = self.query().filter(
            Competitor.place_id == place_id,
            Competitor.competitor_external_id == competitor_external_id,
        )
        return self.first(query)

    def find_by_place_id(self, place_id: str) -> List[Competitor]:
        query = self._with_place().filter(Competitor.place_id == place_id)
        return self.all(query.order_by(Competitor.created_at))

    def find_active_by_place_id(self, place_id: str) -> List[Competitor]:
        query = self._with_place().filter(Competitor.place_id == place_id, Competitor.is_active.is_(True))
        return self.all(query.order_by(Competitor.created_at))

    def update_active_status(self, id: str, is_active: bool) -> Competitor:
        return self.update(id, is_active=is_active)
