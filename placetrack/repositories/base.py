"""Repository base classes.

``BaseRepository`` covers the entity store contract (find/save/update/delete)
and translates store failures: ``IntegrityError`` becomes ``Conflict`` and
``OperationalError`` becomes ``StoreError``. ``FactRepository`` adds the
append-only time-series contract shared by every fact type.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generic, Iterator, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Query, Session

from placetrack.core.config import Settings, settings as default_settings
from placetrack.core.errors import Conflict, InvalidState, NotFound, StoreError
from placetrack.db.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Entity store for one model class."""

    model: Type[ModelT]
    entity_name: str = "Entity"

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings

    @contextmanager
    def store_errors(self) -> Iterator[None]:
        """Translate driver-level failures into core error kinds."""
        try:
            yield
        except IntegrityError as e:
            # A flush that failed outside a savepoint leaves the session unusable
            if not self.db.is_active:
                self.db.rollback()
            logger.warning(f"{self.entity_name} rejected by store constraint: {e.orig}")
            raise Conflict(f"{self.entity_name} violates a uniqueness constraint") from e
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Store failure while accessing {self.entity_name}: {e.orig}")
            raise StoreError(f"Store unavailable while accessing {self.entity_name}", original=e) from e

    def query(self) -> Query:
        return self.db.query(self.model)

    def find_by_id(self, id: str) -> Optional[ModelT]:
        """Plain lookup; no relations are populated."""
        with self.store_errors():
            return self.db.get(self.model, id)

    def exists(self, id: str) -> bool:
        return self.find_by_id(id) is not None

    def count(self) -> int:
        with self.store_errors():
            return self.query().count()

    def save(self, entity: ModelT) -> ModelT:
        """Insert or update by identity; flushes so constraints surface here.

        The flush runs in a savepoint, so a rejected row is discarded without
        losing the rest of the unit of work.
        """
        with self.store_errors():
            with self.db.begin_nested():
                self.db.add(entity)
        return entity

    def update(self, id: str, **attributes: Any) -> ModelT:
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFound(self.entity_name, id)
        with self.store_errors():
            with self.db.begin_nested():
                for key, value in attributes.items():
                    setattr(entity, key, value)
        return entity

    def delete(self, id: str) -> None:
        entity = self.find_by_id(id)
        if entity is None:
            raise NotFound(self.entity_name, id)
        with self.store_errors():
            with self.db.begin_nested():
                self.db.delete(entity)

    def all(self, query: Query) -> List[ModelT]:
        with self.store_errors():
            return query.all()

    def first(self, query: Query) -> Optional[ModelT]:
        with self.store_errors():
            return query.first()


class FactRepository(BaseRepository[ModelT]):
    """Append-only store for one fact type keyed by a parent entity.

    Every read follows the same ordering: observation timestamp descending,
    then insertion (``created_at``) descending.
    """

    parent_attr: str
    observed_attr: str = "checked_at"
    observed_nullable: bool = False

    def load_options(self) -> Sequence[Any]:
        """Loader options for the relations this repository populates."""
        return ()

    def _parent_column(self):
        return getattr(self.model, self.parent_attr)

    def _observed_column(self):
        return getattr(self.model, self.observed_attr)

    def _for_parent(self, parent_id: str) -> Query:
        return self.query().options(*self.load_options()).filter(self._parent_column() == parent_id)

    def _ordered(self, query: Query) -> Query:
        observed = self._observed_column().desc()
        if self.observed_nullable:
            observed = observed.nulls_last()
        return query.order_by(observed, self.model.created_at.desc())

    def save(self, fact: ModelT) -> ModelT:
        """Pure insert. A fact that already has an identity is never rewritten."""
        if inspect(fact).has_identity:
            raise InvalidState(f"{self.entity_name} {fact.id} is immutable once recorded")
        return super().save(fact)

    def update(self, id: str, **attributes: Any) -> ModelT:
        raise InvalidState(f"{self.entity_name} records are append-only")

    def find_by_parent_id(self, parent_id: str, limit: Optional[int] = None) -> List[ModelT]:
        if limit is None:
            limit = self.settings.default_history_limit
        return self.all(self._ordered(self._for_parent(parent_id)).limit(limit))

    def find_in_date_range(self, parent_id: str, start: datetime, end: datetime) -> List[ModelT]:
        """Inclusive on both bounds, unbounded count."""
        observed = self._observed_column()
        query = self._for_parent(parent_id).filter(observed >= start, observed <= end)
        return self.all(self._ordered(query))

    def find_latest(self, parent_id: str) -> Optional[ModelT]:
        return self.first(self._ordered(self._for_parent(parent_id)))
