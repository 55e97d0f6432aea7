"""Existence and gating checks shared by the use cases."""

import logging
from typing import Optional, TypeVar

from placetrack.core.errors import InvalidState, NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


def require(entity: Optional[T], entity_name: str, entity_id: str) -> T:
    """Return ``entity`` or raise ``NotFound``."""
    if entity is None:
        raise NotFound(entity_name, entity_id)
    return entity


def require_active(entity, entity_name: str, action: str) -> None:
    """Gating predicate: the parent must be active at write time."""
    if not entity.is_active:
        logger.warning(f"Rejected {action}: {entity_name} {entity.id} is inactive")
        raise InvalidState(f"Cannot {action} for inactive {entity_name} {entity.id}")
