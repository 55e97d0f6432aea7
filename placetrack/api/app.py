"""Application factory for the HTTP transport.

Routes live with the deployment; this module provides the pieces every
deployment shares: logging, error translation and per-request services.
"""

from typing import Generator, Optional

from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session

from placetrack import __version__
from placetrack.api.errors import register_exception_handlers
from placetrack.core.config import Settings, settings as default_settings
from placetrack.core.logging import configure_logging
from placetrack.db.session import get_db
from placetrack.services import TrackingServices, build_services


def get_services(db: Session = Depends(get_db)) -> Generator[TrackingServices, None, None]:
    """Request-scoped services; commits when the handler returns normally."""
    yield build_services(db)
    db.commit()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(title="placetrack", version=__version__, debug=settings.debug)
    register_exception_handlers(app)
    return app
