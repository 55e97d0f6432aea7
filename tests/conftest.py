"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Generator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from placetrack.core.config import Settings
from placetrack.db.base import Base
from placetrack.db.session import configure_sqlite
# Import all models to ensure they're registered with Base.metadata
from placetrack.models import *  # noqa: F401,F403
from placetrack.models.tracking import ReviewType
from placetrack.services import ListingScraper, ObservedMetrics, ScrapedReview, build_services

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeScraper(ListingScraper):
    """Scraper returning canned observations and recording its calls."""

    def __init__(self):
        self.ranking = ObservedMetrics(observed_at=NOW, rank=3, search_result_count=120)
        self.review_stats = ObservedMetrics(observed_at=NOW, blog_review_count=12, visitor_review_count=30,
                                            average_rating=4.4)
        self.reviews: List[ScrapedReview] = []
        self.calls = []

    def scrape_ranking(self, keyword: str, region: Optional[str], external_place_id: str) -> ObservedMetrics:
        self.calls.append(("ranking", keyword, region, external_place_id))
        return self.ranking

    def scrape_review_stats(self, external_place_id: str) -> ObservedMetrics:
        self.calls.append(("review_stats", external_place_id))
        return self.review_stats

    def scrape_reviews(self, external_place_id: str, limit: int) -> List[ScrapedReview]:
        self.calls.append(("reviews", external_place_id, limit))
        return self.reviews[:limit]


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, database_url=TEST_DATABASE_URL, debug=False)


@pytest.fixture
def scraper() -> FakeScraper:
    return FakeScraper()


@pytest.fixture
def services(db_session, scraper, test_settings):
    """All use cases wired against the test session."""
    return build_services(db_session, scraper=scraper, settings=test_settings)


@pytest.fixture
def test_user(services, db_session):
    """Create a test user."""
    user = services.users.create_user({"email": "owner@example.com", "name": "Owner"})
    db_session.commit()
    return user


@pytest.fixture
def test_place(services, db_session, test_user):
    """Create an active place owned by test_user."""
    place = services.places.create_place(
        {
            "user_id": test_user.id,
            "external_place_id": "1234567890",
            "name": "Corner Cafe",
            "category": "Cafe",
            "address": "1 Main St",
            "place_url": "https://map.example.com/place/1234567890",
        }
    )
    db_session.commit()
    return place


@pytest.fixture
def test_place_keyword(services, db_session, test_place):
    """Track 'latte' in region 'Gangnam' for test_place."""
    place_keyword = services.keywords.add_place_keyword(
        {"place_id": test_place.id, "keyword": "latte", "region": "Gangnam"}
    )
    db_session.commit()
    return place_keyword


@pytest.fixture
def test_competitor(services, db_session, test_place):
    """Create an active competitor of test_place."""
    competitor = services.competitors.add_competitor(
        {
            "place_id": test_place.id,
            "competitor_external_id": "9876543210",
            "competitor_name": "Rival Roasters",
            "category": "Cafe",
        }
    )
    db_session.commit()
    return competitor


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def scraped_review(external_id: Optional[str], review_type: ReviewType = ReviewType.VISITOR, **kwargs) -> ScrapedReview:
    return ScrapedReview(review_type=review_type, external_review_id=external_id, **kwargs)
