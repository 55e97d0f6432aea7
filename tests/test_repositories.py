"""Tests for the entity store and fact repositories."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from conftest import NOW, days_ago
from placetrack.core.errors import Conflict, InvalidState, NotFound
from placetrack.db.session import configure_sqlite, create_all, session_scope
from placetrack.models import Keyword, PlaceKeyword, Review, ReviewHistory, ReviewType, Sentiment
from placetrack.repositories import (
    KeywordRepository,
    PlaceKeywordRepository,
    PlaceRepository,
    ReviewHistoryRepository,
    ReviewRepository,
)


def history(place_id, checked_at, blog=1, visitor=1):
    return ReviewHistory(place_id=place_id, blog_review_count=blog, visitor_review_count=visitor, checked_at=checked_at)


class TestBaseRepository:
    """find/save/update/delete contract."""

    def test_find_by_id_miss_returns_none(self, db_session):
        assert PlaceRepository(db_session).find_by_id("missing") is None

    def test_save_assigns_id_and_created_at(self, db_session):
        keyword = KeywordRepository(db_session).save(Keyword(keyword="espresso"))
        assert keyword.id is not None
        assert keyword.created_at is not None

    def test_update_missing_raises_not_found(self, db_session):
        with pytest.raises(NotFound) as exc_info:
            PlaceRepository(db_session).update("missing", name="x")
        assert exc_info.value.entity == "Place"

    def test_delete_missing_raises_not_found(self, db_session):
        with pytest.raises(NotFound):
            PlaceRepository(db_session).delete("missing")

    def test_update_changes_attributes(self, db_session, test_place):
        repo = PlaceRepository(db_session)
        place = repo.update(test_place.id, name="Renamed Cafe")
        assert place.name == "Renamed Cafe"
        assert repo.find_by_id(test_place.id).name == "Renamed Cafe"

    def test_unique_violation_becomes_conflict_and_keeps_session(self, db_session, test_place_keyword):
        """A duplicate slipping past the application check surfaces as Conflict."""
        repo = PlaceKeywordRepository(db_session)
        duplicate = PlaceKeyword(
            place_id=test_place_keyword.place_id,
            keyword_id=test_place_keyword.keyword_id,
            region="Gangnam",
        )
        with pytest.raises(Conflict):
            repo.save(duplicate)

        # Savepoint rolled back; earlier work in the unit of work survives
        assert repo.find_by_id(test_place_keyword.id) is not None
        assert len(repo.find_by_place_id(test_place_keyword.place_id)) == 1


class TestKeywordRepository:
    """Normalization and find-or-create."""

    def test_find_or_create_normalizes(self, db_session):
        repo = KeywordRepository(db_session)
        first = repo.find_or_create("  Iced   LATTE ")
        second = repo.find_or_create("iced latte")
        assert first.keyword == "iced latte"
        assert first.id == second.id
        assert repo.count() == 1

    def test_find_or_create_reuses_concurrent_winner(self, db_session):
        repo = KeywordRepository(db_session)
        winner = repo.save(Keyword(keyword="mocha"))
        db_session.commit()

        # Simulate the other request inserting between our check and our insert
        with patch.object(repo, "find_by_text", side_effect=[None, winner]):
            result = repo.find_or_create("mocha")

        assert result.id == winner.id
        assert repo.count() == 1


class TestFactOrdering:
    """Ordering, latest and range contracts shared by every fact type."""

    def test_latest_is_max_observation_regardless_of_insert_order(self, db_session, test_place):
        repo = ReviewHistoryRepository(db_session)
        for checked_at in (days_ago(1), NOW, days_ago(2)):
            repo.save(history(test_place.id, checked_at))

        assert repo.find_latest(test_place.id).checked_at == NOW

    def test_latest_tie_broken_by_insertion(self, db_session, test_place):
        repo = ReviewHistoryRepository(db_session)
        repo.save(history(test_place.id, NOW, blog=1))
        second = repo.save(history(test_place.id, NOW, blog=2))

        assert repo.find_latest(test_place.id).id == second.id

    def test_latest_absent(self, db_session, test_place):
        assert ReviewHistoryRepository(db_session).find_latest(test_place.id) is None

    def test_find_by_parent_id_descending_and_limited(self, db_session, test_place):
        repo = ReviewHistoryRepository(db_session)
        for day in range(5):
            repo.save(history(test_place.id, days_ago(day)))

        rows = repo.find_by_parent_id(test_place.id, limit=3)
        assert [r.checked_at for r in rows] == [NOW, days_ago(1), days_ago(2)]

    def test_find_by_parent_id_uses_default_limit(self, db_session, test_place, test_settings):
        repo = ReviewHistoryRepository(db_session, test_settings.model_copy(update={"default_history_limit": 2}))
        for day in range(4):
            repo.save(history(test_place.id, days_ago(day)))

        assert len(repo.find_by_parent_id(test_place.id)) == 2

    def test_date_range_inclusive(self, db_session, test_place):
        repo = ReviewHistoryRepository(db_session)
        for day in range(6):
            repo.save(history(test_place.id, days_ago(day)))

        rows = repo.find_in_date_range(test_place.id, days_ago(4), days_ago(1))
        assert [r.checked_at for r in rows] == [days_ago(1), days_ago(2), days_ago(3), days_ago(4)]

    def test_facts_are_append_only(self, db_session, test_place):
        repo = ReviewHistoryRepository(db_session)
        saved = repo.save(history(test_place.id, NOW))

        with pytest.raises(InvalidState):
            repo.save(saved)
        with pytest.raises(InvalidState):
            repo.update(saved.id, blog_review_count=99)


class TestReviewRepository:
    """Review-specific predicates."""

    def make_review(self, place_id, published_at, sentiment=None, external_id=None):
        return Review(
            place_id=place_id,
            review_type=ReviewType.VISITOR,
            published_at=published_at,
            sentiment=sentiment,
            sentiment_score=0.5 if sentiment else None,
            external_review_id=external_id,
        )

    def test_unknown_publication_time_sorts_last(self, db_session, test_place):
        repo = ReviewRepository(db_session)
        undated = repo.save(self.make_review(test_place.id, None))
        repo.save(self.make_review(test_place.id, days_ago(3)))
        repo.save(self.make_review(test_place.id, NOW))

        rows = repo.find_by_parent_id(test_place.id)
        assert rows[-1].id == undated.id
        assert rows[0].published_at == NOW

    def test_find_by_sentiment(self, db_session, test_place):
        repo = ReviewRepository(db_session)
        repo.save(self.make_review(test_place.id, NOW, Sentiment.POSITIVE))
        repo.save(self.make_review(test_place.id, NOW, Sentiment.NEGATIVE))

        rows = repo.find_by_sentiment(test_place.id, Sentiment.NEGATIVE)
        assert [r.sentiment for r in rows] == [Sentiment.NEGATIVE]

    def test_find_published_since(self, db_session, test_place):
        repo = ReviewRepository(db_session)
        for day in (0, 2, 5):
            repo.save(self.make_review(test_place.id, days_ago(day)))

        rows = repo.find_published_since(test_place.id, days_ago(2))
        assert [r.published_at for r in rows] == [NOW, days_ago(2)]

    def test_duplicate_external_id_is_conflict(self, db_session, test_place):
        repo = ReviewRepository(db_session)
        repo.save(self.make_review(test_place.id, NOW, external_id="rv-1"))
        with pytest.raises(Conflict):
            repo.save(self.make_review(test_place.id, NOW, external_id="rv-1"))
        assert repo.find_by_external_id("rv-1") is not None


class TestSessionScope:
    """Unit-of-work helper used outside request handling."""

    @pytest.fixture
    def factory(self):
        engine = create_engine("sqlite:///:memory:", poolclass=StaticPool)
        configure_sqlite(engine)
        create_all(engine)
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        engine.dispose()

    def test_commits_on_success(self, factory):
        with session_scope(factory) as db:
            KeywordRepository(db).save(Keyword(keyword="mocha"))

        with session_scope(factory) as db:
            assert KeywordRepository(db).find_by_text("mocha") is not None

    def test_rolls_back_on_error(self, factory):
        with pytest.raises(Conflict):
            with session_scope(factory) as db:
                repo = KeywordRepository(db)
                repo.save(Keyword(keyword="mocha"))
                repo.save(Keyword(keyword="mocha"))

        with session_scope(factory) as db:
            assert KeywordRepository(db).count() == 0
