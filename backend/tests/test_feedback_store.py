"""Tests for FeedbackStore."""

from datetime import datetime, timedelta

import pytest

from trainer_portal.errors import FeedbackNotAllowedError, NotFoundError, ValidationError
from trainer_portal.feedback_store import FeedbackStore


def _fields(**overrides):
    fields = {
        "first_name": "Mario",
        "last_name": "Rossi",
        "email": "mario@example.com",
        "training_satisfaction": 8,
        "motivation_level": 7,
        "difficulties": None,
        "nutrition_quality": "ottima",
        "sleep_hours": 7,
        "recovery_improved": True,
        "feels_supported": False,
        "support_improvement": None,
    }
    fields.update(overrides)
    return fields


class TestCreateFeedback:
    def test_creates_record_with_version_token(self, db, make_user):
        user = make_user()
        version = datetime(2024, 1, 1, 9, 30, 15, 123456)
        now = datetime(2024, 1, 9, 18, 0)

        fb = FeedbackStore(db).create_feedback(user.id, _fields(), version, now)

        assert fb.id is not None
        assert fb.pdf_change_date == version
        assert fb.created_at == now
        assert fb.feedback_date == now.date()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"training_satisfaction": 0},
            {"training_satisfaction": 11},
            {"motivation_level": 0},
            {"motivation_level": "7"},
            {"nutrition_quality": "pessima"},
            {"recovery_improved": "yes"},
            {"first_name": "  "},
            {"sleep_hours": -1},
            {"sleep_hours": 25},
        ],
    )
    def test_rejects_invalid_fields(self, db, make_user, overrides):
        user = make_user()
        with pytest.raises(ValidationError):
            FeedbackStore(db).create_feedback(user.id, _fields(**overrides), None, datetime(2024, 1, 9))

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            FeedbackStore(db).create_feedback(9999, _fields(), None, datetime(2024, 1, 9))

    def test_inactive_user(self, db, make_user):
        user = make_user(is_active=False)
        with pytest.raises(NotFoundError):
            FeedbackStore(db).create_feedback(user.id, _fields(), None, datetime(2024, 1, 9))


class TestQueries:
    def test_list_for_user_newest_first(self, db, make_user, add_feedback):
        user = make_user()
        other = make_user()
        plan = datetime(2024, 1, 1)
        add_feedback(user, datetime(2024, 1, 10), plan)
        add_feedback(user, datetime(2024, 2, 10), plan)
        add_feedback(other, datetime(2024, 3, 10), plan)

        rows = FeedbackStore(db).list_feedback_for_user(user.id)

        assert [r.created_at for r in rows] == [datetime(2024, 2, 10), datetime(2024, 1, 10)]

    def test_latest_for_version_uses_exact_token(self, db, make_user, add_feedback):
        """
        Feedback for the old version was submitted *after* the new version
        went live; it must still not count for the new version.
        """
        user = make_user()
        v_old = datetime(2024, 1, 1)
        v_new = datetime(2024, 2, 1)
        add_feedback(user, datetime(2024, 2, 3), v_old)

        store = FeedbackStore(db)

        assert store.latest_feedback_for_version(user.id, v_new) is None
        assert store.latest_feedback_for_version(user.id, v_old).created_at == datetime(2024, 2, 3)

    def test_admin_listing_joins_user(self, db, make_user, add_feedback):
        user = make_user(username="giulia", first_name="Giulia")
        add_feedback(user, datetime(2024, 1, 10), datetime(2024, 1, 1))

        rows = FeedbackStore(db).list_feedback_for_admin()

        assert len(rows) == 1
        fb, owner = rows[0]
        assert owner.username == "giulia"
        assert fb.user_id == owner.id


class TestEvaluateAndSubmit:
    def test_evaluate_user_without_plan(self, db, make_user):
        user = make_user()
        assert FeedbackStore(db).evaluate_user(user.id, datetime(2024, 1, 1)).reason == "no_plan"

    def test_submit_when_eligible_uses_current_plan_version(self, db, make_user, set_plan):
        user = make_user()
        set_plan(user, datetime(2024, 1, 1))

        fb = FeedbackStore(db).submit_feedback(user.id, _fields(), datetime(2024, 1, 8))

        assert fb.pdf_change_date == datetime(2024, 1, 1)

    def test_submit_twice_is_rejected(self, db, make_user, set_plan):
        user = make_user()
        set_plan(user, datetime(2024, 1, 1))
        store = FeedbackStore(db)
        store.submit_feedback(user.id, _fields(), datetime(2024, 1, 8))

        with pytest.raises(FeedbackNotAllowedError) as exc:
            store.submit_feedback(user.id, _fields(), datetime(2024, 1, 9))

        assert exc.value.code == "too_soon_since_last"

    def test_new_plan_version_resets_eligibility(self, db, make_user, set_plan):
        user = make_user()
        set_plan(user, datetime(2024, 1, 1))
        store = FeedbackStore(db)
        store.submit_feedback(user.id, _fields(), datetime(2024, 1, 20))

        set_plan(user, datetime(2024, 1, 15))

        assert store.evaluate_user(user.id, datetime(2024, 1, 21)).reason == "too_soon"
        assert store.evaluate_user(user.id, datetime(2024, 1, 22)).eligible is True

    def test_duplicate_from_stale_check_is_rejected(self, db, make_user, set_plan, monkeypatch):
        """Two requests both saw the form as open; only the first one is stored."""
        user = make_user()
        set_plan(user, datetime(2024, 1, 1))
        store = FeedbackStore(db)
        stale = store.evaluate_user(user.id, datetime(2024, 1, 8))
        store.submit_feedback(user.id, _fields(), datetime(2024, 1, 8))

        monkeypatch.setattr(store, "evaluate_user", lambda user_id, now: stale)
        with pytest.raises(FeedbackNotAllowedError) as exc:
            store.submit_feedback(user.id, _fields(), datetime(2024, 1, 8, 0, 5))

        assert exc.value.code == "too_soon_since_last"
        assert len(store.list_feedback_for_user(user.id)) == 1

    def test_submit_without_plan(self, db, make_user):
        user = make_user()
        with pytest.raises(FeedbackNotAllowedError) as exc:
            FeedbackStore(db).submit_feedback(user.id, _fields(), datetime(2024, 1, 8))
        assert exc.value.code == "no_plan"


class TestUnread:
    def test_never_seen_counts_everything(self, db, make_user, add_feedback):
        admin = make_user(is_admin=True)
        user = make_user()
        add_feedback(user, datetime(2024, 1, 10), datetime(2024, 1, 1))
        add_feedback(user, datetime(2024, 1, 25), datetime(2024, 1, 1))

        assert FeedbackStore(db).unread_count(admin.id) == 2

    def test_mark_seen_then_new_feedback(self, db, make_user, add_feedback):
        admin = make_user(is_admin=True)
        user = make_user()
        store = FeedbackStore(db)
        add_feedback(user, datetime(2024, 1, 10), datetime(2024, 1, 1))

        store.mark_seen(admin.id, datetime(2024, 1, 11))
        assert store.unread_count(admin.id) == 0

        add_feedback(user, datetime(2024, 1, 11) + timedelta(seconds=1), datetime(2024, 1, 1))
        assert store.unread_count(admin.id) == 1

        store.mark_seen(admin.id, datetime(2024, 1, 12))
        assert store.unread_count(admin.id) == 0
        assert store.last_seen_at(admin.id) == datetime(2024, 1, 12)
