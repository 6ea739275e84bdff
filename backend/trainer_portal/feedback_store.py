# trainer_portal/feedback_store.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trainer_portal import models
from trainer_portal.eligibility import Eligibility, EligibilityDecision, decide
from trainer_portal.errors import FeedbackNotAllowedError, NotFoundError, ValidationError
from trainer_portal.schemas import NUTRITION_QUALITIES
from trainer_portal.time_policy import REPEAT_WINDOW

logger = logging.getLogger(__name__)

_REQUIRED_TEXT = ("first_name", "last_name", "email")
_RATINGS = ("training_satisfaction", "motivation_level")
_FLAGS = ("recovery_improved", "feels_supported")


def _validate_fields(fields: Mapping[str, Any]) -> None:
    for name in _REQUIRED_TEXT:
        if not str(fields.get(name) or "").strip():
            raise ValidationError(f"{name} is required")

    for name in _RATINGS:
        value = fields.get(name)
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 10:
            raise ValidationError(f"{name} must be an integer between 1 and 10")

    if fields.get("nutrition_quality") not in NUTRITION_QUALITIES:
        raise ValidationError(f"nutrition_quality must be one of {', '.join(NUTRITION_QUALITIES)}")

    sleep = fields.get("sleep_hours")
    if isinstance(sleep, bool) or not isinstance(sleep, int) or not 0 <= sleep <= 24:
        raise ValidationError("sleep_hours must be an integer between 0 and 24")

    for name in _FLAGS:
        if not isinstance(fields.get(name), bool):
            raise ValidationError(f"{name} must be a boolean")


class FeedbackStore:
    """
    Feedback persistence on top of one SQLAlchemy session.

    Records are append-only: there is no update or delete path.
    """

    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------
    # PLAN VERSION
    # -------------------------------------------------
    def current_plan_version(self, user_id: int) -> Optional[datetime]:
        return self.db.scalar(
            select(models.TrainingPlan.updated_at)
            .where(models.TrainingPlan.user_id == user_id)
            .order_by(models.TrainingPlan.updated_at.desc())
            .limit(1)
        )

    # -------------------------------------------------
    # QUERIES
    # -------------------------------------------------
    def list_feedback_for_user(self, user_id: int) -> list[models.Feedback]:
        stmt = (
            select(models.Feedback)
            .where(models.Feedback.user_id == user_id)
            .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        )
        return list(self.db.scalars(stmt).all())

    def list_feedback_for_admin(self, user_id: Optional[int] = None) -> list[tuple[models.Feedback, models.User]]:
        stmt = select(models.Feedback, models.User).join(models.User, models.Feedback.user_id == models.User.id)
        if user_id is not None:
            stmt = stmt.where(models.Feedback.user_id == user_id)
        stmt = stmt.order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        return [(fb, user) for fb, user in self.db.execute(stmt).all()]

    def feedback_for_version(self, user_id: int, plan_version: datetime) -> list[models.Feedback]:
        # Exact token match. "Submitted after the plan changed" is not the same
        # thing: feedback for a superseded version can postdate the new upload.
        stmt = (
            select(models.Feedback)
            .where(models.Feedback.user_id == user_id)
            .where(models.Feedback.pdf_change_date == plan_version)
            .order_by(models.Feedback.created_at.desc(), models.Feedback.id.desc())
        )
        return list(self.db.scalars(stmt).all())

    def latest_feedback_for_version(self, user_id: int, plan_version: datetime) -> Optional[models.Feedback]:
        rows = self.feedback_for_version(user_id, plan_version)
        return rows[0] if rows else None

    # -------------------------------------------------
    # ELIGIBILITY + SUBMIT
    # -------------------------------------------------
    def evaluate_user(self, user_id: int, now: datetime) -> EligibilityDecision:
        plan_version = self.current_plan_version(user_id)
        last = self.latest_feedback_for_version(user_id, plan_version) if plan_version else None
        return decide(plan_version, last.created_at if last else None, now)

    def create_feedback(
        self,
        user_id: int,
        fields: Mapping[str, Any],
        plan_version: Optional[datetime],
        now: datetime,
    ) -> models.Feedback:
        fb = self._add_feedback(user_id, fields, plan_version, now)
        self.db.commit()
        self.db.refresh(fb)
        return fb

    def _add_feedback(
        self,
        user_id: int,
        fields: Mapping[str, Any],
        plan_version: Optional[datetime],
        now: datetime,
    ) -> models.Feedback:
        _validate_fields(fields)

        user = self.db.get(models.User, user_id)
        if not user or not user.is_active:
            raise NotFoundError("User not found")

        fb = models.Feedback(
            user_id=user_id,
            first_name=str(fields["first_name"]).strip(),
            last_name=str(fields["last_name"]).strip(),
            email=str(fields["email"]).strip(),
            feedback_date=now.date(),
            training_satisfaction=fields["training_satisfaction"],
            motivation_level=fields["motivation_level"],
            difficulties=fields.get("difficulties") or None,
            nutrition_quality=fields["nutrition_quality"],
            sleep_hours=fields["sleep_hours"],
            recovery_improved=fields["recovery_improved"],
            feels_supported=fields["feels_supported"],
            support_improvement=fields.get("support_improvement") or None,
            created_at=now,
            pdf_change_date=plan_version,
        )
        self.db.add(fb)
        self.db.flush()
        return fb

    def _feedback_in_repeat_window(self, user_id: int, plan_version: datetime, now: datetime) -> int:
        stmt = (
            select(func.count(models.Feedback.id))
            .where(models.Feedback.user_id == user_id)
            .where(models.Feedback.pdf_change_date == plan_version)
            .where(models.Feedback.created_at > now - REPEAT_WINDOW)
        )
        return int(self.db.scalar(stmt) or 0)

    def submit_feedback(self, user_id: int, fields: Mapping[str, Any], now: datetime) -> models.Feedback:
        """
        Stores a survey only if the user may answer now.
        The plan version is read here, never accepted from the caller.

        Check and insert share one transaction: the plan row is locked where
        the backend supports it, and the window is counted again after the
        flush so a concurrent submission for the same window loses.
        """
        self.db.execute(
            select(models.TrainingPlan.id).where(models.TrainingPlan.user_id == user_id).with_for_update()
        )

        decision = self.evaluate_user(user_id, now)
        if not decision.eligible:
            self.db.rollback()
            raise FeedbackNotAllowedError("Feedback is not available right now", code=decision.reason)

        try:
            fb = self._add_feedback(user_id, fields, decision.plan_updated_at, now)
            if self._feedback_in_repeat_window(user_id, decision.plan_updated_at, now) > 1:
                raise FeedbackNotAllowedError(
                    "Feedback is not available right now", code=Eligibility.TOO_SOON_SINCE_LAST.value
                )
        except Exception:
            self.db.rollback()
            raise

        self.db.commit()
        self.db.refresh(fb)
        logger.info("Feedback %s stored for user %s (plan version %s)", fb.id, user_id, fb.pdf_change_date)
        return fb

    # -------------------------------------------------
    # ADMIN UNREAD TRACKING
    # -------------------------------------------------
    def last_seen_at(self, admin_user_id: int) -> Optional[datetime]:
        return self.db.scalar(
            select(models.AdminFeedbackSeen.last_seen_at).where(
                models.AdminFeedbackSeen.admin_user_id == admin_user_id
            )
        )

    def mark_seen(self, admin_user_id: int, now: datetime) -> datetime:
        row = self.db.scalar(
            select(models.AdminFeedbackSeen).where(models.AdminFeedbackSeen.admin_user_id == admin_user_id)
        )
        if row:
            row.last_seen_at = now
        else:
            self.db.add(models.AdminFeedbackSeen(admin_user_id=admin_user_id, last_seen_at=now))
        self.db.commit()
        return now

    def unread_count(self, admin_user_id: int) -> int:
        seen = self.last_seen_at(admin_user_id)
        stmt = select(func.count(models.Feedback.id))
        if seen is not None:
            stmt = stmt.where(models.Feedback.created_at > seen)
        return int(self.db.scalar(stmt) or 0)
