# trainer_portal/reminders.py
"""Check-in reminder job.

Run once a day by an external scheduler (cron, Render job, ...):

    send-checkin-reminders

Finds every trainee whose feedback form is currently available and emails
them a nudge. Reasons:
1. first_feedback_due - plan is a week old and has no feedback yet
2. biweekly_reminder  - last feedback for this plan is two weeks old

Nothing is recorded about who was notified. Running it twice on the same day
emails the same people twice; the schedule is what keeps it to once a day.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from trainer_portal import models
from trainer_portal.config import Settings, load_settings
from trainer_portal.database import create_schema, make_engine, make_session_factory
from trainer_portal.eligibility import decide
from trainer_portal.email_templates import checkin_reminder
from trainer_portal.emailer import Mailer, SmtpMailer
from trainer_portal.errors import InfrastructureError
from trainer_portal.time_policy import FIRST_WINDOW, utcnow

logger = logging.getLogger(__name__)


class ReminderReason(str, Enum):
    FIRST_FEEDBACK_DUE = "first_feedback_due"
    BIWEEKLY_REMINDER = "biweekly_reminder"


@dataclass(frozen=True)
class Candidate:
    user_id: int
    display_name: str
    email: Optional[str]
    plan_updated_at: datetime
    last_feedback_at: Optional[datetime]


@dataclass(frozen=True)
class Recipient:
    user_id: int
    display_name: str
    email: str
    reason: ReminderReason


@dataclass
class ReminderSummary:
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    failures: list[tuple[int, str]] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"sent": self.sent, "failed": self.failed}


def fetch_candidates(db: Session, now: datetime) -> list[Candidate]:
    """
    One query for the whole scan: every active non-admin user whose plan is
    at least FIRST_WINDOW old, with their last known email and the newest
    feedback given for the *current* plan version.
    """
    cutoff = now - FIRST_WINDOW

    fb = models.Feedback
    last_known_email = (
        select(fb.email)
        .where(fb.user_id == models.User.id)
        .order_by(fb.created_at.desc(), fb.id.desc())
        .limit(1)
        .correlate(models.User)
        .scalar_subquery()
    )
    last_feedback_at = (
        select(func.max(fb.created_at))
        .where(fb.user_id == models.User.id)
        .where(fb.pdf_change_date == models.TrainingPlan.updated_at)
        .correlate(models.User, models.TrainingPlan)
        .scalar_subquery()
    )

    stmt = (
        select(
            models.User.id,
            models.User.username,
            models.User.first_name,
            models.User.email,
            models.TrainingPlan.updated_at,
            last_known_email,
            last_feedback_at,
        )
        .join(models.TrainingPlan, models.TrainingPlan.user_id == models.User.id)
        .where(models.TrainingPlan.updated_at <= cutoff)
        .where(models.User.is_admin == False)  # noqa: E712
        .where(models.User.is_active == True)  # noqa: E712
        .order_by(models.User.id)
    )

    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as e:
        raise InfrastructureError(f"Candidate query failed: {e}") from e

    return [
        Candidate(
            user_id=user_id,
            display_name=first_name or username,
            email=(feedback_email or account_email or "").strip() or None,
            plan_updated_at=plan_updated_at,
            last_feedback_at=last_at,
        )
        for user_id, username, first_name, account_email, plan_updated_at, feedback_email, last_at in rows
    ]


def classify(candidate: Candidate, now: datetime) -> Optional[ReminderReason]:
    decision = decide(candidate.plan_updated_at, candidate.last_feedback_at, now)
    if not decision.eligible:
        return None
    if candidate.last_feedback_at is None:
        return ReminderReason.FIRST_FEEDBACK_DUE
    return ReminderReason.BIWEEKLY_REMINDER


class ReminderJob:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        mailer: Mailer,
        *,
        base_url: str = "",
        spacing_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session_factory = session_factory
        self.mailer = mailer
        self.base_url = base_url
        self.spacing_seconds = spacing_seconds
        self.sleep = sleep

    def find_recipients(self, now: datetime) -> tuple[list[Recipient], int]:
        """Returns (recipients, skipped_without_email)."""
        db = self.session_factory()
        try:
            candidates = fetch_candidates(db, now)
        finally:
            db.close()

        recipients: list[Recipient] = []
        skipped = 0
        for c in candidates:
            if not c.email:
                logger.info("Skipping user %s (%s): no email on file", c.user_id, c.display_name)
                skipped += 1
                continue

            reason = classify(c, now)
            if reason is None:
                logger.info("Skipping user %s (%s): recent feedback exists", c.user_id, c.display_name)
                continue

            recipients.append(Recipient(c.user_id, c.display_name, c.email, reason))

        return recipients, skipped

    def run(self, now: Optional[datetime] = None) -> ReminderSummary:
        now = now or utcnow()
        logger.info("Check reminder job started at %s", now.isoformat())

        recipients, skipped = self.find_recipients(now)
        summary = ReminderSummary(skipped=skipped)

        if not recipients:
            logger.info("No users need reminders today")
            return summary

        logger.info("Found %d users who need check reminders", len(recipients))

        for i, r in enumerate(recipients):
            if i:
                self.sleep(self.spacing_seconds)

            parts = checkin_reminder(r.display_name, r.reason.value, base_url=self.base_url)
            logger.info("Sending reminder to user %s (%s) - reason: %s", r.user_id, r.email, r.reason.value)
            try:
                self.mailer.send(r.email, parts.subject, parts.body)
            except Exception as e:  # one bad recipient never stops the batch
                summary.failed += 1
                summary.failures.append((r.user_id, str(e)))
                logger.warning("Reminder to user %s failed: %s", r.user_id, e)
            else:
                summary.sent += 1

        logger.info("Check reminder job completed: %s", summary.as_dict())
        return summary


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings: Settings = load_settings()
        engine = make_engine(settings.database_url)
        create_schema(engine)
        job = ReminderJob(
            make_session_factory(engine),
            SmtpMailer(settings),
            base_url=settings.app_base_url,
            spacing_seconds=settings.reminder_spacing_seconds,
        )
        summary = job.run()
    except Exception:
        logger.exception("Error running reminder job")
        return 1

    print("")
    print("Summary:")
    print(f"   Sent:    {summary.sent}")
    print(f"   Failed:  {summary.failed}")
    print(f"   Skipped (no email): {summary.skipped}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
