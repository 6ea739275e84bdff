# trainer_portal/routers/feedback.py
from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from trainer_portal import auth, models, schemas
from trainer_portal.config import Settings
from trainer_portal.database import get_db
from trainer_portal.dependencies import get_mailer, get_now, get_settings
from trainer_portal.email_templates import admin_new_feedback
from trainer_portal.emailer import Mailer, send_email_if_configured
from trainer_portal.feedback_store import FeedbackStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


def _admin_row(fb: models.Feedback, user: models.User) -> schemas.AdminFeedbackOut:
    out = schemas.AdminFeedbackOut.model_validate(fb)
    out.username = user.username
    out.user_first_name = user.first_name
    out.user_last_name = user.last_name
    return out


# -------------------------------------------------
# TRAINEE
# -------------------------------------------------
@router.get("/should-show", response_model=schemas.ShouldShowOut, response_model_exclude_none=True)
def should_show(
    db: Session = Depends(get_db),
    user: models.User = Depends(auth.get_current_user),
    now: datetime = Depends(get_now),
):
    """
    Dashboard gate for the feedback form. Reasons are machine codes;
    the UI turns them into copy.
    """
    decision = FeedbackStore(db).evaluate_user(user.id, now)

    out = schemas.ShouldShowOut(
        should_show=decision.eligible,
        reason=decision.reason,
        pdf_updated_at=decision.plan_updated_at,
        last_feedback_at=decision.last_feedback_at,
    )
    if not decision.eligible and decision.next_available_at is not None:
        out.next_available_at = decision.next_available_at
        out.days_remaining = decision.days_remaining(now)
        out.progress = decision.progress(now)
    return out


@router.post("", response_model=schemas.FeedbackOut, status_code=201)
def submit_feedback(
    payload: schemas.FeedbackCreateIn,
    db: Session = Depends(get_db),
    user: models.User = Depends(auth.get_current_user),
    now: datetime = Depends(get_now),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    fb = FeedbackStore(db).submit_feedback(user.id, payload.model_dump(), now)

    # Trainer notification (optional). Never fails the submission.
    if settings.admin_notify_email:
        parts = admin_new_feedback(fb, username=user.username, base_url=settings.app_base_url)
        if not send_email_if_configured(mailer, settings.admin_notify_email, parts.subject, parts.body):
            logger.warning("Admin notification for feedback %s not sent", fb.id)

    return fb


@router.get("/my-feedbacks", response_model=list[schemas.FeedbackOut])
def my_feedbacks(
    db: Session = Depends(get_db),
    user: models.User = Depends(auth.get_current_user),
):
    return FeedbackStore(db).list_feedback_for_user(user.id)


# -------------------------------------------------
# ADMIN
# -------------------------------------------------
@router.get("/admin/all", response_model=list[schemas.AdminFeedbackOut])
def admin_list_all(
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    return [_admin_row(fb, u) for fb, u in FeedbackStore(db).list_feedback_for_admin()]


@router.get("/admin/user/{user_id}", response_model=list[schemas.AdminFeedbackOut])
def admin_list_for_user(
    user_id: int,
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    if not db.get(models.User, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return [_admin_row(fb, u) for fb, u in FeedbackStore(db).list_feedback_for_admin(user_id=user_id)]


@router.post("/admin/mark-seen", response_model=schemas.MarkSeenOut)
def admin_mark_seen(
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
    now: datetime = Depends(get_now),
):
    seen_at = FeedbackStore(db).mark_seen(admin.id, now)
    return schemas.MarkSeenOut(last_seen_at=seen_at)


@router.get("/admin/unread-count", response_model=schemas.UnreadCountOut)
def admin_unread_count(
    db: Session = Depends(get_db),
    admin: models.User = Depends(auth.require_admin),
):
    store = FeedbackStore(db)
    return schemas.UnreadCountOut(unread_count=store.unread_count(admin.id), last_seen_at=store.last_seen_at(admin.id))
