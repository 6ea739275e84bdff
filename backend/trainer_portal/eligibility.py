# trainer_portal/eligibility.py
"""
Decides whether a trainee should be offered the feedback form right now.

Two rules, nothing configurable:
  - a plan version must be at least FIRST_WINDOW old before its first feedback
  - after a feedback for that version, the next one waits REPEAT_WINDOW

Feedback answers one plan version. When the trainer uploads a new plan the
history for the old version stops counting, so eligibility starts over.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Protocol

from trainer_portal.time_policy import (
    FIRST_WINDOW,
    REPEAT_WINDOW,
    as_utc_naive,
    days_remaining,
    progress_fraction,
)


class Eligibility(str, Enum):
    NO_PLAN = "no_plan"
    TOO_SOON = "too_soon"
    TOO_SOON_SINCE_LAST = "too_soon_since_last"
    ELIGIBLE = "eligible"


class HasCreatedAt(Protocol):
    created_at: datetime


@dataclass(frozen=True)
class EligibilityDecision:
    status: Eligibility
    plan_updated_at: Optional[datetime] = None
    last_feedback_at: Optional[datetime] = None

    # Start of the window that governs the decision, and its length.
    # Unset for NO_PLAN.
    window_start: Optional[datetime] = None
    window: Optional[timedelta] = None

    @property
    def eligible(self) -> bool:
        return self.status is Eligibility.ELIGIBLE

    @property
    def reason(self) -> Optional[str]:
        return None if self.eligible else self.status.value

    @property
    def next_available_at(self) -> Optional[datetime]:
        if self.window_start is None or self.window is None:
            return None
        return self.window_start + self.window

    def days_remaining(self, now: datetime) -> Optional[int]:
        target = self.next_available_at
        if target is None:
            return None
        return max(0, days_remaining(target, now))

    def progress(self, now: datetime) -> Optional[float]:
        target = self.next_available_at
        if target is None:
            return None
        return progress_fraction(target - as_utc_naive(now), self.window)


def decide(
    plan_updated_at: Optional[datetime],
    last_feedback_at: Optional[datetime],
    now: datetime,
) -> EligibilityDecision:
    """
    Core rule. `last_feedback_at` must be the newest feedback given for
    exactly this plan version (None if there is none).
    """
    plan_updated_at = as_utc_naive(plan_updated_at)
    last_feedback_at = as_utc_naive(last_feedback_at)
    now = as_utc_naive(now)

    if plan_updated_at is None:
        return EligibilityDecision(Eligibility.NO_PLAN)

    if now - plan_updated_at < FIRST_WINDOW:
        return EligibilityDecision(
            Eligibility.TOO_SOON,
            plan_updated_at=plan_updated_at,
            last_feedback_at=last_feedback_at,
            window_start=plan_updated_at,
            window=FIRST_WINDOW,
        )

    if last_feedback_at is None:
        return EligibilityDecision(
            Eligibility.ELIGIBLE,
            plan_updated_at=plan_updated_at,
            window_start=plan_updated_at,
            window=FIRST_WINDOW,
        )

    status = Eligibility.ELIGIBLE if now - last_feedback_at >= REPEAT_WINDOW else Eligibility.TOO_SOON_SINCE_LAST
    return EligibilityDecision(
        status,
        plan_updated_at=plan_updated_at,
        last_feedback_at=last_feedback_at,
        window_start=last_feedback_at,
        window=REPEAT_WINDOW,
    )


def evaluate(
    plan_updated_at: Optional[datetime],
    feedbacks_for_current_version: Iterable[HasCreatedAt],
    now: datetime,
) -> EligibilityDecision:
    """
    Same as decide(), from a list of feedback records.

    The caller filters the list to feedback whose pdf_change_date equals
    `plan_updated_at`. Passing a user's whole history is not checked and
    gives wrong (stricter) answers.
    """
    last = max(
        (as_utc_naive(f.created_at) for f in feedbacks_for_current_version if f.created_at is not None),
        default=None,
    )
    return decide(plan_updated_at, last, now)
