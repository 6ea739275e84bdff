# trainer_portal/schemas.py
from datetime import datetime, date
from typing import Optional, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

NutritionQuality = Literal["ottima", "buona", "da_migliorare", "difficolta"]
NUTRITION_QUALITIES: tuple[str, ...] = ("ottima", "buona", "da_migliorare", "difficolta")


# -----------------------------
# AUTH
# -----------------------------
class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"

    user_id: Optional[int] = None
    is_admin: Optional[bool] = None


class UserOut(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    is_admin: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -----------------------------
# FEEDBACK
# -----------------------------
class FeedbackCreateIn(BaseModel):
    """
    Survey body as sent by the dashboard form (camelCase).
    The plan version is never taken from the client.
    """

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., min_length=1, max_length=100, alias="firstName")
    last_name: str = Field(..., min_length=1, max_length=100, alias="lastName")
    email: EmailStr

    training_satisfaction: int = Field(..., ge=1, le=10, alias="trainingSatisfaction")
    motivation_level: int = Field(..., ge=1, le=10, alias="motivationLevel")
    difficulties: Optional[str] = None
    nutrition_quality: NutritionQuality = Field(..., alias="nutritionQuality")
    sleep_hours: int = Field(..., ge=0, le=24, alias="sleepHours")
    recovery_improved: bool = Field(..., alias="recoveryImproved")
    feels_supported: bool = Field(..., alias="feelsSupported")
    support_improvement: Optional[str] = Field(None, alias="supportImprovement")


class FeedbackOut(BaseModel):
    id: int
    user_id: int
    first_name: str
    last_name: str
    email: str
    feedback_date: date

    training_satisfaction: int
    motivation_level: int
    difficulties: Optional[str] = None
    nutrition_quality: str
    sleep_hours: int
    recovery_improved: bool
    feels_supported: bool
    support_improvement: Optional[str] = None

    created_at: datetime
    pdf_change_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminFeedbackOut(FeedbackOut):
    # owning account, for the admin list
    username: Optional[str] = None
    user_first_name: Optional[str] = None
    user_last_name: Optional[str] = None


class ShouldShowOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    should_show: bool = Field(..., alias="shouldShow")
    reason: Optional[str] = None
    pdf_updated_at: Optional[datetime] = Field(None, alias="pdfUpdatedAt")
    last_feedback_at: Optional[datetime] = Field(None, alias="lastFeedbackAt")

    # countdown / progress bar while waiting
    next_available_at: Optional[datetime] = Field(None, alias="nextAvailableAt")
    days_remaining: Optional[int] = Field(None, alias="daysRemaining")
    progress: Optional[float] = None


class UnreadCountOut(BaseModel):
    unread_count: int = Field(..., alias="unreadCount")
    last_seen_at: Optional[datetime] = Field(None, alias="lastSeenAt")

    model_config = ConfigDict(populate_by_name=True)


class MarkSeenOut(BaseModel):
    ok: bool = True
    last_seen_at: datetime = Field(..., alias="lastSeenAt")

    model_config = ConfigDict(populate_by_name=True)
