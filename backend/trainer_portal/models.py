# trainer_portal/models.py
from __future__ import annotations

from datetime import datetime, date

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    Date,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    username: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)

    # Trainees are created by the trainer; many never get an email on file.
    # The address they type into the feedback form is the reliable one.
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    training_plan = relationship("TrainingPlan", back_populates="user", uselist=False)
    feedbacks = relationship("Feedback", back_populates="user")


class TrainingPlan(Base):
    """
    The trainee's current plan document (metadata only).

    `updated_at` moves every time the trainer uploads or replaces the file,
    and is the version token feedback is tied to.
    """

    __tablename__ = "user_pdf_files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False, index=True)

    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    uploaded_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    expiration_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user = relationship("User", back_populates="training_plan")


class Feedback(Base):
    __tablename__ = "user_feedbacks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    feedback_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    training_satisfaction: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..10
    motivation_level: Mapped[int] = mapped_column(Integer, nullable=False)  # 1..10
    difficulties: Mapped[str | None] = mapped_column(Text, nullable=True)
    nutrition_quality: Mapped[str] = mapped_column(String(50), nullable=False)  # ottima/buona/da_migliorare/difficolta
    sleep_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    recovery_improved: Mapped[bool] = mapped_column(Boolean, nullable=False)
    feels_supported: Mapped[bool] = mapped_column(Boolean, nullable=False)
    support_improvement: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # TrainingPlan.updated_at at submission time
    pdf_change_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)

    user = relationship("User", back_populates="feedbacks")


class AdminFeedbackSeen(Base):
    __tablename__ = "admin_feedback_seen"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    admin_user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False, index=True)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    admin = relationship("User")
