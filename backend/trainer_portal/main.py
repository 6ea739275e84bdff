# trainer_portal/main.py
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from trainer_portal import auth, models, schemas
from trainer_portal.config import Settings, load_settings
from trainer_portal.database import create_schema, get_db, make_engine, make_session_factory
from trainer_portal.dependencies import Clock, get_settings
from trainer_portal.emailer import Mailer, SmtpMailer
from trainer_portal.errors import install_error_handlers
from trainer_portal.routers import feedback
from trainer_portal.time_policy import utcnow


def create_app(
    settings: Optional[Settings] = None,
    *,
    mailer: Optional[Mailer] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the API. Everything stateful (settings, DB, mailer, clock) lives on
    app.state so tests can swap any of it.
    """
    settings = settings or load_settings()

    # -------------------------------------------------
    # DB SETUP
    # -------------------------------------------------
    engine = make_engine(settings.database_url)
    create_schema(engine)

    # -------------------------------------------------
    # APP SETUP
    # -------------------------------------------------
    app = FastAPI(title="Trainer Portal Backend", version="1.0.0")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.mailer = mailer or SmtpMailer(settings)
    app.state.clock = clock or utcnow

    install_error_handlers(app)
    app.include_router(feedback.router)

    # -------------------------------------------------
    # ROOT + HEALTH
    # -------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # -------------------------------------------------
    # AUTH / LOGIN
    # -------------------------------------------------
    @app.post("/api/auth/login", response_model=schemas.TokenOut)
    def login(
        form_data: OAuth2PasswordRequestForm = Depends(),
        db: Session = Depends(get_db),
        settings: Settings = Depends(get_settings),
    ):
        username = (form_data.username or "").strip()
        user = db.scalar(select(models.User).where(models.User.username == username))
        if not user or not auth.verify_password(form_data.password, user.hashed_password):
            raise HTTPException(status_code=401, detail="Invalid username or password")

        if not user.is_active:
            raise HTTPException(status_code=403, detail="User is inactive")

        token = auth.create_access_token(
            settings,
            user_id=user.id,
            username=user.username,
            is_admin=user.is_admin,
        )
        return schemas.TokenOut(access_token=token, user_id=user.id, is_admin=user.is_admin)

    @app.get("/api/auth/me", response_model=schemas.UserOut)
    def me(user: models.User = Depends(auth.get_current_user)):
        return user

    return app


def __getattr__(name: str):
    # `uvicorn trainer_portal.main:app` builds the app lazily, so importing
    # this module (tests, the reminder job) never touches .env or the DB.
    if name == "app":
        global app
        app = create_app()
        return app
    raise AttributeError(name)
