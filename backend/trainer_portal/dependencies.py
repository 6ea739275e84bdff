# trainer_portal/dependencies.py
from datetime import datetime
from typing import Callable

from fastapi import Request

from .config import Settings
from .emailer import Mailer

Clock = Callable[[], datetime]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_now(request: Request) -> datetime:
    """
    Current instant for this request (naive UTC).
    Tests install a fixed clock on app.state.
    """
    clock: Clock = request.app.state.clock
    return clock()
