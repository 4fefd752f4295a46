# posapp/utils/clock.py
# Время: часовой пояс точки продаж и хранение в UTC

import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from posapp.config import settings

Clock = Callable[[], datetime.datetime]


def local_tz() -> ZoneInfo:
    """Часовой пояс из настроек (TIMEZONE)."""
    return ZoneInfo(settings.TIMEZONE)


def system_clock() -> datetime.datetime:
    """Текущее время в часовом поясе точки продаж (aware)."""
    return datetime.datetime.now(local_tz())


def utcnow_naive() -> datetime.datetime:
    # в базе время хранится как naive UTC
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def to_storage(value: datetime.datetime) -> datetime.datetime:
    """
    aware → naive UTC для записи/фильтров.
    naive значения считаются локальным временем точки продаж.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=local_tz())
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


def from_storage(value: datetime.datetime | None) -> datetime.datetime | None:
    """naive UTC из базы → aware UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)
