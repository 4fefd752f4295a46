# posapp/utils/periods.py
# Разбор периодов отчёта и границ дат

import calendar
import datetime
import math
from dataclasses import dataclass
from enum import Enum


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Bucket:
    label: str
    start: datetime.datetime    # включительно
    end: datetime.datetime      # не включительно


class Granularity(str, Enum):
    DAY = "day"
    MONTH = "month"

    @property
    def label_format(self) -> str:
        return "%Y-%m-%d" if self is Granularity.DAY else "%Y-%m"

    def label(self, value: datetime.datetime, tz: datetime.tzinfo) -> str:
        """Ключ бакета для aware-момента в часовом поясе tz."""
        return value.astimezone(tz).strftime(self.label_format)

    def floor(self, value: datetime.datetime, tz: datetime.tzinfo) -> datetime.datetime:
        day = value.astimezone(tz).date()
        if self is Granularity.MONTH:
            day = day.replace(day=1)
        return datetime.datetime.combine(day, datetime.time.min, tzinfo=tz)

    def following(self, start: datetime.datetime) -> datetime.datetime:
        day = start.date()
        if self is Granularity.DAY:
            day += datetime.timedelta(days=1)
        else:
            day = (day.replace(day=28) + datetime.timedelta(days=4)).replace(day=1)
        return datetime.datetime.combine(day, datetime.time.min, tzinfo=start.tzinfo)

    def buckets(self, first: datetime.datetime, last: datetime.datetime, tz: datetime.tzinfo) -> list[Bucket]:
        """
        Подряд идущие бакеты [start, end), покрывающие [first, last].
        Границы — полночь (или 1-е число) в часовом поясе tz.
        """
        result = []
        start = self.floor(first, tz)
        while start <= last:
            end = self.following(start)
            result.append(Bucket(self.label(start, tz), start, end))
            start = end
        return result


@dataclass(frozen=True)
class ResolvedPeriod:
    period: Period
    start: datetime.datetime
    end: datetime.datetime
    granularity: Granularity


END_OF_DAY = datetime.time.max  # 23:59:59.999999


def parse_period(raw: str | None) -> Period:
    """
    Строка из запроса → Period.
    Пустое значение → день, неизвестное → ValueError.
    """
    if raw is None or not raw.strip():
        return Period.DAY
    try:
        return Period(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in Period)
        raise ValueError(f"Неизвестный период '{raw}', допустимо: {allowed}")


def parse_date_bound(raw: str, tz: datetime.tzinfo, *, end_of_day: bool = False) -> datetime.datetime:
    """
    Строгий разбор границы диапазона: YYYY-MM-DD или ISO datetime.

    - дата без времени трактуется в часовом поясе tz
    - end_of_day=True растягивает границу до 23:59:59.999999 того же дня
    - непарсибельная строка → ValueError
    """
    text = (raw or "").strip()
    if not text:
        raise ValueError("Пустая дата")
    try:
        if "T" in text or " " in text:
            value = datetime.datetime.fromisoformat(text.replace("Z", "+00:00"))
        else:
            value = datetime.datetime.combine(datetime.date.fromisoformat(text), datetime.time.min)
    except ValueError:
        raise ValueError(f"Некорректная дата: '{raw}'")

    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    if end_of_day:
        local = value.astimezone(tz)
        value = datetime.datetime.combine(local.date(), END_OF_DAY, tzinfo=tz)
    return value


def start_of_day(value: datetime.datetime) -> datetime.datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def shift_months(value: datetime.datetime, months: int) -> datetime.datetime:
    """Сдвиг на календарные месяцы; день месяца прижимается к последнему (31.03 - 1 → 28/29.02)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_period(
    period: Period,
    now: datetime.datetime,
    start: str | None = None,
    end: str | None = None,
    monthly_threshold_days: int = 60,
) -> ResolvedPeriod:
    """
    Период → конкретный диапазон [start, end] и шаг группировки.

    Все вычисления идут в часовом поясе `now` (aware).
    | day    | сегодня 00:00 → now          | по дням   |
    | week   | now - 7 дней (00:00) → now   | по дням   |
    | month  | now - 1 месяц (00:00) → now  | по дням   |
    | year   | now - 1 год (00:00) → now    | по месяцам|
    | custom | [start 00:00, end 23:59:59.999999], по месяцам если > threshold дней |
    """
    if now.tzinfo is None:
        raise ValueError("now должен содержать часовой пояс")
    tz = now.tzinfo

    if period is Period.CUSTOM:
        if not start or not end:
            raise ValueError("Для периода custom нужны startDate и endDate")
        range_start = parse_date_bound(start, tz)
        range_end = parse_date_bound(end, tz, end_of_day=True)
        if range_start > range_end:
            raise ValueError("startDate позже endDate")

        days = math.ceil((range_end - range_start) / datetime.timedelta(days=1))
        granularity = Granularity.MONTH if days > monthly_threshold_days else Granularity.DAY
        return ResolvedPeriod(period, range_start, range_end, granularity)

    if period is Period.DAY:
        range_start = start_of_day(now)
    elif period is Period.WEEK:
        range_start = start_of_day(now - datetime.timedelta(days=7))
    elif period is Period.MONTH:
        range_start = start_of_day(shift_months(now, -1))
    else:
        range_start = start_of_day(shift_months(now, -12))

    granularity = Granularity.MONTH if period is Period.YEAR else Granularity.DAY
    return ResolvedPeriod(period, range_start, now, granularity)
