"""RFC 6350 §4.3 date and time values.

The grammar allows reduced (``1985``, ``1985-06``) and truncated (``--0604``,
``---04``, ``-30``) forms, so components are optional. The text as written is
kept in ``lexical`` and used on output; it does not take part in equality.
"""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import ClassVar

from .errors import InvalidValue
from .schema import ValueKind

_ZONE = r"(?P<zone>Z|[+-]\d{2}(?::?\d{2})?)?"

_DATE_FORMS = [
    r"(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})",
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})",
    r"(?P<year>\d{4})-(?P<month>\d{2})",
    r"(?P<year>\d{4})",
    r"--(?P<month>\d{2})(?:-?(?P<day>\d{2}))?",
    r"---(?P<day>\d{2})",
]
# date-noreduc: the forms usable before a time designator
_DATE_NOREDUC_FORMS = [_DATE_FORMS[0], _DATE_FORMS[1], r"--(?P<month>\d{2})-?(?P<day>\d{2})", _DATE_FORMS[5]]

_TIME_NOTRUNC = r"(?P<hour>\d{2})(?::?(?P<minute>\d{2})(?::?(?P<second>\d{2}))?)?"
_TIME_FORMS = [
    _TIME_NOTRUNC,
    r"-(?P<minute>\d{2})(?::?(?P<second>\d{2}))?",
    r"--(?P<second>\d{2})",
]
_TIME_COMPLETE = r"(?P<hour>\d{2}):?(?P<minute>\d{2}):?(?P<second>\d{2})"


def _compile(forms: list[str], zone: bool = False) -> list[re.Pattern]:
    return [re.compile(form + (_ZONE if zone else ""), re.ASCII) for form in forms]


_RE_DATE = _compile(_DATE_FORMS)
_RE_DATE_NOREDUC = _compile(_DATE_NOREDUC_FORMS)
_RE_DATE_COMPLETE = _compile(_DATE_FORMS[:2])
_RE_TIME = _compile(_TIME_FORMS, zone=True)
_RE_TIME_NOTRUNC = _compile(_TIME_FORMS[:1], zone=True)
_RE_TIME_COMPLETE = _compile([_TIME_COMPLETE], zone=True)
_RE_UTC_OFFSET = re.compile(r"(?P<sign>[+-])(?P<hours>\d{2})(?::?(?P<minutes>\d{2}))?", re.ASCII)


def _format_zone(zone: dt.timezone) -> str:
    if zone is dt.timezone.utc:
        return "Z"
    minutes = int(zone.utcoffset(None).total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}{minutes:02d}"


@dataclass(frozen=True)
class DateValue:
    kind: ClassVar[ValueKind] = ValueKind.DATE

    year: int | None = None
    month: int | None = None
    day: int | None = None
    lexical: str | None = field(default=None, compare=False, repr=False)

    @property
    def is_complete(self) -> bool:
        return None not in (self.year, self.month, self.day)

    def as_date(self) -> dt.date | None:
        if not self.is_complete:
            return None
        return dt.date(self.year, self.month, self.day)

    def to_text(self) -> str:
        if self.lexical is not None:
            return self.lexical
        if self.year is not None:
            if self.month is None:
                return f"{self.year:04d}"
            if self.day is None:
                return f"{self.year:04d}-{self.month:02d}"
            return f"{self.year:04d}{self.month:02d}{self.day:02d}"
        if self.month is not None:
            return f"--{self.month:02d}" + (f"{self.day:02d}" if self.day is not None else "")
        return f"---{self.day:02d}"


@dataclass(frozen=True)
class TimeValue:
    kind: ClassVar[ValueKind] = ValueKind.TIME

    hour: int | None = None
    minute: int | None = None
    second: int | None = None
    zone: dt.timezone | None = None
    lexical: str | None = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        if self.lexical is not None:
            return self.lexical
        if self.hour is not None:
            text = f"{self.hour:02d}"
            if self.minute is not None:
                text += f"{self.minute:02d}"
                if self.second is not None:
                    text += f"{self.second:02d}"
        elif self.minute is not None:
            text = f"-{self.minute:02d}" + (f"{self.second:02d}" if self.second is not None else "")
        else:
            text = f"--{self.second:02d}"
        if self.zone is not None:
            text += _format_zone(self.zone)
        return text


@dataclass(frozen=True)
class DateTimeValue:
    kind: ClassVar[ValueKind] = ValueKind.DATE_TIME

    date: DateValue
    time: TimeValue
    lexical: str | None = field(default=None, compare=False, repr=False)

    def as_datetime(self) -> dt.datetime | None:
        """Return a datetime when the date is complete, else None."""
        if not self.date.is_complete or self.time.hour is None:
            return None
        return dt.datetime(
            self.date.year, self.date.month, self.date.day,
            self.time.hour, self.time.minute or 0, min(self.time.second or 0, 59),
            tzinfo=self.time.zone,
        )

    def to_text(self) -> str:
        if self.lexical is not None:
            return self.lexical
        return f"{self.date.to_text()}T{self.time.to_text()}"


@dataclass(frozen=True)
class UtcOffsetValue:
    kind: ClassVar[ValueKind] = ValueKind.UTC_OFFSET

    offset: dt.timezone
    lexical: str | None = field(default=None, compare=False, repr=False)

    def to_text(self) -> str:
        if self.lexical is not None:
            return self.lexical
        return _format_zone(self.offset).replace("Z", "+0000")


# ── Parsing ────────────────────────────────────────────────────────────────────

def _int(match: re.Match, name: str) -> int | None:
    text = match.groupdict().get(name)
    return int(text) if text is not None else None


def _match(patterns: list[re.Pattern], raw: str) -> re.Match | None:
    for pattern in patterns:
        m = pattern.fullmatch(raw)
        if m:
            return m
    return None


def _zone(text: str | None, kind: str, raw: str) -> dt.timezone | None:
    if text is None:
        return None
    if text == "Z":
        return dt.timezone.utc
    return _offset(text, kind, raw)


def _offset(text: str, kind: str, raw: str) -> dt.timezone:
    m = _RE_UTC_OFFSET.fullmatch(text)
    if not m:
        raise InvalidValue(kind, raw, "malformed UTC offset")
    hours = int(m.group("hours"))
    minutes = int(m.group("minutes") or 0)
    if hours > 23 or minutes > 59:
        raise InvalidValue(kind, raw, "UTC offset out of range")
    delta = dt.timedelta(hours=hours, minutes=minutes)
    return dt.timezone(-delta if m.group("sign") == "-" else delta)


def _date_from(m: re.Match, kind: str, raw: str, lexical: str | None) -> DateValue:
    year, month, day = _int(m, "year"), _int(m, "month"), _int(m, "day")
    if month is not None and not 1 <= month <= 12:
        raise InvalidValue(kind, raw, "month out of range")
    if day is not None and not 1 <= day <= 31:
        raise InvalidValue(kind, raw, "day out of range")
    if month is not None and day is not None:
        try:
            # 2000 is a leap year, so --0229 stays valid without a year
            dt.date(year if year is not None else 2000, month, day)
        except ValueError as exc:
            raise InvalidValue(kind, raw, str(exc)) from exc
    return DateValue(year, month, day, lexical=lexical)


def _time_from(m: re.Match, kind: str, raw: str, lexical: str | None) -> TimeValue:
    hour, minute, second = _int(m, "hour"), _int(m, "minute"), _int(m, "second")
    if hour is not None and hour > 23:
        raise InvalidValue(kind, raw, "hour out of range")
    if minute is not None and minute > 59:
        raise InvalidValue(kind, raw, "minute out of range")
    if second is not None and second > 60:
        raise InvalidValue(kind, raw, "second out of range")
    return TimeValue(hour, minute, second, _zone(m.group("zone"), kind, raw), lexical=lexical)


def parse_date(raw: str) -> DateValue:
    m = _match(_RE_DATE, raw)
    if not m:
        raise InvalidValue(ValueKind.DATE.value, raw)
    return _date_from(m, ValueKind.DATE.value, raw, raw)


def parse_time(raw: str) -> TimeValue:
    m = _match(_RE_TIME, raw)
    if not m:
        raise InvalidValue(ValueKind.TIME.value, raw)
    return _time_from(m, ValueKind.TIME.value, raw, raw)


def _parse_date_time(raw: str, kind: str, dates: list[re.Pattern], times: list[re.Pattern]) -> DateTimeValue:
    date_part, designator, time_part = raw.partition("T")
    if not designator:
        raise InvalidValue(kind, raw, "missing time designator 'T'")
    dm = _match(dates, date_part)
    tm = _match(times, time_part)
    if not dm or not tm:
        raise InvalidValue(kind, raw)
    return DateTimeValue(
        _date_from(dm, kind, raw, None),
        _time_from(tm, kind, raw, None),
        lexical=raw,
    )


def parse_date_time(raw: str) -> DateTimeValue:
    return _parse_date_time(raw, ValueKind.DATE_TIME.value, _RE_DATE_NOREDUC, _RE_TIME_NOTRUNC)


def parse_timestamp(raw: str) -> DateTimeValue:
    return _parse_date_time(raw, ValueKind.TIMESTAMP.value, _RE_DATE_COMPLETE, _RE_TIME_COMPLETE)


def parse_date_and_or_time(raw: str) -> DateValue | TimeValue | DateTimeValue:
    """Parse ``date-time / date / "T" time``, returning the matching form."""
    kind = ValueKind.DATE_AND_OR_TIME.value
    if raw.startswith("T"):
        m = _match(_RE_TIME, raw[1:])
        if not m:
            raise InvalidValue(kind, raw)
        return _time_from(m, kind, raw, raw)
    if "T" in raw:
        return _parse_date_time(raw, kind, _RE_DATE_NOREDUC, _RE_TIME_NOTRUNC)
    m = _match(_RE_DATE, raw)
    if not m:
        raise InvalidValue(kind, raw)
    return _date_from(m, kind, raw, raw)


def parse_utc_offset(raw: str) -> UtcOffsetValue:
    return UtcOffsetValue(_offset(raw, ValueKind.UTC_OFFSET.value, raw), lexical=raw)
