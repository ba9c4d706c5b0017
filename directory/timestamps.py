"""AD タイムスタンプ (1601-01-01 起点の 100ns 単位) と UNIX 時刻の相互変換。"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

# 1601-01-01 と 1970-01-01 の差 (ミリ秒)
EPOCH_OFFSET_MS = 11_644_473_600_000
TICKS_PER_MS = 10_000

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unix_millis_to_directory(unix_millis: int) -> int:
    return (unix_millis + EPOCH_OFFSET_MS) * TICKS_PER_MS


def directory_to_unix_millis(directory_timestamp: int) -> int:
    return directory_timestamp // TICKS_PER_MS - EPOCH_OFFSET_MS


def datetime_to_unix_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - UNIX_EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def unix_millis_to_datetime(unix_millis: int) -> datetime:
    return UNIX_EPOCH + timedelta(milliseconds=unix_millis)


def datetime_to_directory(value: datetime) -> int:
    return unix_millis_to_directory(datetime_to_unix_millis(value))


def directory_to_datetime(directory_timestamp: int) -> datetime:
    return unix_millis_to_datetime(directory_to_unix_millis(directory_timestamp))


def inactivity_threshold(days_inactive: int, now: Optional[datetime] = None) -> int:
    """``now - days_inactive`` 日をディレクトリ時刻で返す。"""
    if days_inactive < 1:
        raise ValueError("days_inactive must be >= 1")
    now = now or datetime.now(timezone.utc)
    return datetime_to_directory(now - timedelta(days=days_inactive))
