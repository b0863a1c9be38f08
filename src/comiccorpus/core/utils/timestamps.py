"""Horodatages UTC : conversion epoch ms et format ISO stocké en base."""

from __future__ import annotations

import datetime


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def from_epoch_ms(value: int | float | None) -> datetime.datetime | None:
    """Convertit un timestamp epoch en millisecondes (UTC) ; None reste None."""
    if value is None:
        return None
    return datetime.datetime.fromtimestamp(float(value) / 1000.0, tz=datetime.timezone.utc)


def to_iso_utc(value: datetime.datetime) -> str:
    """Format stocké : ISO 8601 UTC sans offset, suffixe Z (ex: 2024-05-01T12:00:00Z)."""
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"
