"""Date helpers. Persisted timestamps are naive UTC, rendered in GMT-3."""
from datetime import datetime, timezone, timedelta

GMT3 = timezone(timedelta(hours=-3), "America/Argentina/Buenos_Aires")

MESES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now():
    return datetime.now(GMT3)


def to_gmt3(value):
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(GMT3)


def format_iso(value):
    local = to_gmt3(value)
    return local.isoformat(timespec="milliseconds") if local else None


def format_spanish(value):
    """19 de octubre de 2026"""
    local = to_gmt3(value)
    if local is None:
        return ""
    return f"{local.day} de {MESES[local.month - 1]} de {local.year}"


def format_short(value):
    """d/m/yyyy"""
    local = to_gmt3(value)
    if local is None:
        return ""
    return f"{local.day}/{local.month}/{local.year}"
