import ipaddress
import secrets
import string
from datetime import datetime
from decimal import Decimal

from django.conf import settings
from django.utils import timezone

ALNUM = string.ascii_uppercase + string.ascii_lowercase + string.digits
CHALLENGE_LENGTH = 40


def format_timestamp(now: datetime | None = None) -> str:
    """Render ``now`` as the gateway's ``YYYYMMDDHHmmss`` datetime field.

    Aware datetimes are converted to the server's local zone first; naive
    ones are taken as already local.
    """
    if now is None:
        now = timezone.localtime()
    elif timezone.is_aware(now):
        now = timezone.localtime(now)
    return (
        f"{now.year:04d}{now.month:02d}{now.day:02d}"
        f"{now.hour:02d}{now.minute:02d}{now.second:02d}"
    )


def random_challenge(length: int = CHALLENGE_LENGTH) -> str:
    return "".join(secrets.choice(ALNUM) for _ in range(length))


def amount_str(amount) -> str:
    return f"{Decimal(str(amount)):.2f}"


def _ipv4(value) -> str | None:
    try:
        return str(ipaddress.IPv4Address((value or "").strip()))
    except ValueError:
        return None


def client_ip(request) -> str:
    """Caller's IPv4 address for the gateway's ``X-KM-IP-V4`` header.

    ``X-Forwarded-For`` is read only when ``USE_X_FORWARDED_FOR`` is set.
    Anything that is not an IPv4 address falls through to ``REMOTE_ADDR``
    and then to loopback.
    """
    if getattr(settings, "USE_X_FORWARDED_FOR", False):
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
        ip = _ipv4(forwarded.split(",")[0]) if forwarded else None
        if ip:
            return ip
    return _ipv4(request.META.get("REMOTE_ADDR")) or "127.0.0.1"
