"""Caller identity and order ownership checks for shopper-initiated actions."""

import logging
from dataclasses import dataclass

import jwt
from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from .errors import Forbidden, InvalidState, NotFound, Unauthorized
from .models import Order

logger = logging.getLogger(__name__)

_jwks_client = None


@dataclass(frozen=True)
class Principal:
    user_id: str


def _bearer_token(request) -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise Unauthorized("Unauthorized")
    token = header[len("Bearer "):].strip()
    if not token:
        raise Unauthorized("Unauthorized")
    return token


def _signing_key(token: str):
    """Shared secret, or the JWKS key matching the token's ``kid`` when a JWKS URL is set."""
    global _jwks_client
    jwks_url = getattr(settings, "IDENTITY_JWKS_URL", "")
    if jwks_url:
        if _jwks_client is None or _jwks_client.uri != jwks_url:
            _jwks_client = jwt.PyJWKClient(jwks_url)
        return _jwks_client.get_signing_key_from_jwt(token).key
    return settings.IDENTITY_JWT_SECRET


def authenticate(request) -> Principal:
    """Validate the bearer token and return its subject.

    Raises :class:`Unauthorized` when the header is missing or the token is
    invalid, expired, or carries no subject.
    """
    token = _bearer_token(request)
    audience = getattr(settings, "IDENTITY_JWT_AUDIENCE", None) or None
    try:
        claims = jwt.decode(
            token,
            _signing_key(token),
            algorithms=list(settings.IDENTITY_JWT_ALGORITHMS),
            audience=audience,
            options={"require": ["exp", "sub"], "verify_aud": bool(audience)},
        )
    except jwt.PyJWTError as e:
        logger.warning("Token verification failed: %s", e)
        raise Unauthorized("Invalid token")

    subject = str(claims.get("sub") or "")
    if not subject:
        raise Unauthorized("Invalid token")
    return Principal(user_id=subject)


def authorize_order(request, order_id, require_pending: bool = True) -> tuple[Principal, Order]:
    principal = authenticate(request)

    try:
        order = Order.objects.get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        logger.warning("Order %s not found", order_id)
        raise NotFound("Order not found")

    if str(order.user_id or "") != principal.user_id:
        logger.warning(
            "Order ownership mismatch: order=%s owner=%s caller=%s", order.pk, order.user_id, principal.user_id
        )
        raise Forbidden("Unauthorized access to order")

    if require_pending and not order.is_pending:
        raise InvalidState("Order already processed")

    return principal, order
