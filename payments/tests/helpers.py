import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from functools import lru_cache

import jwt
from Crypto.PublicKey import RSA
from django.conf import settings

from payments.models import Order, PaymentProvider

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"
MERCHANT_ID = "683002007104225"


@lru_cache(maxsize=None)
def key_pair(name: str) -> tuple[str, str]:
    """(SPKI public PEM, PKCS8 private PEM); one pair per name per test run."""
    key = RSA.generate(2048)
    return key.publickey().export_key().decode(), key.export_key(pkcs=8).decode()


def gateway_keys():
    return key_pair("gateway")


def merchant_keys():
    return key_pair("merchant")


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def make_provider(**overrides) -> PaymentProvider:
    fields = {
        "name": "Nagad",
        "provider_type": PaymentProvider.ProviderType.NAGAD,
        "store_id": MERCHANT_ID,
        "config": {"public_key": gateway_keys()[0], "private_key": merchant_keys()[1]},
        "is_sandbox": True,
        "is_active": True,
    }
    fields.update(overrides)
    return PaymentProvider.objects.create(**fields)


def make_order(user_id=USER_ID, total="500.00", status=Order.Status.PENDING, **overrides) -> Order:
    return Order.objects.create(
        user_id=user_id, total=Decimal(total), status=status, payment_method=Order.PaymentMethod.NAGAD, **overrides
    )


def make_token(sub=USER_ID, expires_in=timedelta(hours=1), secret=None, **claims) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": sub, "aud": "authenticated", "role": "authenticated", "iat": now, "exp": now + expires_in}
    payload.update(claims)
    return jwt.encode(payload, secret or settings.IDENTITY_JWT_SECRET, algorithm="HS256")


def auth_headers(token=None) -> dict:
    return {"HTTP_AUTHORIZATION": f"Bearer {token or make_token()}"}
