import json, logging

import requests
from django.conf import settings
from requests import RequestException

from ..config import NagadConfig
from ..crypto import decrypt_with_private_key, encrypt_with_public_key, sign
from ..errors import CryptoError, GatewayError
from ..utils import amount_str, format_timestamp, random_challenge

logger = logging.getLogger(__name__)

CURRENCY_CODE_BDT = "050"
SANDBOX = "sandbox"
PRODUCTION = "production"


def _compact(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"))


class NagadClient:
    """Nagad remote payment gateway: initialize -> complete -> verify.

    The challenge generated by :meth:`initialize` is returned to the
    caller and must be handed to :meth:`complete` within the same
    request; nothing is kept on the client between calls.
    """

    def __init__(self, config: NagadConfig, *, client_ip: str = "127.0.0.1", timeout: float | None = None):
        expected = getattr(settings, "NAGAD_ENVIRONMENT", "")
        actual = SANDBOX if config.sandbox else PRODUCTION
        if expected and expected != actual:
            raise GatewayError(f"Nagad {actual} credentials cannot be used in the {expected} environment")

        self.config = config
        self.client_ip = client_ip or "127.0.0.1"
        self.timeout = timeout if timeout is not None else getattr(settings, "NAGAD_TIMEOUT", 30)
        self.base_url = (
            settings.NAGAD_SANDBOX_BASE_URL if config.sandbox else settings.NAGAD_PRODUCTION_BASE_URL
        ).rstrip("/")

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-KM-IP-V4": self.client_ip,
            "X-KM-Client-Type": getattr(settings, "NAGAD_CLIENT_TYPE", "PC_WEB"),
            "X-KM-Api-Version": getattr(settings, "NAGAD_API_VERSION", "v-0.2.0"),
        }

    def _sealed(self, sensitive: dict) -> dict:
        plain = _compact(sensitive)
        return {
            "sensitiveData": encrypt_with_public_key(plain, self.config.public_key),
            "signature": sign(plain, self.config.private_key),
        }

    def _parse(self, resp, step: str) -> dict:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not 200 <= resp.status_code < 300:
            logger.error("Nagad %s failed: status=%s text=%s", step, resp.status_code, resp.text[:500])
            detail = (data.get("reason") or data.get("message")) if isinstance(data, dict) else None
            raise GatewayError(str(detail) if detail else f"Nagad {step} failed (HTTP {resp.status_code})")
        if data is None:
            logger.error("Nagad %s returned non-JSON: status=%s text=%s", step, resp.status_code, resp.text[:500])
            raise GatewayError(f"Unexpected response from Nagad ({step}, HTTP {resp.status_code})")
        if not isinstance(data, dict):
            logger.error("Nagad %s returned unexpected payload: %s", step, str(data)[:500])
            raise GatewayError(f"Unexpected response from Nagad ({step})")
        return data

    def _post(self, url: str, body: dict, step: str) -> dict:
        try:
            resp = requests.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except RequestException as e:
            logger.error("Nagad %s request failed: %s", step, e)
            raise GatewayError(f"Gateway request failed: {e}")
        return self._parse(resp, step)

    def _open_sensitive(self, data: dict) -> dict:
        """Merge the fields of an encrypted ``sensitiveData`` reply, when present."""
        blob = data.get("sensitiveData")
        if not blob or data.get("paymentReferenceId"):
            return data
        try:
            opened = json.loads(decrypt_with_private_key(blob, self.config.private_key))
        except (CryptoError, ValueError) as e:
            logger.error("Could not open Nagad sensitiveData: %s", e)
            raise GatewayError("Unexpected response from Nagad (initialize)")
        if not isinstance(opened, dict):
            raise GatewayError("Unexpected response from Nagad (initialize)")
        return {**data, **opened}

    def initialize(self, amount, order_id: str) -> dict:
        """Start a checkout; returns the gateway reply plus our own ``challenge``."""
        date_time = format_timestamp()
        challenge = random_challenge()
        sensitive = {
            "merchantId": self.config.merchant_id,
            "datetime": date_time,
            "orderId": order_id,
            "challenge": challenge,
        }
        logger.info("Initializing Nagad payment for order %s (amount %s)", order_id, amount_str(amount))

        url = f"{self.base_url}/check-out/initialize/{self.config.merchant_id}/{order_id}"
        data = self._post(url, {"dateTime": date_time, **self._sealed(sensitive)}, "initialize")

        if data.get("reason"):
            logger.error("Nagad initialize rejected order %s: %s", order_id, data.get("reason"))
            raise GatewayError(str(data["reason"]))
        data = self._open_sensitive(data)
        if not data.get("paymentReferenceId"):
            logger.error("Nagad initialize for order %s missing paymentReferenceId: %s", order_id, str(data)[:500])
            raise GatewayError("Nagad did not return a payment reference")

        # the challenge is ours, not the gateway's; keep it for complete()
        return {**data, "challenge": challenge}

    def complete(self, payment_reference_id: str, challenge: str, amount, order_id: str, callback_url: str) -> dict:
        sensitive = {
            "merchantId": self.config.merchant_id,
            "orderId": order_id,
            "currencyCode": CURRENCY_CODE_BDT,
            "amount": amount_str(amount),
            "challenge": challenge,
        }
        logger.info("Completing Nagad payment %s for order %s", payment_reference_id, order_id)

        body = {
            "dateTime": format_timestamp(),
            **self._sealed(sensitive),
            "merchantCallbackURL": callback_url,
        }
        data = self._post(f"{self.base_url}/check-out/complete/{payment_reference_id}", body, "complete")

        if data.get("reason"):
            logger.error("Nagad complete rejected %s: %s", payment_reference_id, data.get("reason"))
            raise GatewayError(str(data["reason"]))
        if not data.get("callBackUrl"):
            logger.error("Nagad complete for %s missing callBackUrl: %s", payment_reference_id, str(data)[:500])
            raise GatewayError("Nagad did not return a payment page URL")
        return data

    def verify(self, payment_reference_id: str) -> dict:
        logger.info("Verifying Nagad payment %s", payment_reference_id)
        url = f"{self.base_url}/verify/payment/{payment_reference_id}"
        try:
            resp = requests.get(url, headers=self._headers(), timeout=self.timeout)
        except RequestException as e:
            logger.error("Nagad verify request failed: %s", e)
            raise GatewayError(f"Gateway request failed: {e}")
        data = self._parse(resp, "verify")
        logger.info("Nagad verify %s -> %s", payment_reference_id, data.get("status"))
        return data
