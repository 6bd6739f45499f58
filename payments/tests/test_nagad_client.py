import json
from decimal import Decimal
from unittest.mock import patch

import requests
from django.test import SimpleTestCase, override_settings

from payments import crypto
from payments.config import NagadConfig
from payments.errors import CryptoError, GatewayError
from payments.integrations.nagad import NagadClient

from .helpers import MERCHANT_ID, FakeResponse, gateway_keys, merchant_keys

SANDBOX = "https://sandbox.example/api/dfs"
PRODUCTION = "https://live.example/api/dfs"


def _config(sandbox=True, **overrides):
    fields = dict(
        merchant_id=MERCHANT_ID,
        public_key=gateway_keys()[0],
        private_key=merchant_keys()[1],
        sandbox=sandbox,
    )
    fields.update(overrides)
    return NagadConfig(**fields)


def _open(body):
    """Decrypt the request's sensitiveData the way the gateway would and check the signature."""
    plain = crypto.decrypt_with_private_key(body["sensitiveData"], gateway_keys()[1])
    assert crypto.verify_signature(plain, body["signature"], merchant_keys()[0])
    return json.loads(plain)


@override_settings(NAGAD_SANDBOX_BASE_URL=SANDBOX, NAGAD_PRODUCTION_BASE_URL=PRODUCTION, NAGAD_TIMEOUT=12)
class InitializeTests(SimpleTestCase):
    def test_posts_encrypted_and_signed_payload(self):
        reply = FakeResponse({"paymentReferenceId": "REF123", "sensitiveData": "x", "signature": "y"})
        with patch("payments.integrations.nagad.requests.post", return_value=reply) as post:
            result = NagadClient(_config(), client_ip="203.0.113.9").initialize(Decimal("500.00"), "ORD1")

        url = post.call_args.args[0]
        self.assertEqual(url, f"{SANDBOX}/check-out/initialize/{MERCHANT_ID}/ORD1")
        headers = post.call_args.kwargs["headers"]
        self.assertEqual(headers["X-KM-IP-V4"], "203.0.113.9")
        self.assertEqual(headers["X-KM-Client-Type"], "PC_WEB")
        self.assertEqual(headers["X-KM-Api-Version"], "v-0.2.0")
        self.assertEqual(post.call_args.kwargs["timeout"], 12)

        body = post.call_args.kwargs["json"]
        self.assertRegex(body["dateTime"], r"^\d{14}$")
        sensitive = _open(body)
        self.assertEqual(
            sensitive,
            {"merchantId": MERCHANT_ID, "datetime": body["dateTime"], "orderId": "ORD1", "challenge": result["challenge"]},
        )
        self.assertEqual(len(result["challenge"]), 40)
        self.assertEqual(result["paymentReferenceId"], "REF123")

    def test_reason_raises_gateway_error(self):
        reply = FakeResponse({"reason": "Invalid merchant", "message": "x"}, status_code=400)
        with patch("payments.integrations.nagad.requests.post", return_value=reply):
            with self.assertRaises(GatewayError) as cm:
                NagadClient(_config()).initialize(100, "ORD1")
        self.assertEqual(cm.exception.message, "Invalid merchant")

    def test_error_status_rejected_even_with_reference(self):
        reply = FakeResponse({"paymentReferenceId": "REF123"}, status_code=500)
        with patch("payments.integrations.nagad.requests.post", return_value=reply):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).initialize(100, "ORD1")

    def test_missing_reference_raises(self):
        with patch("payments.integrations.nagad.requests.post", return_value=FakeResponse({"status": "ok"})):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).initialize(100, "ORD1")

    def test_encrypted_reply_is_opened(self):
        blob = crypto.encrypt_with_public_key(
            json.dumps({"paymentReferenceId": "REF-SEALED", "challenge": "gatewaychallenge"}), merchant_keys()[0]
        )
        reply = FakeResponse({"sensitiveData": blob, "signature": "sig"})
        with patch("payments.integrations.nagad.requests.post", return_value=reply):
            result = NagadClient(_config()).initialize(100, "ORD1")
        self.assertEqual(result["paymentReferenceId"], "REF-SEALED")
        # our own challenge wins over anything echoed back
        self.assertNotEqual(result["challenge"], "gatewaychallenge")

    def test_unreadable_encrypted_reply_raises(self):
        reply = FakeResponse({"sensitiveData": "bm9wZQ==", "signature": "sig"})
        with patch("payments.integrations.nagad.requests.post", return_value=reply):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).initialize(100, "ORD1")

    def test_non_json_reply_raises(self):
        reply = FakeResponse(None, status_code=502, text="<html>Bad gateway</html>")
        with patch("payments.integrations.nagad.requests.post", return_value=reply):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).initialize(100, "ORD1")

    def test_network_failure_raises(self):
        with patch("payments.integrations.nagad.requests.post", side_effect=requests.Timeout("timed out")):
            with self.assertRaises(GatewayError) as cm:
                NagadClient(_config()).initialize(100, "ORD1")
        self.assertIn("Gateway request failed", cm.exception.message)

    def test_bad_keys_fail_before_network(self):
        with patch("payments.integrations.nagad.requests.post") as post:
            with self.assertRaises(CryptoError):
                NagadClient(_config(public_key="garbage")).initialize(100, "ORD1")
            with self.assertRaises(CryptoError):
                NagadClient(_config(private_key="garbage")).initialize(100, "ORD1")
        post.assert_not_called()

    def test_production_base_url(self):
        with patch("payments.integrations.nagad.requests.post", return_value=FakeResponse({"paymentReferenceId": "R"})) as post:
            NagadClient(_config(sandbox=False)).initialize(100, "ORD1")
        self.assertTrue(post.call_args.args[0].startswith(PRODUCTION + "/"))


@override_settings(NAGAD_SANDBOX_BASE_URL=SANDBOX, NAGAD_PRODUCTION_BASE_URL=PRODUCTION)
class CompleteTests(SimpleTestCase):
    def test_posts_amount_currency_and_callback(self):
        reply = FakeResponse({"status": "Success", "callBackUrl": "https://gateway.example/pay/REF123"})
        with patch("payments.integrations.nagad.requests.post", return_value=reply) as post:
            result = NagadClient(_config()).complete("REF123", "c" * 40, 500, "ORD1", "https://shop.example/cb")

        self.assertEqual(post.call_args.args[0], f"{SANDBOX}/check-out/complete/REF123")
        body = post.call_args.kwargs["json"]
        self.assertEqual(body["merchantCallbackURL"], "https://shop.example/cb")
        self.assertRegex(body["dateTime"], r"^\d{14}$")
        self.assertEqual(
            _open(body),
            {"merchantId": MERCHANT_ID, "orderId": "ORD1", "currencyCode": "050", "amount": "500.00", "challenge": "c" * 40},
        )
        self.assertEqual(result["callBackUrl"], "https://gateway.example/pay/REF123")

    def test_missing_callback_url_raises(self):
        with patch("payments.integrations.nagad.requests.post", return_value=FakeResponse({"status": "Success"})):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).complete("REF123", "c", 1, "ORD1", "https://shop.example/cb")

    def test_reason_raises(self):
        with patch("payments.integrations.nagad.requests.post", return_value=FakeResponse({"reason": "Challenge mismatch"})):
            with self.assertRaises(GatewayError) as cm:
                NagadClient(_config()).complete("REF123", "c", 1, "ORD1", "https://shop.example/cb")
        self.assertEqual(cm.exception.message, "Challenge mismatch")


@override_settings(NAGAD_SANDBOX_BASE_URL=SANDBOX, NAGAD_PRODUCTION_BASE_URL=PRODUCTION)
class VerifyTests(SimpleTestCase):
    def test_gets_verify_endpoint(self):
        reply = FakeResponse({"status": "Success", "issuerPaymentRefNo": "ISS1"})
        with patch("payments.integrations.nagad.requests.get", return_value=reply) as get:
            result = NagadClient(_config()).verify("REF123")
        self.assertEqual(get.call_args.args[0], f"{SANDBOX}/verify/payment/REF123")
        self.assertEqual(get.call_args.kwargs["headers"]["X-KM-Client-Type"], "PC_WEB")
        self.assertEqual(result, {"status": "Success", "issuerPaymentRefNo": "ISS1"})

    def test_server_error_raises_with_gateway_message(self):
        reply = FakeResponse({"message": "Service unavailable"}, status_code=503)
        with patch("payments.integrations.nagad.requests.get", return_value=reply):
            with self.assertRaises(GatewayError) as cm:
                NagadClient(_config()).verify("REF123")
        self.assertEqual(cm.exception.message, "Service unavailable")

    def test_error_status_without_detail(self):
        with patch("payments.integrations.nagad.requests.get", return_value=FakeResponse({}, status_code=502)):
            with self.assertRaises(GatewayError) as cm:
                NagadClient(_config()).verify("REF123")
        self.assertEqual(cm.exception.message, "Nagad verify failed (HTTP 502)")

    def test_list_payload_raises(self):
        with patch("payments.integrations.nagad.requests.get", return_value=FakeResponse(["x"])):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).verify("REF123")

    def test_connection_error_raises(self):
        with patch("payments.integrations.nagad.requests.get", side_effect=requests.ConnectionError("refused")):
            with self.assertRaises(GatewayError):
                NagadClient(_config()).verify("REF123")


class EnvironmentTests(SimpleTestCase):
    @override_settings(NAGAD_ENVIRONMENT="production")
    def test_sandbox_credentials_rejected_in_production(self):
        with self.assertRaises(GatewayError):
            NagadClient(_config(sandbox=True))

    @override_settings(NAGAD_ENVIRONMENT="sandbox")
    def test_production_credentials_rejected_in_sandbox(self):
        with self.assertRaises(GatewayError):
            NagadClient(_config(sandbox=False))

    @override_settings(NAGAD_ENVIRONMENT="production")
    def test_matching_environment_accepted(self):
        self.assertFalse(NagadClient(_config(sandbox=False)).config.sandbox)
