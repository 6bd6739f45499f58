import json, logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from urllib.parse import urlencode

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.views.decorators.csrf import csrf_exempt

from .auth import authorize_order
from .config import load_nagad_config
from .errors import PaymentError, ValidationError
from .integrations.nagad import NagadClient
from .models import PaymentTransaction
from .services import SUCCESS, ensure_transaction_belongs_to, find_transaction, start_payment, verify_payment
from .utils import client_ip

logger = logging.getLogger(__name__)


class Action(Enum):
    CREATE = "create"
    VERIFY = "verify"
    CALLBACK = "callback"


ALLOWED_METHODS = {
    Action.CREATE: {"POST"},
    Action.VERIFY: {"POST"},
    Action.CALLBACK: {"GET"},
}


def resolve_action(name: str, method: str) -> Action | None:
    try:
        action = Action(name)
    except ValueError:
        return None
    return action if method in ALLOWED_METHODS[action] else None


def _json_body(request) -> dict:
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body


def _amount(raw) -> Decimal:
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Invalid amount")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Invalid amount")
    return amount


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({"success": False, "error": message}, status=status)


def _client(request) -> NagadClient:
    return NagadClient(load_nagad_config(), client_ip=client_ip(request))


def _storefront_url(request, path: str, **params) -> str:
    origin = getattr(settings, "STOREFRONT_URL", "") or f"{request.scheme}://{request.get_host()}"
    return f"{origin}{path}?{urlencode(params)}"


def create_payment(request):
    body = _json_body(request)
    if not (body.get("amount") and body.get("orderId") and body.get("callbackUrl")):
        raise ValidationError("Missing required fields")
    amount = _amount(body["amount"])

    _, order = authorize_order(request, body["orderId"], require_pending=True)
    if amount != order.total:
        raise ValidationError("Amount does not match order total")

    txn, complete = start_payment(_client(request), order, amount, body["callbackUrl"])
    return JsonResponse({
        "success": True,
        "paymentReferenceId": txn.transaction_id,
        "callBackUrl": complete["callBackUrl"],
    })


def verify(request):
    body = _json_body(request)
    reference = body.get("paymentReferenceId")
    if not reference:
        raise ValidationError("Missing paymentReferenceId")

    if body.get("orderId"):
        # re-checking an already confirmed order is allowed
        _, order = authorize_order(request, body["orderId"], require_pending=False)
        ensure_transaction_belongs_to(reference, order)

    result, _ = verify_payment(_client(request), reference)
    return JsonResponse({"success": result.get("status") == SUCCESS, "data": result})


def callback(request):
    """Browser redirect from the gateway after the shopper approves or aborts.

    No bearer token arrives here; the outcome is taken from our own verify
    call, never from the ``status`` query parameter. Always answers with a
    redirect.
    """
    reference = request.GET.get("payment_ref_id")
    logger.info("Nagad callback received: ref=%s status=%s", reference, request.GET.get("status"))
    payment_error = _storefront_url(request, "/checkout", error="payment_error")
    if not reference:
        return redirect(payment_error)

    try:
        if find_transaction(reference) is None:
            logger.warning("Nagad callback for unknown reference %s", reference)
            return redirect(payment_error)
        result, txn = verify_payment(_client(request), reference)
    except Exception:
        logger.exception("Nagad callback processing failed for %s", reference)
        return redirect(payment_error)

    if txn is not None and txn.order_id and txn.status == PaymentTransaction.Status.COMPLETED:
        return redirect(_storefront_url(request, "/order-success", orderId=txn.order_id))
    return redirect(_storefront_url(request, "/checkout", error="payment_failed"))


HANDLERS = {
    Action.CREATE: create_payment,
    Action.VERIFY: verify,
    Action.CALLBACK: callback,
}


@csrf_exempt
def nagad_payment_view(request, action: str = ""):
    resolved = resolve_action(action, request.method)
    if resolved is None:
        return _error("Invalid action", 400)

    try:
        return HANDLERS[resolved](request)
    except PaymentError as e:
        logger.warning("Nagad %s failed: %s", resolved.value, e.message)
        return _error(e.message, e.status_code)
    except Exception:
        logger.exception("Nagad payment error")
        return _error("Payment processing failed", 500)
