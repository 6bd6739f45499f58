import logging

from django.db import transaction
from django.utils import timezone

from .errors import Forbidden
from .models import Order, PaymentTransaction

logger = logging.getLogger(__name__)

GATEWAY_NAGAD = "nagad"
SUCCESS = "Success"


@transaction.atomic
def record_initiated_payment(order: Order, amount, init: dict, complete: dict) -> PaymentTransaction:
    return PaymentTransaction.objects.create(
        order=order,
        gateway_code=GATEWAY_NAGAD,
        transaction_id=init["paymentReferenceId"],
        amount=amount,
        currency="BDT",
        status=PaymentTransaction.Status.PENDING,
        gateway_response={"init": init, "complete": complete},
    )


def start_payment(client, order: Order, amount, callback_url: str) -> tuple[PaymentTransaction, dict]:
    """Run initialize -> complete and write the pending ledger row.

    The challenge only lives in this function's scope; a failure in either
    gateway step raises before anything is written, leaving the order
    pending so the shopper can retry.
    """
    init = client.initialize(amount, str(order.pk))
    complete = client.complete(init["paymentReferenceId"], init["challenge"], amount, str(order.pk), callback_url)
    txn = record_initiated_payment(order, amount, init, complete)
    logger.info("Nagad payment %s started for order %s", txn.transaction_id, order.pk)
    return txn, complete


def find_transaction(payment_reference_id: str) -> PaymentTransaction | None:
    return (
        PaymentTransaction.objects.filter(gateway_code=GATEWAY_NAGAD, transaction_id=payment_reference_id)
        .order_by("created_at")
        .first()
    )


def ensure_transaction_belongs_to(payment_reference_id: str, order: Order) -> None:
    txn = find_transaction(payment_reference_id)
    if txn is not None and txn.order_id is not None and txn.order_id != order.pk:
        logger.warning("Reference %s belongs to order %s, not %s", payment_reference_id, txn.order_id, order.pk)
        raise Forbidden("Unauthorized access to order")


def confirm_order(order_id, issuer_reference) -> bool:
    """Mark the order confirmed with the issuer's reference.

    Only pending or already-confirmed orders are touched, so repeating the
    call is harmless and an order that has moved on to fulfilment is never
    pulled back.
    """
    updated = Order.objects.filter(
        pk=order_id, status__in=[Order.Status.PENDING, Order.Status.CONFIRMED]
    ).update(
        status=Order.Status.CONFIRMED,
        payment_transaction_id=issuer_reference,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.warning("Order %s not confirmed: missing or no longer pending", order_id)
    return bool(updated)


@transaction.atomic
def apply_verification(payment_reference_id: str, result: dict) -> PaymentTransaction | None:
    """Write a gateway verify result into the ledger and, on success, the order."""
    status = (
        PaymentTransaction.Status.COMPLETED
        if result.get("status") == SUCCESS
        else PaymentTransaction.Status.FAILED
    )
    txn = (
        PaymentTransaction.objects.select_for_update()
        .filter(gateway_code=GATEWAY_NAGAD, transaction_id=payment_reference_id)
        .order_by("created_at")
        .first()
    )
    if txn is None:
        logger.warning("No ledger row for Nagad reference %s", payment_reference_id)
        return None

    if status == PaymentTransaction.Status.FAILED and txn.status == PaymentTransaction.Status.COMPLETED:
        # completed is terminal; a late failure report does not undo it
        logger.warning("Ignoring %s verify result for completed reference %s", result.get("status"), payment_reference_id)
    else:
        response = dict(txn.gateway_response or {})
        response["verify"] = result
        txn.gateway_response = response
        if status == PaymentTransaction.Status.COMPLETED:
            if txn.status != PaymentTransaction.Status.COMPLETED:
                txn.completed_at = timezone.now()
            txn.error_message = None
        else:
            txn.completed_at = None
            txn.error_message = str(result.get("message") or result.get("status") or "Payment failed")
        txn.status = status
        txn.save(update_fields=["status", "gateway_response", "completed_at", "error_message", "updated_at"])

    if status == PaymentTransaction.Status.COMPLETED and txn.order_id:
        confirm_order(txn.order_id, result.get("issuerPaymentRefNo"))
    return txn


def verify_payment(client, payment_reference_id: str) -> tuple[dict, PaymentTransaction | None]:
    result = client.verify(payment_reference_id)
    return result, apply_verification(payment_reference_id, result)
