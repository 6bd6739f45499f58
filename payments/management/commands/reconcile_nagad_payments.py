import time
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from payments.config import load_nagad_config
from payments.errors import GatewayError, PaymentError
from payments.integrations.nagad import NagadClient
from payments.models import PaymentTransaction
from payments.services import GATEWAY_NAGAD, verify_payment


class Command(BaseCommand):
    help = "Poll Nagad verify for pending payment transactions and update the ledger and orders"

    def add_arguments(self, parser):
        parser.add_argument("--max", type=int, default=50)
        parser.add_argument("--sleep", type=float, default=0.5)
        parser.add_argument("--older-than-minutes", type=int, default=5)

    def handle(self, *args, **opts):
        cutoff = timezone.now() - timedelta(minutes=opts["older_than_minutes"])
        qs = (
            PaymentTransaction.objects.filter(
                gateway_code=GATEWAY_NAGAD,
                status=PaymentTransaction.Status.PENDING,
                created_at__lt=cutoff,
            )
            .exclude(transaction_id__isnull=True)
            .order_by("created_at")[: opts["max"]]
        )
        pending = list(qs)
        if not pending:
            self.stdout.write(self.style.SUCCESS("No pending Nagad payments to reconcile."))
            return

        try:
            client = NagadClient(load_nagad_config())
        except PaymentError as e:
            raise CommandError(e.message)

        for i, txn in enumerate(pending):
            try:
                result, updated = verify_payment(client, txn.transaction_id)
                status = updated.status if updated else "unknown"
                self.stdout.write(self.style.SUCCESS(
                    f"{txn.transaction_id} -> {status} (gateway: {result.get('status') or 'n/a'})"
                ))
            except GatewayError as e:
                self.stdout.write(self.style.WARNING(f"{txn.transaction_id}: {e.message}"))
            if opts["sleep"] and i < len(pending) - 1:
                time.sleep(opts["sleep"])
