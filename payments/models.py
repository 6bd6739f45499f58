import uuid

from django.db import models
from django.db.models import Q


class PaymentProvider(models.Model):
    class ProviderType(models.TextChoices):
        NAGAD = "nagad", "Nagad"
        BKASH = "bkash", "bKash"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    provider_type = models.CharField(max_length=32, choices=ProviderType.choices, db_index=True)
    store_id = models.CharField(max_length=100, blank=True, null=True)  # merchant id
    config = models.JSONField(blank=True, null=True)  # public_key / private_key
    is_sandbox = models.BooleanField(null=True, default=True)
    is_active = models.BooleanField(null=True, default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_providers"
        constraints = [
            models.UniqueConstraint(
                fields=["provider_type"],
                condition=Q(is_active=True),
                name="one_active_provider_per_type",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.provider_type}{', sandbox' if self.is_sandbox else ''})"


class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        PROCESSING = "processing", "Processing"
        SHIPPED = "shipped", "Shipped"
        DELIVERED = "delivered", "Delivered"
        CANCELLED = "cancelled", "Cancelled"

    class PaymentMethod(models.TextChoices):
        COD = "cod", "Cash on delivery"
        BKASH = "bkash", "bKash"
        NAGAD = "nagad", "Nagad"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.CharField(max_length=64, blank=True, null=True, db_index=True)  # identity subject
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, null=True)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, default=PaymentMethod.COD)
    payment_transaction_id = models.CharField(max_length=128, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "orders"

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    def __str__(self):
        return f"{self.pk} ({self.status})"


class PaymentTransaction(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        Order, on_delete=models.SET_NULL, null=True, blank=True, related_name="transactions"
    )
    gateway_code = models.CharField(max_length=32)
    transaction_id = models.CharField(max_length=128, blank=True, null=True, db_index=True)  # gateway reference
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=8, default="BDT", null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)
    gateway_response = models.JSONField(blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payment_transactions"

    def __str__(self):
        return f"{self.gateway_code}:{self.transaction_id} {self.status} ৳{self.amount}"
