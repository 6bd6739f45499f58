from django.contrib import admin
from .models import Order, PaymentProvider, PaymentTransaction

@admin.register(PaymentProvider)
class PaymentProviderAdmin(admin.ModelAdmin):
    list_display = ("name", "provider_type", "store_id", "is_sandbox", "is_active", "updated_at")
    search_fields = ("name", "store_id")
    list_filter = ("provider_type", "is_sandbox", "is_active")
    readonly_fields = ("created_at", "updated_at")

@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user_id", "status", "total", "payment_method", "payment_transaction_id", "created_at")
    search_fields = ("id", "user_id", "payment_transaction_id")
    list_filter = ("status", "payment_method", "created_at")
    readonly_fields = ("created_at", "updated_at")

@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "gateway_code", "order", "amount", "currency", "status", "completed_at", "created_at")
    search_fields = ("transaction_id", "order__id")
    list_filter = ("gateway_code", "status", "created_at")
    readonly_fields = ("gateway_response", "error_message", "completed_at", "created_at", "updated_at")
