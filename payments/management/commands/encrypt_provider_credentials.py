from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from payments.config import SECRET_FIELDS
from payments.credentials import encrypt_credential, is_encrypted
from payments.models import PaymentProvider


class Command(BaseCommand):
    help = "Encrypt plaintext provider secrets (public/private keys) in place"

    def add_arguments(self, parser):
        parser.add_argument("--provider-type", default=PaymentProvider.ProviderType.NAGAD)

    def handle(self, *args, **opts):
        secret = getattr(settings, "CREDENTIALS_ENCRYPTION_KEY", "")
        if not secret:
            raise CommandError("CREDENTIALS_ENCRYPTION_KEY is not set")

        changed = 0
        for provider in PaymentProvider.objects.filter(provider_type=opts["provider_type"]):
            config = dict(provider.config or {})
            fields = [f for f in SECRET_FIELDS if config.get(f) and not is_encrypted(config[f])]
            if not fields:
                continue
            for f in fields:
                config[f] = encrypt_credential(config[f], secret)
            provider.config = config
            provider.save(update_fields=["config", "updated_at"])
            changed += 1
            self.stdout.write(self.style.SUCCESS(f"Encrypted {', '.join(fields)} for {provider.name}"))

        self.stdout.write(self.style.SUCCESS(f"Updated {changed} provider(s)."))
