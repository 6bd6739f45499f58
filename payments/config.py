import logging
from dataclasses import dataclass

from django.conf import settings

from .credentials import decrypt_config_credentials
from .errors import ConfigError, CryptoError
from .models import PaymentProvider

logger = logging.getLogger(__name__)

SECRET_FIELDS = ("public_key", "private_key")


@dataclass(frozen=True)
class NagadConfig:
    merchant_id: str
    public_key: str  # gateway public key, PEM
    private_key: str  # merchant private key, PEM
    sandbox: bool = True

    def __repr__(self):
        return f"NagadConfig(merchant_id={self.merchant_id!r}, sandbox={self.sandbox})"

    @property
    def is_complete(self) -> bool:
        return bool(self.merchant_id and self.public_key and self.private_key)

    @classmethod
    def from_provider(cls, provider: PaymentProvider) -> "NagadConfig":
        try:
            secrets = decrypt_config_credentials(
                provider.config, SECRET_FIELDS, getattr(settings, "CREDENTIALS_ENCRYPTION_KEY", "")
            )
        except CryptoError as e:
            logger.error("Could not decrypt Nagad credentials for provider %s: %s", provider.pk, e)
            secrets = {}
        return cls(
            merchant_id=(provider.store_id or "").strip(),
            public_key=secrets.get("public_key") or "",
            private_key=secrets.get("private_key") or "",
            sandbox=True if provider.is_sandbox is None else bool(provider.is_sandbox),
        )


def active_provider(provider_type: str) -> PaymentProvider:
    try:
        return PaymentProvider.objects.get(provider_type=provider_type, is_active=True)
    except PaymentProvider.DoesNotExist:
        logger.error("No active %s provider configured", provider_type)
        raise ConfigError()
    except PaymentProvider.MultipleObjectsReturned:
        logger.error("More than one active %s provider configured", provider_type)
        raise ConfigError(f"Multiple active {provider_type} providers configured. Keep exactly one active.")


def load_nagad_config() -> NagadConfig:
    config = NagadConfig.from_provider(active_provider(PaymentProvider.ProviderType.NAGAD))
    if not config.is_complete:
        raise ConfigError("Nagad API credentials are not configured.")
    return config
