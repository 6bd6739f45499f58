"""At-rest encryption for provider secrets.

Values look like ``enc:<base64(salt || iv || ciphertext || tag)>``: a
16-byte PBKDF2 salt, a 12-byte GCM nonce, then the AES-256-GCM output
with its 16-byte tag appended. Unprefixed values are plaintext and are
passed through untouched, so rows written before encryption was turned
on keep working.
"""
import base64, binascii, logging

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2
from Crypto.Random import get_random_bytes

from .errors import CryptoError

logger = logging.getLogger(__name__)

ENCRYPTION_PREFIX = "enc:"
SALT_BYTES = 16
IV_BYTES = 12
TAG_BYTES = 16
ITERATIONS = 100_000


def _derive_key(secret: str, salt: bytes) -> bytes:
    return PBKDF2(secret.encode("utf-8"), salt, dkLen=32, count=ITERATIONS, hmac_hash_module=SHA256)


def is_encrypted(value) -> bool:
    return isinstance(value, str) and value.startswith(ENCRYPTION_PREFIX)


def encrypt_credential(plaintext: str, secret: str) -> str:
    if not plaintext or not plaintext.strip() or is_encrypted(plaintext):
        return plaintext
    if not secret:
        raise CryptoError("Credential encryption key is not configured")

    salt = get_random_bytes(SALT_BYTES)
    iv = get_random_bytes(IV_BYTES)
    cipher = AES.new(_derive_key(secret, salt), AES.MODE_GCM, nonce=iv)
    ciphertext, tag = cipher.encrypt_and_digest(plaintext.encode("utf-8"))
    return ENCRYPTION_PREFIX + base64.b64encode(salt + iv + ciphertext + tag).decode("ascii")


def decrypt_credential(value: str, secret: str) -> str:
    if not is_encrypted(value):
        return value
    if not secret:
        raise CryptoError("Credential encryption key is not configured")

    try:
        combined = base64.b64decode(value[len(ENCRYPTION_PREFIX):])
    except (binascii.Error, ValueError):
        raise CryptoError("Malformed encrypted credential")
    if len(combined) < SALT_BYTES + IV_BYTES + TAG_BYTES:
        raise CryptoError("Malformed encrypted credential")

    salt = combined[:SALT_BYTES]
    iv = combined[SALT_BYTES:SALT_BYTES + IV_BYTES]
    ciphertext, tag = combined[SALT_BYTES + IV_BYTES:-TAG_BYTES], combined[-TAG_BYTES:]
    cipher = AES.new(_derive_key(secret, salt), AES.MODE_GCM, nonce=iv)
    try:
        return cipher.decrypt_and_verify(ciphertext, tag).decode("utf-8")
    except ValueError:
        raise CryptoError("Failed to decrypt credential")


def decrypt_config_credentials(config: dict | None, fields, secret: str) -> dict:
    result = dict(config or {})
    for field in fields:
        if isinstance(result.get(field), str) and result[field]:
            result[field] = decrypt_credential(result[field], secret)
    return result
