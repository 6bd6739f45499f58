import base64, binascii, logging, re

from Crypto.Cipher import PKCS1_OAEP
from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from .errors import CryptoError

logger = logging.getLogger(__name__)

_PEM_ARMOR = re.compile(r"-----(BEGIN|END) [A-Z ]+-----")


def _der_from_pem(pem: str) -> bytes:
    """Strip PEM armor and whitespace and return the decoded key body.

    Keys are stored in provider configuration, not in files, so both
    armored PEM and the bare base64 body are accepted.
    """
    if not pem or not str(pem).strip():
        raise CryptoError("Missing key material")
    body = re.sub(r"\s", "", _PEM_ARMOR.sub("", str(pem)))
    try:
        return base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        raise CryptoError("Key is not valid base64")


def _load_public(pem: str) -> RSA.RsaKey:
    try:
        key = RSA.import_key(_der_from_pem(pem))
    except (ValueError, IndexError, TypeError):
        raise CryptoError("Invalid public key")
    if key.has_private():
        raise CryptoError("Expected a public key")
    return key


def _load_private(pem: str) -> RSA.RsaKey:
    try:
        key = RSA.import_key(_der_from_pem(pem))
    except (ValueError, IndexError, TypeError):
        raise CryptoError("Invalid private key")
    if not key.has_private():
        raise CryptoError("Expected a private key")
    return key


def encrypt_with_public_key(plaintext: str, public_key_pem: str) -> str:
    """RSA-OAEP (SHA-256) encrypt ``plaintext`` and return base64 ciphertext."""
    key = _load_public(public_key_pem)
    try:
        encrypted = PKCS1_OAEP.new(key, hashAlgo=SHA256).encrypt(plaintext.encode("utf-8"))
    except ValueError as e:
        # plaintext longer than the key allows
        logger.error("RSA encryption failed: %s", e)
        raise CryptoError("Failed to encrypt data")
    return base64.b64encode(encrypted).decode("ascii")


def decrypt_with_private_key(ciphertext_b64: str, private_key_pem: str) -> str:
    key = _load_private(private_key_pem)
    try:
        decrypted = PKCS1_OAEP.new(key, hashAlgo=SHA256).decrypt(base64.b64decode(ciphertext_b64))
    except (ValueError, TypeError, binascii.Error) as e:
        logger.error("RSA decryption failed: %s", e)
        raise CryptoError("Failed to decrypt data")
    return decrypted.decode("utf-8")


def sign(plaintext: str, private_key_pem: str) -> str:
    """RSASSA-PKCS1-v1_5 (SHA-256) signature of ``plaintext``, base64 encoded."""
    key = _load_private(private_key_pem)
    try:
        signature = pkcs1_15.new(key).sign(SHA256.new(plaintext.encode("utf-8")))
    except (ValueError, TypeError) as e:
        logger.error("RSA signing failed: %s", e)
        raise CryptoError("Failed to sign data")
    return base64.b64encode(signature).decode("ascii")


def verify_signature(plaintext: str, signature_b64: str, public_key_pem: str) -> bool:
    key = _load_public(public_key_pem)
    try:
        pkcs1_15.new(key).verify(SHA256.new(plaintext.encode("utf-8")), base64.b64decode(signature_b64))
    except (ValueError, TypeError, binascii.Error):
        return False
    return True
