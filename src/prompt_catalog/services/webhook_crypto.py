"""Feishu event subscription helpers: signature, decryption, event typing."""

import base64
import hashlib
import hmac
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

URL_VERIFICATION_TYPE = "url_verification"
BITABLE_RECORD_CHANGED = "drive.file.bitable_record_changed_v1"

IV_LENGTH = 16


def compute_signature(timestamp: str, nonce: str, encrypt_key: str, body: str | bytes) -> str:
    """Compute the Feishu request signature.

    Signature = hex(SHA256(timestamp + nonce + encrypt_key + body)).
    """
    raw_body = body.encode("utf-8") if isinstance(body, str) else body
    digest = hashlib.sha256((timestamp + nonce + encrypt_key).encode("utf-8") + raw_body)
    return digest.hexdigest()


def verify_signature(
    timestamp: str,
    nonce: str,
    body: str | bytes,
    signature: str,
    encrypt_key: str,
) -> bool:
    """Check a request signature in constant time."""
    expected = compute_signature(timestamp, nonce, encrypt_key, body)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def decrypt_event(encrypted: str, encrypt_key: str) -> str:
    """Decrypt an ``{"encrypt": ...}`` envelope.

    The payload is base64(IV[16] + AES-256-CBC ciphertext), the key is
    SHA256(encrypt_key) and the plaintext is PKCS7 padded.

    Raises:
        ValueError: If the payload is not valid base64, is too short, or the
            padding is wrong
    """
    key = hashlib.sha256(encrypt_key.encode("utf-8")).digest()
    data = base64.b64decode(encrypted, validate=True)
    if len(data) <= IV_LENGTH:
        raise ValueError("Encrypted payload is too short")

    iv, ciphertext = data[:IV_LENGTH], data[IV_LENGTH:]
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


def encrypt_event(plaintext: str, encrypt_key: str, iv: bytes) -> str:
    """Inverse of decrypt_event; used to build signed fixtures and local replays."""
    key = hashlib.sha256(encrypt_key.encode("utf-8")).digest()
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return base64.b64encode(iv + encryptor.update(padded) + encryptor.finalize()).decode("ascii")


def is_url_verification(payload: dict[str, Any]) -> bool:
    return payload.get("type") == URL_VERIFICATION_TYPE and bool(payload.get("challenge"))


def event_header(payload: dict[str, Any]) -> dict[str, Any]:
    """The v2 ``header`` object, or an empty dict when absent or malformed."""
    header = payload.get("header")
    return header if isinstance(header, dict) else {}


def is_bitable_record_changed(payload: dict[str, Any]) -> bool:
    header = event_header(payload)
    return header.get("event_type") == BITABLE_RECORD_CHANGED
