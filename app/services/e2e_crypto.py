"""
End-to-end message encryption: ECDH (P-256) key agreement + AES-256-GCM.

Payload format: base64(IV[12] || ciphertext || tag[16]).
The raw 32-byte ECDH secret is used directly as the AES key, so both
correspondents derive the same key from their own private key and the
other's public key.
"""
import logging
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.core.ec_keys import (
    generate_private_key,
    private_key_from_jwk,
    private_key_to_jwk,
    public_key_from_raw,
    public_key_to_raw,
)
from app.core.encoding import b64_decode, b64_encode

logger = logging.getLogger(__name__)

IV_SIZE = 12
DECRYPT_FAILED_PLACEHOLDER = "[Unable to decrypt]"


class DecryptionError(Exception):
    """Payload could not be decrypted (corrupt, wrong key or tampered)."""


@dataclass(frozen=True)
class KeyPair:
    public_key: str  # raw point, standard base64
    private_key_jwk: dict


def generate_key_pair() -> KeyPair:
    private_key = generate_private_key()
    return KeyPair(
        public_key=b64_encode(public_key_to_raw(private_key.public_key())),
        private_key_jwk=private_key_to_jwk(private_key),
    )


def import_public_key(public_key_b64: str) -> ec.EllipticCurvePublicKey:
    """Raises InvalidPublicKeyError (a ValueError) for anything but a P-256 point."""
    return public_key_from_raw(b64_decode(public_key_b64))


def derive_shared_key(private_key_jwk: dict, peer_public_key_b64: str) -> AESGCM:
    private_key = private_key_from_jwk(private_key_jwk)
    peer_key = import_public_key(peer_public_key_b64)
    shared_bits = private_key.exchange(ec.ECDH(), peer_key)
    return AESGCM(shared_bits)


def encrypt_message(plaintext: str, private_key_jwk: dict, peer_public_key_b64: str) -> str:
    key = derive_shared_key(private_key_jwk, peer_public_key_b64)
    # Fresh IV every call; never reuse one under the same key
    iv = os.urandom(IV_SIZE)
    ciphertext = key.encrypt(iv, plaintext.encode("utf-8"), None)
    return b64_encode(iv + ciphertext)


def decrypt_message(payload_b64: str, private_key_jwk: dict, peer_public_key_b64: str) -> str:
    """Inverse of encrypt_message. Raises DecryptionError on any failure."""
    try:
        key = derive_shared_key(private_key_jwk, peer_public_key_b64)
        combined = b64_decode(payload_b64)
        iv, ciphertext = combined[:IV_SIZE], combined[IV_SIZE:]
        return key.decrypt(iv, ciphertext, None).decode("utf-8")
    except (InvalidTag, ValueError, TypeError) as e:
        raise DecryptionError(f"{type(e).__name__}: {e}") from e


def decrypt_received(payload_b64: str, private_key_jwk: dict, peer_public_key_b64: str) -> str:
    """Display-side decrypt: failures become DECRYPT_FAILED_PLACEHOLDER."""
    try:
        return decrypt_message(payload_b64, private_key_jwk, peer_public_key_b64)
    except DecryptionError as e:
        logger.info("Message could not be decrypted: %s", e)
        return DECRYPT_FAILED_PLACEHOLDER
