"""Base64 helpers shared by the VAPID signer and the E2E module."""
import base64


def b64url_encode(data: bytes) -> str:
    """URL-safe Base64 without '=' padding (VAPID / JWK form)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    # Put back the padding browsers strip off
    pad_len = (-len(data)) % 4
    return base64.urlsafe_b64decode(data + "=" * pad_len)


def b64_encode(data: bytes) -> str:
    """Standard padded Base64 (directory keys, encrypted payloads)."""
    return base64.b64encode(data).decode("ascii")


def b64_decode(data: str) -> bytes:
    return base64.b64decode(data, validate=True)
