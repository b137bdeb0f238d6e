"""
VAPID assertion (RFC 8292): a fixed-shape ES256 JWT scoped to one push
service origin. Built by hand; header and claims never vary beyond aud/exp/sub.
"""
import json
import time
from urllib.parse import urlsplit

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from app.core.ec_keys import COORD_SIZE, private_key_from_jwk, split_raw_point
from app.core.encoding import b64url_decode, b64url_encode

VAPID_TOKEN_TTL_SECONDS = 12 * 60 * 60
JWT_HEADER = {"typ": "JWT", "alg": "ES256"}
_DEFAULT_PORTS = {"http": 80, "https": 443}


def audience_for(endpoint: str) -> str:
    """scheme://host of a push endpoint (default ports omitted)."""
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Push endpoint is not an absolute URL: {endpoint!r}")
    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"
    return f"{scheme}://{host}"


def _encode_segment(obj: dict) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def _signing_key(private_key_d: str, public_key_raw: str) -> ec.EllipticCurvePrivateKey:
    x, y = split_raw_point(b64url_decode(public_key_raw))
    jwk = {
        "kty": "EC",
        "crv": "P-256",
        "x": b64url_encode(x),
        "y": b64url_encode(y),
        "d": private_key_d,
    }
    return private_key_from_jwk(jwk)


def create_vapid_jwt(
    private_key_d: str,
    public_key_raw: str,
    audience: str,
    subject: str,
    *,
    now: int | None = None,
) -> str:
    """Signed `header.payload.signature`; valid for `audience` only, for 12 hours."""
    issued_at = int(time.time()) if now is None else now
    payload = {"aud": audience, "exp": issued_at + VAPID_TOKEN_TTL_SECONDS, "sub": subject}
    unsigned_token = f"{_encode_segment(JWT_HEADER)}.{_encode_segment(payload)}"

    key = _signing_key(private_key_d, public_key_raw)
    der_signature = key.sign(unsigned_token.encode("ascii"), ec.ECDSA(hashes.SHA256()))
    # JOSE wants fixed-width r || s, not DER
    r, s = decode_dss_signature(der_signature)
    signature = r.to_bytes(COORD_SIZE, "big") + s.to_bytes(COORD_SIZE, "big")
    return f"{unsigned_token}.{b64url_encode(signature)}"
