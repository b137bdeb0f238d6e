"""
P-256 key conversions between `cryptography` objects and their wire forms:
raw uncompressed points (0x04 || X || Y) and JWK dicts (kty=EC, crv=P-256).
"""
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .encoding import b64url_decode, b64url_encode

CURVE = ec.SECP256R1()
COORD_SIZE = 32
RAW_POINT_SIZE = 1 + 2 * COORD_SIZE
UNCOMPRESSED_MARKER = 0x04


class InvalidPublicKeyError(ValueError):
    """Value is not a 65-byte uncompressed P-256 point."""


def generate_private_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(CURVE)


def public_key_to_raw(public_key: ec.EllipticCurvePublicKey) -> bytes:
    return public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )


def public_key_from_raw(raw: bytes) -> ec.EllipticCurvePublicKey:
    if len(raw) != RAW_POINT_SIZE or raw[0] != UNCOMPRESSED_MARKER:
        raise InvalidPublicKeyError(f"Expected {RAW_POINT_SIZE}-byte uncompressed point, got {len(raw)} bytes")
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(CURVE, raw)
    except ValueError as e:
        raise InvalidPublicKeyError(str(e)) from e


def split_raw_point(raw: bytes) -> tuple[bytes, bytes]:
    """Raw point -> (X, Y); the leading 0x04 marker is skipped."""
    if len(raw) != RAW_POINT_SIZE or raw[0] != UNCOMPRESSED_MARKER:
        raise InvalidPublicKeyError(f"Expected {RAW_POINT_SIZE}-byte uncompressed point, got {len(raw)} bytes")
    return raw[1 : 1 + COORD_SIZE], raw[1 + COORD_SIZE :]


def private_scalar(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    return private_key.private_numbers().private_value.to_bytes(COORD_SIZE, "big")


def private_key_to_jwk(private_key: ec.EllipticCurvePrivateKey) -> dict:
    x, y = split_raw_point(public_key_to_raw(private_key.public_key()))
    return {
        "kty": "EC",
        "crv": "P-256",
        "x": b64url_encode(x),
        "y": b64url_encode(y),
        "d": b64url_encode(private_scalar(private_key)),
    }


def private_key_from_jwk(jwk: dict) -> ec.EllipticCurvePrivateKey:
    """
    Import a private JWK. Raises ValueError when the shape is wrong or
    when (x, y) is not the public point of d.
    """
    if jwk.get("kty") != "EC" or jwk.get("crv") != "P-256":
        raise ValueError("JWK must be kty=EC, crv=P-256")
    try:
        x = int.from_bytes(b64url_decode(jwk["x"]), "big")
        y = int.from_bytes(b64url_decode(jwk["y"]), "big")
        d = int.from_bytes(b64url_decode(jwk["d"]), "big")
    except KeyError as e:
        raise ValueError(f"JWK is missing member {e}") from e
    public_numbers = ec.EllipticCurvePublicNumbers(x, y, CURVE)
    return ec.EllipticCurvePrivateNumbers(d, public_numbers).private_key()
