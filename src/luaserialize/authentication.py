"""Authenticate encoded data with digests, HMACs and signatures.

These functions treat encoded data as opaque bytes. They never look at the
records inside it, so they work equally well on any other byte string.

Examples
--------
>>> from luaserialize import dumps
>>> data = dumps({"n": 1})
>>> mac = hmac("sha256", b"secret", data)
>>> len(mac)
32
>>> b64decode(b64encode(mac)) == mac
True
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac as stdlib_hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.ed448 import (
    Ed448PrivateKey,
    Ed448PublicKey,
)
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from luaserialize._buffer import ReadableBinary
from luaserialize._errors import LuaSerializeError

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

PrivateKey: TypeAlias = Union[
    Ed25519PrivateKey, Ed448PrivateKey, RSAPrivateKey, ec.EllipticCurvePrivateKey
]
PublicKey: TypeAlias = Union[
    Ed25519PublicKey, Ed448PublicKey, RSAPublicKey, ec.EllipticCurvePublicKey
]

ED25519_KEY_LENGTH: Final = 32

PRIVATE_KEY_TYPES = (
    Ed25519PrivateKey,
    Ed448PrivateKey,
    RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
)
PUBLIC_KEY_TYPES = (
    Ed25519PublicKey,
    Ed448PublicKey,
    RSAPublicKey,
    ec.EllipticCurvePublicKey,
)


@dataclass(init=False)
class AuthenticationLuaSerializeError(LuaSerializeError, ValueError):
    pass


@dataclass(init=False)
class UnknownAlgorithmAuthenticationLuaSerializeError(AuthenticationLuaSerializeError):
    algorithm: str

    def __init__(self, message: str, *args: object, algorithm: str) -> None:
        super().__init__(message, *args)
        self.algorithm = algorithm


@dataclass(init=False)
class InvalidBase64AuthenticationLuaSerializeError(AuthenticationLuaSerializeError):
    pass


@dataclass(init=False)
class KeyFormatAuthenticationLuaSerializeError(AuthenticationLuaSerializeError):
    """An encoded key cannot be loaded."""


@dataclass(init=False)
class KeyLengthAuthenticationLuaSerializeError(KeyFormatAuthenticationLuaSerializeError):  # noqa: E501
    """An encoded key does not decode to the expected number of bytes."""

    expected_length: int
    actual_length: int

    def __init__(
        self, message: str, *args: object, expected_length: int, actual_length: int
    ) -> None:
        super().__init__(message, *args)
        self.expected_length = expected_length
        self.actual_length = actual_length


@dataclass(init=False)
class KeyTypeAuthenticationLuaSerializeError(AuthenticationLuaSerializeError):
    key_type: str

    def __init__(self, message: str, *args: object, key_type: str) -> None:
        super().__init__(message, *args)
        self.key_type = key_type


def digest(algorithm: str, data: ReadableBinary) -> bytes:
    """
    Hash `data` with a named algorithm, such as `"sha256"`.

    Any algorithm `hashlib.new()` supports with a fixed digest size can be used.

    >>> digest("sha256", b"").hex()[:16]
    'e3b0c44298fc1c14'
    """
    try:
        hasher = hashlib.new(algorithm, data)
    except (ValueError, TypeError) as e:
        raise UnknownAlgorithmAuthenticationLuaSerializeError(
            "Unknown hash algorithm", algorithm=algorithm
        ) from e
    if hasher.digest_size == 0:
        raise UnknownAlgorithmAuthenticationLuaSerializeError(
            "Hash algorithm does not have a fixed digest size", algorithm=algorithm
        )
    return hasher.digest()


def hmac(algorithm: str, key: ReadableBinary, data: ReadableBinary) -> bytes:
    """Calculate the HMAC of `data` using `key` and a named hash algorithm."""
    try:
        mac = stdlib_hmac.new(bytes(key), data, digestmod=algorithm)
    except (ValueError, TypeError) as e:
        raise UnknownAlgorithmAuthenticationLuaSerializeError(
            "Unknown hash algorithm", algorithm=algorithm
        ) from e
    return mac.digest()


def b64encode(data: ReadableBinary) -> bytes:
    return base64.b64encode(data)


def b64decode(data: ReadableBinary | str) -> bytes:
    """Decode standard base64, rejecting anything outside the base64 alphabet."""
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidBase64AuthenticationLuaSerializeError("Invalid base64") from e


def _rsa_padding() -> padding.PSS:
    return padding.PSS(
        mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH
    )


def sign(private_key: PrivateKey, data: ReadableBinary) -> bytes:
    """
    Sign `data` with a private key.

    Ed25519 and Ed448 keys sign the data directly. RSA keys use PSS padding
    and EC keys use ECDSA, both over a SHA-256 hash of the data.
    """
    data = bytes(data)
    if isinstance(private_key, (Ed25519PrivateKey, Ed448PrivateKey)):
        return private_key.sign(data)
    elif isinstance(private_key, RSAPrivateKey):
        return private_key.sign(data, _rsa_padding(), hashes.SHA256())
    elif isinstance(private_key, ec.EllipticCurvePrivateKey):
        return private_key.sign(data, ec.ECDSA(hashes.SHA256()))
    raise KeyTypeAuthenticationLuaSerializeError(
        "Private key type is not supported for signing",
        key_type=type(private_key).__name__,
    )


def verify(
    public_key: PublicKey, signature: ReadableBinary, data: ReadableBinary
) -> bool:
    """Check a signature made by `sign()`, returning `False` if it doesn't match."""
    signature, data = bytes(signature), bytes(data)
    try:
        if isinstance(public_key, (Ed25519PublicKey, Ed448PublicKey)):
            public_key.verify(signature, data)
        elif isinstance(public_key, RSAPublicKey):
            public_key.verify(signature, data, _rsa_padding(), hashes.SHA256())
        elif isinstance(public_key, ec.EllipticCurvePublicKey):
            public_key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
        else:
            raise KeyTypeAuthenticationLuaSerializeError(
                "Public key type is not supported for verifying",
                key_type=type(public_key).__name__,
            )
    except InvalidSignature:
        return False
    return True


def load_private_key_pem(
    pem: ReadableBinary, password: bytes | None = None
) -> PrivateKey:
    try:
        private_key = serialization.load_pem_private_key(
            bytes(pem), password=password
        )
    except (ValueError, TypeError) as e:
        raise KeyFormatAuthenticationLuaSerializeError(
            "Unable to load PEM private key"
        ) from e
    if not isinstance(private_key, PRIVATE_KEY_TYPES):
        raise KeyTypeAuthenticationLuaSerializeError(
            "Private key type is not supported for signing",
            key_type=type(private_key).__name__,
        )
    return private_key


def load_public_key_pem(pem: ReadableBinary) -> PublicKey:
    try:
        public_key = serialization.load_pem_public_key(bytes(pem))
    except ValueError as e:
        raise KeyFormatAuthenticationLuaSerializeError(
            "Unable to load PEM public key"
        ) from e
    if not isinstance(public_key, PUBLIC_KEY_TYPES):
        raise KeyTypeAuthenticationLuaSerializeError(
            "Public key type is not supported for verifying",
            key_type=type(public_key).__name__,
        )
    return public_key


def public_key_pem(key: PrivateKey | PublicKey) -> bytes:
    """Get the PEM SubjectPublicKeyInfo of a key, or of a private key's public key."""
    public_key = key if isinstance(key, PUBLIC_KEY_TYPES) else key.public_key()
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _decode_raw_ed25519_key(key64: ReadableBinary | str) -> bytes:
    raw = b64decode(key64)
    if len(raw) != ED25519_KEY_LENGTH:
        raise KeyLengthAuthenticationLuaSerializeError(
            "Encoded Ed25519 key has the wrong length",
            expected_length=ED25519_KEY_LENGTH,
            actual_length=len(raw),
        )
    return raw


def load_private_key_b64(key64: ReadableBinary | str) -> Ed25519PrivateKey:
    """
    Load an Ed25519 private key from the base64 of its 32 raw bytes.

    >>> key = load_private_key_b64("A" * 43 + "=")
    >>> len(public_key_b64(key))
    44
    """
    return Ed25519PrivateKey.from_private_bytes(_decode_raw_ed25519_key(key64))


def load_public_key_b64(key64: ReadableBinary | str) -> Ed25519PublicKey:
    """Load an Ed25519 public key from the base64 of its 32 raw bytes."""
    raw = _decode_raw_ed25519_key(key64)
    try:
        return Ed25519PublicKey.from_public_bytes(raw)
    except ValueError as e:
        raise KeyFormatAuthenticationLuaSerializeError(
            "Encoded bytes are not an Ed25519 public key"
        ) from e


def public_key_b64(key: Ed25519PrivateKey | Ed25519PublicKey) -> str:
    """Get the base64 of an Ed25519 key's raw public key bytes."""
    public_key = key if isinstance(key, Ed25519PublicKey) else key.public_key()
    raw = public_key.public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    )
    return b64encode(raw).decode("ascii")
