# Agile Keychain - Crypto Primitives
#
# OpenSSL-compatible building blocks for reading Agile Keychain key material:
#   - "Salted__" header parsing (openssl enc output format)
#   - Legacy EVP_BytesToKey derivation (MD5, one iteration, AES-128 key + IV)
#   - PBKDF2-HMAC-SHA1 derivation (32 bytes = 16-byte key + 16-byte IV)
#   - AES-128-CBC decryption and PKCS#7 unpadding
#
# Design:
#   - Pure functions, no state between calls
#   - Unpadding is separate from decryption so callers decide what a bad pad means

import logging
from dataclasses import dataclass
from typing import Tuple

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import InvalidBlockLength, InvalidPadding, MissingSaltHeader

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────

SALT_MAGIC = b"Salted__"
SALT_SIZE = 8
HEADER_SIZE = len(SALT_MAGIC) + SALT_SIZE

BLOCK_SIZE = 16  # AES block size in bytes
KEY_SIZE = 16  # AES-128
PBKDF2_LENGTH = KEY_SIZE + BLOCK_SIZE  # key followed by IV
MAX_ITERATIONS = 2**32 - 1  # PBKDF2HMAC takes a native unsigned count


# ── Salted blobs ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class SaltedBlob:
    """Salt and ciphertext split out of an OpenSSL salted blob."""
    salt: bytes
    ciphertext: bytes


def extract_salted_blob(blob: bytes) -> SaltedBlob:
    """Split ``Salted__`` + 8-byte salt + ciphertext.

    A blob without the header is rejected. There is no zero-salt fallback.

    Raises:
        MissingSaltHeader: If the input is shorter than the header or the
            magic prefix is absent.
    """
    if len(blob) < HEADER_SIZE or blob[:len(SALT_MAGIC)] != SALT_MAGIC:
        raise MissingSaltHeader(
            f"Blob of {len(blob)} bytes does not start with {SALT_MAGIC!r} + salt"
        )
    return SaltedBlob(
        salt=bytes(blob[len(SALT_MAGIC):HEADER_SIZE]),
        ciphertext=bytes(blob[HEADER_SIZE:]),
    )


# ── Key derivation ───────────────────────────────────────────────────


def _md5(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.MD5(), backend=default_backend())
    digest.update(data)
    return digest.finalize()


def derive_legacy_key_iv(secret: bytes, salt: bytes) -> Tuple[bytes, bytes]:
    """
    OpenSSL ``EVP_BytesToKey`` with MD5 and a single iteration, AES-128 sized.

    Two chained rounds give exactly 32 bytes:
        h0 = MD5(secret || salt)
        h1 = MD5(h0 || secret || salt)

    Args:
        secret: Password bytes (here: the candidate raw key)
        salt: 8-byte salt from the blob header

    Returns:
        Tuple of (key, iv), 16 bytes each
    """
    h0 = _md5(secret + salt)
    h1 = _md5(h0 + secret + salt)
    return h0, h1


def derive_pbkdf2_key(passphrase: bytes, salt: bytes, iterations: int) -> bytes:
    """
    PBKDF2-HMAC-SHA1 producing 32 bytes.

    Callers split the result with ``split_key_iv``: bytes 0-15 are the
    key-encrypting key, bytes 16-31 the IV.
    """
    if not 0 < iterations <= MAX_ITERATIONS:
        raise ValueError(
            f"PBKDF2 iterations must be between 1 and {MAX_ITERATIONS}; got {iterations}"
        )

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=PBKDF2_LENGTH,
        salt=salt,
        iterations=iterations,
        backend=default_backend()
    )
    return kdf.derive(passphrase)


def split_key_iv(derived: bytes) -> Tuple[bytes, bytes]:
    """Split 32 bytes of derived material into (key, iv)."""
    if len(derived) != PBKDF2_LENGTH:
        raise ValueError(
            f"Derived material must be {PBKDF2_LENGTH} bytes; got {len(derived)}"
        )
    return derived[:KEY_SIZE], derived[KEY_SIZE:]


# ── AES-128-CBC ──────────────────────────────────────────────────────


def aes128_cbc_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    """
    Raw AES-128-CBC decryption. Padding is left in place.

    Raises:
        InvalidBlockLength: If ciphertext is empty or not a multiple of 16.
        ValueError: If key or IV is not 16 bytes.
    """
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise InvalidBlockLength(
            f"Ciphertext length {len(ciphertext)} is not a nonzero multiple of {BLOCK_SIZE}"
        )
    if len(key) != KEY_SIZE:
        raise ValueError(f"AES-128 key must be {KEY_SIZE} bytes; got {len(key)}")
    if len(iv) != BLOCK_SIZE:
        raise ValueError(f"CBC IV must be {BLOCK_SIZE} bytes; got {len(iv)}")

    decryptor = Cipher(
        algorithms.AES(key), modes.CBC(iv), backend=default_backend()
    ).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()


# ── PKCS#7 ───────────────────────────────────────────────────────────


def pkcs7_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Strip PKCS#7 padding.

    The last byte is the pad length ``p``. Exactly ``p`` trailing bytes are
    compared, without stopping at the first bad one.

    A pad length larger than ``block_size`` is rejected even when it fits in
    the data, which is stricter than only checking against the data length.

    Raises:
        InvalidPadding: If data is empty, ``p`` is 0, exceeds the data or
            block size, or any of the last ``p`` bytes is not ``p``.
    """
    if not data:
        raise InvalidPadding("Cannot unpad empty data")

    pad = data[-1]
    if pad == 0 or pad > len(data) or pad > block_size:
        raise InvalidPadding(f"Invalid pad length {pad}")

    mismatch = 0
    for value in data[-pad:]:
        mismatch |= value ^ pad
    if mismatch:
        raise InvalidPadding("Inconsistent padding bytes")

    return data[:-pad]


def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """Append PKCS#7 padding (always at least one byte)."""
    if not 0 < block_size < 256:
        raise ValueError(f"Block size must be 1-255; got {block_size}")
    pad = block_size - len(data) % block_size
    return data + bytes([pad]) * pad


# ── openssl enc -md md5 ──────────────────────────────────────────────


def decrypt_salted(blob: bytes, secret: bytes) -> bytes:
    """Decrypt an ``openssl enc -aes-128-cbc -md md5`` blob with ``secret``."""
    salted = extract_salted_blob(blob)
    key, iv = derive_legacy_key_iv(secret, salted.salt)
    return pkcs7_unpad(aes128_cbc_decrypt(salted.ciphertext, key, iv))
