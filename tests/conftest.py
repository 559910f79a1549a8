"""
Shared pytest fixtures for the agilekeychain test suite.

  - fixture_vault   -> real vault directory generated with the openssl CLI
                       (passphrase "1Password", keys SL5 + SL3, 1000 iterations)
  - make_record     -> builds KeyRecords in memory for corruption cases
  - autouse reset   -> undoes configure_logging() after every test
"""

import base64
import logging
from pathlib import Path

import pytest
import structlog
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from agilekeychain.crypto.primitives import (
    SALT_MAGIC,
    derive_legacy_key_iv,
    derive_pbkdf2_key,
    pkcs7_pad,
    split_key_iv,
)
from agilekeychain.keys.recovery import KeyRecord

FIXTURE_DIR = Path(__file__).parent / "fixtures"

FIXTURE_PASSPHRASE = "1Password"

# SHA-256 of the raw keys, recorded when the fixture was generated.
FIXTURE_KEYS = {
    "98EB2E946008403280A3A8D9261018A4": (
        "SL5", "3e3cb2649db6a2e4e50d60da30dd6ea285da5086a2e686cda9ce918f6b424f7b",
    ),
    "4A3D784D115F4279BDFCE46D0A162D57": (
        "SL3", "cdf52d0cc18f8027b6c4a3b099ce627ca916e7dd49a4c992215f5791cbcfdbec",
    ),
}


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers and structlog config installed by configure_logging().

    The CLI binds a StreamHandler to the (captured) stderr of the test that
    ran it; leaving it on the root logger breaks later tests.
    """
    root_logger = logging.getLogger()
    old_level = root_logger.level

    yield

    root_logger.setLevel(old_level)
    for handler in list(root_logger.handlers):
        if getattr(handler, "_agilekeychain", False):
            root_logger.removeHandler(handler)
    structlog.reset_defaults()


@pytest.fixture
def fixture_vault() -> Path:
    return FIXTURE_DIR / "1Password.agilekeychain"


@pytest.fixture
def fixture_passphrase() -> str:
    return FIXTURE_PASSPHRASE


@pytest.fixture
def fixture_keys():
    return FIXTURE_KEYS


def _encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(pkcs7_pad(plaintext)) + encryptor.finalize()


def wrap_key(
    raw_key: bytes,
    passphrase: bytes,
    iterations: int = 10,
    data_salt: bytes = b"\x11" * 8,
    validation_salt: bytes = b"\x22" * 8,
):
    """Return (data_blob, validation_blob) the way the vault writer does."""
    kek, iv = split_key_iv(derive_pbkdf2_key(passphrase, data_salt, iterations))
    data = SALT_MAGIC + data_salt + _encrypt(raw_key, kek, iv)

    check_key, check_iv = derive_legacy_key_iv(raw_key, validation_salt)
    validation = SALT_MAGIC + validation_salt + _encrypt(raw_key, check_key, check_iv)
    return data, validation


def b64(blob: bytes, nul: bool = True) -> str:
    return base64.b64encode(blob).decode("ascii") + ("\x00" if nul else "")


@pytest.fixture
def make_record():
    """Factory: KeyRecord wrapping ``raw_key`` under ``passphrase``.

    ``data``/``validation`` may be passed as raw blobs to override the
    correctly built ones.
    """

    def factory(
        raw_key: bytes = bytes(range(32)),
        passphrase: bytes = b"correct horse",
        identifier: str = "KEY1",
        level: str = "SL5",
        iterations: int = 10,
        data: bytes = None,
        validation: bytes = None,
    ) -> KeyRecord:
        good_data, good_validation = wrap_key(raw_key, passphrase, iterations)
        return KeyRecord(
            identifier=identifier,
            level=level,
            iterations=iterations,
            data=b64(good_data if data is None else data),
            validation=b64(good_validation if validation is None else validation),
        )

    return factory


@pytest.fixture
def wrap():
    """The wrap_key builder, for tests that tamper with the raw blobs."""
    return wrap_key
