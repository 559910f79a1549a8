# Agile Keychain - Key Recovery
#
# Unwraps the per-level master keys listed in encryptionKeys.js:
#   1. base64-decode the "data" blob (OpenSSL salted format)
#   2. PBKDF2-HMAC-SHA1(passphrase, salt, iterations) -> AES-128 key + IV
#   3. AES-128-CBC decrypt + PKCS#7 unpad -> candidate key
#   4. Legacy MD5 EVP_BytesToKey(candidate key, validation salt) -> key + IV
#   5. Decrypt the "validation" blob; it must reproduce the candidate key
#
# The validation blob stands in for a MAC: a wrong passphrase or a flipped
# bit in the wrapped key fails step 5 even when CBC decryption "succeeds".
#
# A single bad record aborts the whole batch. No partial key set is returned.

import base64
import binascii
import hmac
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

import structlog

from ..crypto.primitives import (
    MAX_ITERATIONS,
    aes128_cbc_decrypt,
    derive_legacy_key_iv,
    derive_pbkdf2_key,
    extract_salted_blob,
    pkcs7_unpad,
    split_key_iv,
)
from ..exceptions import (
    FormatError,
    InvalidBase64,
    InvalidPadding,
    KeyDecryptionFailed,
    MalformedDocument,
    MissingSaltHeader,
    ValidationMismatch,
)

logger = logging.getLogger(__name__)

# Keychains written before iteration counts were stored used 1000 rounds.
DEFAULT_ITERATIONS = 1000

RecoveryObserver = Callable[["RecoveredKey"], None]


# ── Records ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class KeyRecord:
    """One entry of the key-metadata ``list``."""
    identifier: str
    level: str
    iterations: int
    data: str
    validation: str


@dataclass(frozen=True)
class RecoveredKey:
    """A key that decrypted and passed validation. Key bytes stay out of repr."""
    identifier: str
    level: str
    key: bytes = field(repr=False)

    def __len__(self) -> int:
        return len(self.key)


@dataclass(frozen=True)
class KeyMetadata:
    """Decoded encryptionKeys.js document."""
    sl3: Optional[str]
    sl5: Optional[str]
    records: Tuple[KeyRecord, ...]

    def identifier_for(self, level: str) -> Optional[str]:
        """Identifier of the key serving a security level ("SL3" or "SL5")."""
        return {"SL3": self.sl3, "SL5": self.sl5}.get(level.upper())


# ── Document decoding ────────────────────────────────────────────────


def _lookup(obj: Mapping[str, Any], name: str) -> Any:
    """Field lookup ignoring case; vault files use lowercase names."""
    if name in obj:
        return obj[name]
    lowered = name.lower()
    for key, value in obj.items():
        if isinstance(key, str) and key.lower() == lowered:
            return value
    return None


def _decode_record(index: int, raw: Any) -> KeyRecord:
    if not isinstance(raw, dict):
        raise MalformedDocument(f"Key record {index} is not an object")

    strings = {}
    for name in ("Identifier", "Level", "Data", "Validation"):
        value = _lookup(raw, name)
        if not isinstance(value, str):
            raise MalformedDocument(
                f"Key record {index}: field {name!r} must be a string"
            )
        strings[name] = value

    iterations = _lookup(raw, "Iterations")
    if iterations is None:
        iterations = DEFAULT_ITERATIONS
    if (
        isinstance(iterations, bool)
        or not isinstance(iterations, int)
        or not 0 < iterations <= MAX_ITERATIONS
    ):
        raise MalformedDocument(
            f"Key record {index}: 'Iterations' must be an integer from 1 to {MAX_ITERATIONS}",
            identifier=strings["Identifier"],
        )

    return KeyRecord(
        identifier=strings["Identifier"],
        level=strings["Level"],
        iterations=iterations,
        data=strings["Data"],
        validation=strings["Validation"],
    )


def decode_key_metadata(raw: Union[str, bytes, Mapping[str, Any]]) -> KeyMetadata:
    """
    Decode the key-metadata document.

    Args:
        raw: JSON text, or the already-parsed object

    Returns:
        KeyMetadata with records in document order

    Raises:
        MalformedDocument: If the JSON is invalid or any record is malformed
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedDocument(f"Key metadata is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise MalformedDocument("Key metadata must be a JSON object")

    key_list = _lookup(raw, "List")
    if not isinstance(key_list, list):
        raise MalformedDocument("Key metadata has no 'List' array")

    sl3 = _lookup(raw, "SL3")
    sl5 = _lookup(raw, "SL5")
    return KeyMetadata(
        sl3=sl3 if isinstance(sl3, str) else None,
        sl5=sl5 if isinstance(sl5, str) else None,
        records=tuple(_decode_record(i, item) for i, item in enumerate(key_list)),
    )


# ── Recovery ─────────────────────────────────────────────────────────


def _decode_field(text: str, name: str, identifier: str) -> bytes:
    # The writing application NUL-terminated these strings. Strip one only.
    if text.endswith("\x00"):
        text = text[:-1]
    # Line breaks are tolerated the way MIME decoders tolerate them.
    text = text.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBase64(
            f"Key {identifier}: {name} is not valid base64",
            identifier=identifier,
        ) from exc


def _salted(blob: bytes, name: str, identifier: str):
    try:
        return extract_salted_blob(blob)
    except MissingSaltHeader as exc:
        raise MissingSaltHeader(
            f"Key {identifier}: {name} blob has no salt header",
            identifier=identifier,
        ) from exc


def recover_key(record: KeyRecord, passphrase: Union[str, bytes]) -> RecoveredKey:
    """
    Unwrap and validate a single key record.

    Raises:
        InvalidBase64: ``data`` or ``validation`` is not base64
        MissingSaltHeader: a blob lacks the ``Salted__`` header
        MalformedDocument: the iteration count is out of range
        KeyDecryptionFailed: the wrapped key did not decrypt/unpad
        InvalidBlockLength: the validation ciphertext is truncated
        ValidationMismatch: the validation blob does not reproduce the key
    """
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    identifier = record.identifier

    data = _decode_field(record.data, "data", identifier)
    validation = _decode_field(record.validation, "validation", identifier)

    wrapped = _salted(data, "data", identifier)
    try:
        derived = derive_pbkdf2_key(passphrase, wrapped.salt, record.iterations)
    except ValueError as exc:
        raise MalformedDocument(
            f"Key {identifier}: unusable iteration count {record.iterations}",
            identifier=identifier,
        ) from exc
    kek, iv = split_key_iv(derived)
    try:
        candidate = pkcs7_unpad(aes128_cbc_decrypt(wrapped.ciphertext, kek, iv))
    except FormatError as exc:
        raise KeyDecryptionFailed(
            f"Key {identifier}: wrapped key did not decrypt "
            "(wrong passphrase or corrupt record)",
            identifier=identifier,
        ) from exc

    check = _salted(validation, "validation", identifier)
    check_key, check_iv = derive_legacy_key_iv(candidate, check.salt)
    plaintext = aes128_cbc_decrypt(check.ciphertext, check_key, check_iv)
    try:
        plaintext = pkcs7_unpad(plaintext)
    except InvalidPadding as exc:
        raise ValidationMismatch(
            f"Key {identifier}: validation blob did not decrypt",
            identifier=identifier,
        ) from exc

    if not hmac.compare_digest(plaintext, candidate):
        raise ValidationMismatch(
            f"Key {identifier}: validation does not match the decrypted key",
            identifier=identifier,
        )

    logger.debug("Validated key %s (%s, %d bytes)", identifier, record.level, len(candidate))
    return RecoveredKey(identifier=identifier, level=record.level, key=candidate)


def recover_keys(
    key_records: Iterable[KeyRecord],
    passphrase: Union[str, bytes],
    on_recovered: Optional[RecoveryObserver] = None,
) -> Dict[str, RecoveredKey]:
    """
    Recover every listed key, or fail on the first one that does not validate.

    Args:
        key_records: Records from ``decode_key_metadata``
        passphrase: Master password (str is UTF-8 encoded)
        on_recovered: Called once per key after it validates

    Returns:
        Mapping of identifier -> RecoveredKey (later duplicates win)
    """
    recovered: Dict[str, RecoveredKey] = {}
    for record in key_records:
        key = recover_key(record, passphrase)
        recovered[key.identifier] = key
        if on_recovered is not None:
            on_recovered(key)

    logger.debug("Recovered %d keys", len(recovered))
    return recovered


def log_recovered_key(key: RecoveredKey) -> None:
    """Default observer: one structured event per validated key."""
    structlog.get_logger("agilekeychain.keys").info(
        "key_recovered",
        identifier=key.identifier,
        security_level=key.level,
        key_length=len(key.key),
    )
