# Agile Keychain - Main Package
#
# Reads 1Password "Agile Keychain" vault directories: decodes the entry
# index and recovers the validated master keys from encryptionKeys.js.

__version__ = "0.3.0"
__description__ = "Reader for 1Password Agile Keychain vaults"

from .exceptions import (
    CryptoError,
    FormatError,
    InvalidBase64,
    InvalidBlockLength,
    InvalidPadding,
    KeyDecryptionFailed,
    KeychainError,
    KeychainNotFound,
    MalformedDocument,
    MalformedEntry,
    MissingSaltHeader,
    ValidationMismatch,
)
from .index import EntryRecord, parse_entries
from .keychain import AgileKeychain
from .keys import (
    KeyMetadata,
    KeyRecord,
    RecoveredKey,
    decode_key_metadata,
    recover_key,
    recover_keys,
)

__all__ = [
    "__version__",
    # Vault handle
    "AgileKeychain",
    # Keys
    "KeyMetadata",
    "KeyRecord",
    "RecoveredKey",
    "decode_key_metadata",
    "recover_key",
    "recover_keys",
    # Entries
    "EntryRecord",
    "parse_entries",
    # Errors
    "KeychainError",
    "KeychainNotFound",
    "FormatError",
    "MalformedDocument",
    "MalformedEntry",
    "MissingSaltHeader",
    "InvalidBase64",
    "InvalidBlockLength",
    "InvalidPadding",
    "CryptoError",
    "ValidationMismatch",
    "KeyDecryptionFailed",
]
