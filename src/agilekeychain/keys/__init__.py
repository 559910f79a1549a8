# Agile Keychain - Keys Module
#
# Decoding of encryptionKeys.js and recovery of the validated master keys.

from .recovery import (
    DEFAULT_ITERATIONS,
    KeyMetadata,
    KeyRecord,
    RecoveredKey,
    decode_key_metadata,
    log_recovered_key,
    recover_key,
    recover_keys,
)

__all__ = [
    "DEFAULT_ITERATIONS",
    "KeyMetadata",
    "KeyRecord",
    "RecoveredKey",
    "decode_key_metadata",
    "log_recovered_key",
    "recover_key",
    "recover_keys",
]
