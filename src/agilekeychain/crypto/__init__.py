# Agile Keychain - Crypto Module
#
# OpenSSL-compatible primitives used to unwrap and validate keychain keys.

from .primitives import (
    BLOCK_SIZE,
    SALT_MAGIC,
    SaltedBlob,
    aes128_cbc_decrypt,
    decrypt_salted,
    derive_legacy_key_iv,
    derive_pbkdf2_key,
    extract_salted_blob,
    pkcs7_pad,
    pkcs7_unpad,
    split_key_iv,
)

__all__ = [
    "BLOCK_SIZE",
    "SALT_MAGIC",
    "SaltedBlob",
    "aes128_cbc_decrypt",
    "decrypt_salted",
    "derive_legacy_key_iv",
    "derive_pbkdf2_key",
    "extract_salted_blob",
    "pkcs7_pad",
    "pkcs7_unpad",
    "split_key_iv",
]
