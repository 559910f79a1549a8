"""
Agile Keychain Exception Classes
"""

from typing import Optional


class KeychainError(Exception):
    """Base exception for keychain operations"""

    def __init__(self, message: str, identifier: Optional[str] = None):
        super().__init__(message)
        self.identifier = identifier


class KeychainNotFound(KeychainError):
    """Raised when the vault directory or one of its documents is missing"""
    pass


class FormatError(KeychainError):
    """Raised when on-disk data does not have the expected structure"""
    pass


class MalformedDocument(FormatError):
    """Raised when a JSON document has the wrong top-level shape"""
    pass


class MalformedEntry(FormatError):
    """Raised when an entry-index row has the wrong arity or field types"""

    def __init__(self, message: str, index: int):
        super().__init__(message)
        self.index = index


class MissingSaltHeader(FormatError):
    """Raised when a blob does not start with the OpenSSL "Salted__" header"""
    pass


class InvalidBase64(FormatError):
    """Raised when a key field is not valid base64"""
    pass


class InvalidBlockLength(FormatError):
    """Raised when ciphertext is empty or not a multiple of the AES block size"""
    pass


class InvalidPadding(FormatError):
    """Raised when PKCS#7 padding is inconsistent"""
    pass


class CryptoError(KeychainError):
    """Raised when decryption or validation of key material fails"""
    pass


class ValidationMismatch(CryptoError):
    """Raised when a candidate key does not reproduce its validation blob.

    A wrong passphrase and a corrupted record both end up here; the format
    has no way to tell them apart.
    """
    pass


class KeyDecryptionFailed(ValidationMismatch):
    """Raised when the wrapped key itself cannot be decrypted and unpadded"""
    pass
