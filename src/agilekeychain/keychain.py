# Agile Keychain - Vault Handle
#
# A read-only handle over a "*.agilekeychain" directory:
#
#   <vault>/data/<profile>/encryptionKeys.js   key metadata (wrapped keys)
#   <vault>/data/<profile>/contents.js         entry index
#
# The handle only holds the directory path. Documents are read on demand
# and recovered keys are handed back to the caller, never kept.

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from .exceptions import KeychainNotFound
from .index.entries import EntryRecord, parse_entries
from .keys.recovery import (
    KeyMetadata,
    RecoveredKey,
    RecoveryObserver,
    decode_key_metadata,
    log_recovered_key,
    recover_keys,
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
KEYS_FILENAME = "encryptionKeys.js"
CONTENTS_FILENAME = "contents.js"


class AgileKeychain:
    """
    Read-only access to an Agile Keychain vault directory.

    Usage:
        keychain = AgileKeychain("~/Dropbox/1Password.agilekeychain")
        entries = keychain.load_entries()
        keys = keychain.unlock(b"master password")
    """

    def __init__(self, path: Union[str, Path], profile: str = DEFAULT_PROFILE):
        """
        Args:
            path: Vault directory, relative or absolute
            profile: Profile directory under ``data/``

        Raises:
            KeychainNotFound: If ``path`` is not an existing directory
        """
        base_dir = Path(path).expanduser().resolve()
        if not base_dir.is_dir():
            raise KeychainNotFound(f"Keychain directory does not exist: {path}")

        self.base_dir = base_dir
        self.profile = profile

    def __repr__(self) -> str:
        return f"AgileKeychain({str(self.base_dir)!r}, profile={self.profile!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AgileKeychain):
            return NotImplemented
        return (self.base_dir, self.profile) == (other.base_dir, other.profile)

    def __hash__(self) -> int:
        return hash((self.base_dir, self.profile))

    @property
    def data_dir(self) -> Path:
        return self.base_dir / "data" / self.profile

    @property
    def keys_path(self) -> Path:
        return self.data_dir / KEYS_FILENAME

    @property
    def contents_path(self) -> Path:
        return self.data_dir / CONTENTS_FILENAME

    def _read(self, path: Path) -> bytes:
        if not path.is_file():
            raise KeychainNotFound(f"Keychain document is missing: {path}")
        # Decoding is left to the JSON decoders so bad UTF-8 is a format error.
        return path.read_bytes()

    def load_key_metadata(self) -> KeyMetadata:
        """Read and decode encryptionKeys.js."""
        metadata = decode_key_metadata(self._read(self.keys_path))
        logger.debug("Loaded %d key records from %s", len(metadata.records), self.keys_path)
        return metadata

    def load_entries(self) -> Tuple[EntryRecord, ...]:
        """Read and decode contents.js."""
        entries = parse_entries(self._read(self.contents_path))
        logger.debug("Loaded %d entries from %s", len(entries), self.contents_path)
        return entries

    def unlock(
        self,
        passphrase: Union[str, bytes],
        on_recovered: Optional[RecoveryObserver] = log_recovered_key,
    ) -> Dict[str, RecoveredKey]:
        """
        Recover and validate every key in the vault.

        Args:
            passphrase: Master password
            on_recovered: Observer called per validated key (None to disable)

        Returns:
            Mapping of key identifier -> RecoveredKey

        Raises:
            KeychainError: On the first record that fails (nothing partial)
        """
        metadata = self.load_key_metadata()
        return recover_keys(metadata.records, passphrase, on_recovered=on_recovered)
