# Agile Keychain - Core Module
#
# Shared ambient concerns for the console script:
# - Configuration from environment / .env
# - Logging setup (stdlib + structlog)

from .config import KeychainSettings
from .logging_config import configure_logging

__all__ = [
    "KeychainSettings",
    "configure_logging",
]
