"""Command-line configuration.

Settings come from the environment, optionally seeded from a ``.env`` file
in the working directory. Only the console script reads them; the library
API takes everything as arguments.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "AGILEKEYCHAIN_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class KeychainSettings:
    path: Optional[str] = None
    profile: str = "default"
    log_level: str = "WARNING"
    log_json: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "KeychainSettings":
        """
        Build settings from ``AGILEKEYCHAIN_*`` variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            dotenv: Load ``.env`` into ``os.environ`` first (existing
                variables are not overridden)
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True), override=False)
            environ = os.environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name, "")
            return value or default

        return cls(
            path=get("PATH"),
            profile=get("PROFILE", cls.profile),
            log_level=get("LOG_LEVEL", cls.log_level).upper(),
            log_json=get("LOG_JSON", "").lower() in _TRUE_VALUES,
        )
