"""Runtime configuration for formguard."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from formguard.forms.binding import PathErrorPolicy
from formguard.validation.coordinator import CascadePolicy

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class FormGuardConfig:
    """Coordinator and logging configuration.

    Attributes:
        cascade_policy: How dependent-field failures are handled
        path_error_policy: What to do with bindings whose path cannot be extracted
        log_level: Root log level name used by the CLI
    """

    cascade_policy: CascadePolicy = CascadePolicy.FAIL_FAST
    path_error_policy: PathErrorPolicy = PathErrorPolicy.UNBOUND
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> FormGuardConfig:
        """Create config from environment variables.

        Variables:
        1. FORMGUARD_CASCADE_POLICY: "fail-fast" (default) or "collect"
        2. FORMGUARD_PATH_ERRORS: "unbound" (default) or "raise"
        3. FORMGUARD_LOG_LEVEL: Standard level name (default: WARNING)

        Raises:
            ValueError: For unrecognised values
        """
        cascade = os.environ.get("FORMGUARD_CASCADE_POLICY", CascadePolicy.FAIL_FAST.value)
        path_errors = os.environ.get("FORMGUARD_PATH_ERRORS", PathErrorPolicy.UNBOUND.value)
        log_level = os.environ.get("FORMGUARD_LOG_LEVEL", "WARNING").upper()

        try:
            cascade_policy = CascadePolicy(cascade.lower())
        except ValueError:
            raise ValueError(
                f"FORMGUARD_CASCADE_POLICY must be one of "
                f"{', '.join(p.value for p in CascadePolicy)}; got '{cascade}'"
            ) from None

        try:
            path_error_policy = PathErrorPolicy(path_errors.lower())
        except ValueError:
            raise ValueError(
                f"FORMGUARD_PATH_ERRORS must be one of "
                f"{', '.join(p.value for p in PathErrorPolicy)}; got '{path_errors}'"
            ) from None

        if log_level not in _LOG_LEVELS:
            raise ValueError(
                f"FORMGUARD_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}; got '{log_level}'"
            )

        return cls(
            cascade_policy=cascade_policy,
            path_error_policy=path_error_policy,
            log_level=log_level,
        )

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)
