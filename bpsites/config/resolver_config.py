"""Configuration for the breakpoint position resolver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from typing import Literal

from bpsites.errors import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def _parse_bool(value: Any, config_key: str) -> bool:
    """Interpret booleans given as strings (e.g. from JSON or the environment)."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigurationError(
            f"Expected a boolean for {config_key}, got {value!r}",
            config_key=config_key,
        )
    return bool(value)


@dataclass
class ResolverConfig:
    """Settings shared by every resolution in the process."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Upper bound on how long a caller waits for a resolution. The resolution
    # itself is never cancelled; None waits forever.
    timeout_seconds: float | None = None

    # Flatten line -> columns tables in ascending line order instead of
    # the table's own enumeration order.
    sort_lines: bool = True

    @classmethod
    def from_mapping(cls, options: dict[str, Any]) -> ResolverConfig:
        """Create config from a camelCase or snake_case options mapping."""
        timeout = options.get("timeoutSeconds", options.get("timeout_seconds"))
        config = cls(
            log_level=str(options.get("logLevel", options.get("log_level", "INFO"))).upper(),  # type: ignore[arg-type]
            timeout_seconds=None if timeout is None else float(timeout),
            sort_lines=_parse_bool(
                options.get("sortLines", options.get("sort_lines", True)), "sort_lines"
            ),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration and raise errors for invalid values."""
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                config_key="log_level",
                details={"allowed": list(LOG_LEVELS)},
            )

        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError(
                "Timeout must be positive",
                config_key="timeout_seconds",
                details={"timeout_seconds": self.timeout_seconds},
            )


# Default configuration instance
DEFAULT_CONFIG = ResolverConfig()
