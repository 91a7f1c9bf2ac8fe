"""Custom exceptions for globalconf.

All globalconf-specific exceptions inherit from GlobalConfError.
"""

from pathlib import Path


class GlobalConfError(Exception):
    """Base exception for globalconf errors."""

    pass


class ConfigError(GlobalConfError):
    """Base class for errors raised by the configuration store and mutations."""

    pass


class CorruptConfigError(ConfigError):
    """Persisted configuration exists but cannot be read or parsed.

    Raised when the config file has invalid TOML syntax, or when a known
    key carries a value of the wrong type. Callers may recover by
    falling back to the default configuration.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Configuration file {path} is invalid: {reason}")


class UnknownOptionError(ConfigError):
    """An operation referenced an option that is not in the catalog."""

    def __init__(self, option: str) -> None:
        self.option = option
        super().__init__(f"Unknown configuration option '{option}'")


class InvalidValueError(ConfigError):
    """A value could not be parsed for the option's declared type."""

    def __init__(self, option: str, value: str | None, reason: str) -> None:
        self.option = option
        self.value = value
        self.reason = reason
        if value is None:
            shown = "(no value)"
        else:
            # Lone surrogates from undecodable argv are shown as escapes
            printable = value.encode("utf-8", "backslashreplace").decode("utf-8")
            shown = f"'{printable}'"
        super().__init__(f"Invalid value {shown} for {option}: {reason}")


class WriteFailedError(ConfigError):
    """Persisting the configuration failed due to an I/O error.

    The existing config file is left untouched.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write configuration to {path}: {reason}")
