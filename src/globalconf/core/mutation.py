"""Mutation engine for the global configuration.

Applies an ordered batch of option operations to a GlobalConfig. Batches
are all-or-nothing: GlobalConfig is immutable, so operations build up a
new value and the caller's config is never touched when one fails.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from globalconf.core.config import (
    GlobalConfig,
    OptionKind,
    OptionSpec,
    dedupe,
    get_option,
)
from globalconf.core.constants import INT_MAX, INT_MIN, LIST_SEPARATOR
from globalconf.core.exceptions import InvalidValueError

__all__ = [
    "OperationKind",
    "Operation",
    "parse_bool",
    "parse_int",
    "parse_list",
    "merge_unique",
    "apply_operation",
    "apply_operations",
]

logger = logging.getLogger(__name__)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class OperationKind(Enum):
    """Kind of change an Operation makes to an option."""

    SET_SCALAR = "set"
    SET_LIST = "replace"
    APPEND_LIST = "append"


@dataclass(frozen=True)
class Operation:
    """A single named change to the configuration.

    Attributes:
        kind: What to do with the value.
        name: Kebab-case option name from the catalog.
        value: Raw value as given on the command line, or None when the
            option was given without a value (boolean flags only).
    """

    kind: OperationKind
    name: str
    value: str | None = None

    @classmethod
    def set(cls, name: str, value: str | None = None) -> "Operation":
        return cls(OperationKind.SET_SCALAR, name, value)

    @classmethod
    def replace_list(cls, name: str, value: str) -> "Operation":
        return cls(OperationKind.SET_LIST, name, value)

    @classmethod
    def append(cls, name: str, value: str) -> "Operation":
        return cls(OperationKind.APPEND_LIST, name, value)


def parse_bool(name: str, value: str | None) -> bool:
    """Parse a boolean flag value.

    A flag given without a value means true. Otherwise only the literals
    "true" and "false" (any case) are accepted.

    Raises:
        InvalidValueError: For any other value.
    """
    if value is None:
        return True
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise InvalidValueError(name, value, "expected true or false")


def parse_int(name: str, value: str | None) -> int:
    """Parse a base-10 integer within the signed 64-bit range.

    Raises:
        InvalidValueError: If the value is missing, malformed, or out of range.
    """
    if value is None:
        raise InvalidValueError(name, value, "an integer value is required")
    text = value.strip()
    if not _INT_PATTERN.fullmatch(text):
        raise InvalidValueError(name, value, "expected an integer")
    number = int(text)
    if not INT_MIN <= number <= INT_MAX:
        raise InvalidValueError(name, value, "integer out of range")
    return number


def parse_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated value into unique, non-empty entries.

    Surrounding whitespace is stripped from each entry. An empty string
    yields an empty tuple.
    """
    entries = (entry.strip() for entry in value.split(LIST_SEPARATOR))
    return dedupe([entry for entry in entries if entry])


def merge_unique(existing: tuple[str, ...], additions: Iterable[str]) -> tuple[str, ...]:
    """Append entries not already present, keeping existing order.

    New entries go to the end in the order given.
    """
    return dedupe([*existing, *additions])


def _require_value(spec: OptionSpec, value: str | None) -> str:
    if value is None:
        raise InvalidValueError(spec.name, value, "a value is required")
    # Undecodable argv bytes arrive as lone surrogates and can't be saved
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidValueError(spec.name, value, "must be valid UTF-8") from None
    return value


def _new_value(spec: OptionSpec, current: object, operation: Operation) -> object:
    """Compute the option's value after the operation, without side effects."""
    kind = operation.kind

    if spec.kind is OptionKind.LIST:
        if kind is OperationKind.SET_SCALAR:
            raise InvalidValueError(
                spec.name,
                operation.value,
                "list option must be replaced or appended to",
            )
        entries = parse_list(_require_value(spec, operation.value))
        if kind is OperationKind.SET_LIST:
            return entries
        return merge_unique(current, entries)  # type: ignore[arg-type]

    if kind is not OperationKind.SET_SCALAR:
        raise InvalidValueError(
            spec.name,
            operation.value,
            f"{spec.kind.value} option does not support list operations",
        )

    if spec.kind is OptionKind.BOOL:
        return parse_bool(spec.name, operation.value)
    if spec.kind is OptionKind.INT:
        return parse_int(spec.name, operation.value)
    return _require_value(spec, operation.value)


def apply_operation(config: GlobalConfig, operation: Operation) -> GlobalConfig:
    """Apply one operation, returning a new GlobalConfig.

    Raises:
        UnknownOptionError: If the operation names an option not in the catalog.
        InvalidValueError: If the value doesn't fit the option's type.
    """
    spec = get_option(operation.name)
    current = getattr(config, spec.attr)
    value = _new_value(spec, current, operation)
    if value == current:
        return config
    return replace(config, **{spec.attr: value})


def apply_operations(config: GlobalConfig, operations: Iterable[Operation]) -> GlobalConfig:
    """Apply a batch of operations in order.

    Each operation sees the result of the ones before it. If any
    operation fails, the error propagates and no partial result escapes;
    `config` itself is immutable and never changes.

    Args:
        config: Starting configuration.
        operations: Operations to apply, in order.

    Returns:
        The configuration after all operations.

    Raises:
        UnknownOptionError: If an operation names an unknown option.
        InvalidValueError: If an operation's value can't be parsed.
    """
    working = config
    count = 0
    for operation in operations:
        logger.debug(
            "Applying %s %s=%r", operation.kind.value, operation.name, operation.value
        )
        working = apply_operation(working, operation)
        count += 1

    logger.debug("Applied %d operation(s)", count)
    return working
