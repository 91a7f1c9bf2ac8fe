"""Global configuration store for globalconf.

Provides the option catalog, XDG-compliant config path handling, and
loading, saving, and rendering of the global configuration.
All configuration is stored in ~/.config/globalconf/ by default, respecting
the XDG_CONFIG_HOME environment variable when set.
"""

import logging
import os
import tempfile
import tomllib
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path

from globalconf.core.constants import (
    APP_DIR_NAME,
    CONFIG_DIR_MODE,
    CONFIG_FILE_MODE,
    CONFIG_FILE_NAME,
    DISPLAY_HEADER,
    INT_MAX,
    INT_MIN,
)
from globalconf.core.exceptions import (
    CorruptConfigError,
    UnknownOptionError,
    WriteFailedError,
)

__all__ = [
    "GlobalConfig",
    "DEFAULT_CONFIG",
    "OptionKind",
    "OptionSpec",
    "OPTION_CATALOG",
    "get_option",
    "dedupe",
    "get_xdg_config_home",
    "get_config_path",
    "ensure_config_directory",
    "load_config",
    "dump_config",
    "save_config",
    "reset_config",
    "format_option_value",
    "render_config",
    "get_config_display",
    "get_option_value",
]

logger = logging.getLogger(__name__)


class OptionKind(Enum):
    """Semantic type of a configuration option."""

    BOOL = "bool"
    STRING = "string"
    INT = "int"
    LIST = "list"


@dataclass(frozen=True)
class GlobalConfig:
    """Global configuration settings.

    All fields have defaults, so a config file can be partial. List-valued
    options are tuples of unique strings in insertion order.
    """

    instrumentation_opt_in: bool = False
    omit_containers: tuple[str, ...] = ()
    web_environment: tuple[str, ...] = ()
    mutagen_enabled: bool = False
    nfs_mount_enabled: bool = False
    router_bind_all_interfaces: bool = False
    internet_detection_timeout_ms: int = 3000
    disable_http2: bool = False
    use_letsencrypt: bool = False
    letsencrypt_email: str = ""
    table_style: str = "default"
    simple_formatting: bool = False
    auto_restart_containers: bool = False
    use_hardened_images: bool = False
    fail_on_hook_fail: bool = False
    required_docker_compose_version: str = ""
    use_docker_compose_from_path: bool = False
    project_tld: str = ""
    xdebug_ide_location: str = ""


DEFAULT_CONFIG = GlobalConfig()


@dataclass(frozen=True)
class OptionSpec:
    """One entry of the option catalog.

    Attributes:
        name: Kebab-case option name used on the command line and in output.
        attr: GlobalConfig field name, also the key in the TOML file.
        kind: Semantic type of the option.
        description: Help text shown by the CLI.
    """

    name: str
    attr: str
    kind: OptionKind
    description: str

    @property
    def default(self) -> bool | int | str | tuple[str, ...]:
        return getattr(DEFAULT_CONFIG, self.attr)


# Catalog order is the display order of `config global`
OPTION_CATALOG: tuple[OptionSpec, ...] = (
    OptionSpec(
        "instrumentation-opt-in",
        "instrumentation_opt_in",
        OptionKind.BOOL,
        "Opt in to anonymous usage instrumentation",
    ),
    OptionSpec(
        "omit-containers",
        "omit_containers",
        OptionKind.LIST,
        "Containers to omit from every project (comma-separated)",
    ),
    OptionSpec(
        "web-environment",
        "web_environment",
        OptionKind.LIST,
        "Environment variables for the web container (comma-separated KEY=value)",
    ),
    OptionSpec(
        "mutagen-enabled",
        "mutagen_enabled",
        OptionKind.BOOL,
        "Enable mutagen file sync for all projects",
    ),
    OptionSpec(
        "nfs-mount-enabled",
        "nfs_mount_enabled",
        OptionKind.BOOL,
        "Enable NFS mounting for all projects",
    ),
    OptionSpec(
        "router-bind-all-interfaces",
        "router_bind_all_interfaces",
        OptionKind.BOOL,
        "Bind the router to all network interfaces",
    ),
    OptionSpec(
        "internet-detection-timeout-ms",
        "internet_detection_timeout_ms",
        OptionKind.INT,
        "Internet connectivity check timeout in milliseconds",
    ),
    OptionSpec(
        "disable-http2",
        "disable_http2",
        OptionKind.BOOL,
        "Disable HTTP/2 in the router",
    ),
    OptionSpec(
        "use-letsencrypt",
        "use_letsencrypt",
        OptionKind.BOOL,
        "Obtain router certificates from Let's Encrypt",
    ),
    OptionSpec(
        "letsencrypt-email",
        "letsencrypt_email",
        OptionKind.STRING,
        "Contact email for Let's Encrypt",
    ),
    OptionSpec(
        "table-style",
        "table_style",
        OptionKind.STRING,
        "Table style for list output (default, bold, bright)",
    ),
    OptionSpec(
        "simple-formatting",
        "simple_formatting",
        OptionKind.BOOL,
        "Use plain text instead of styled tables",
    ),
    OptionSpec(
        "auto-restart-containers",
        "auto_restart_containers",
        OptionKind.BOOL,
        "Restart containers after a host reboot",
    ),
    OptionSpec(
        "use-hardened-images",
        "use_hardened_images",
        OptionKind.BOOL,
        "Use hardened container images",
    ),
    OptionSpec(
        "fail-on-hook-fail",
        "fail_on_hook_fail",
        OptionKind.BOOL,
        "Abort when a project hook fails",
    ),
    OptionSpec(
        "required-docker-compose-version",
        "required_docker_compose_version",
        OptionKind.STRING,
        "Override the required docker-compose version",
    ),
    OptionSpec(
        "use-docker-compose-from-path",
        "use_docker_compose_from_path",
        OptionKind.BOOL,
        "Use the docker-compose found in $PATH",
    ),
    OptionSpec(
        "project-tld",
        "project_tld",
        OptionKind.STRING,
        "Default top-level domain for project URLs",
    ),
    OptionSpec(
        "xdebug-ide-location",
        "xdebug_ide_location",
        OptionKind.STRING,
        "Where the IDE listens for Xdebug (e.g., container, wsl2)",
    ),
)

_OPTIONS_BY_NAME: dict[str, OptionSpec] = {spec.name: spec for spec in OPTION_CATALOG}


def get_option(name: str) -> OptionSpec:
    """Look up a catalog entry by its kebab-case name.

    Raises:
        UnknownOptionError: If the name is not in the catalog.
    """
    try:
        return _OPTIONS_BY_NAME[name]
    except KeyError:
        raise UnknownOptionError(name) from None


def dedupe(items: list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Remove duplicates, keeping the first occurrence of each entry."""
    return tuple(dict.fromkeys(items))


def get_xdg_config_home() -> Path:
    """Get XDG config home directory for globalconf.

    Returns ~/.config/globalconf/ by default.
    Respects XDG_CONFIG_HOME environment variable when set.

    Returns:
        Path to globalconf's config directory.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / APP_DIR_NAME


def get_config_path() -> Path:
    """Get path to the global config file.

    Returns:
        Path to global_config.toml within globalconf's config directory.
    """
    return get_xdg_config_home() / CONFIG_FILE_NAME


def ensure_config_directory() -> Path:
    """Ensure config directory exists with correct permissions.

    Creates the directory with mkdir -p behavior if it doesn't exist.
    Sets permissions to 700 (owner only).

    Returns:
        Path to the created/existing config directory.
    """
    config_dir = get_xdg_config_home()

    # Create parent directories with normal permissions (e.g., ~/.config)
    config_dir.parent.mkdir(parents=True, exist_ok=True)

    if not config_dir.exists():
        old_umask = os.umask(0o077)  # Block group/other access
        try:
            config_dir.mkdir(mode=CONFIG_DIR_MODE, exist_ok=True)
        finally:
            os.umask(old_umask)

    config_dir.chmod(CONFIG_DIR_MODE)
    return config_dir


def _coerce_stored_value(spec: OptionSpec, value: object, config_path: Path) -> object:
    """Check a value read from TOML against the option's declared type.

    Raises:
        CorruptConfigError: If the value has the wrong type or is out of range.
    """
    if spec.kind is OptionKind.BOOL:
        if isinstance(value, bool):
            return value
        expected = "a boolean"
    elif spec.kind is OptionKind.INT:
        # bool is a subclass of int
        if isinstance(value, int) and not isinstance(value, bool):
            if INT_MIN <= value <= INT_MAX:
                return value
            raise CorruptConfigError(config_path, f"{spec.attr} is out of range: {value}")
        expected = "an integer"
    elif spec.kind is OptionKind.STRING:
        if isinstance(value, str):
            return value
        expected = "a string"
    else:
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return dedupe(value)
        expected = "a list of strings"

    raise CorruptConfigError(
        config_path, f"{spec.attr} must be {expected}, got {type(value).__name__}"
    )


def load_config(config_path: Path | None = None) -> GlobalConfig:
    """Load the global configuration from a TOML file.

    Values present in the file override the defaults field by field;
    anything missing keeps its default.

    Args:
        config_path: Optional path override. Defaults to XDG config path.

    Returns:
        GlobalConfig with loaded values merged over defaults. DEFAULT_CONFIG
        if the file does not exist.

    Raises:
        CorruptConfigError: If the file cannot be read, is not valid TOML,
            or holds a value of the wrong type.
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return DEFAULT_CONFIG

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise CorruptConfigError(config_path, str(e)) from e
    except OSError as e:
        raise CorruptConfigError(config_path, e.strerror or str(e)) from e

    valid_fields = {f.name for f in fields(GlobalConfig)}
    unknown = sorted(k for k in data if k not in valid_fields)
    if unknown:
        logger.debug("Ignoring unknown keys in %s: %s", config_path, ", ".join(unknown))

    loaded = {
        spec.attr: _coerce_stored_value(spec, data[spec.attr], config_path)
        for spec in OPTION_CATALOG
        if spec.attr in data
    }
    logger.debug("Loaded %d option(s) from %s", len(loaded), config_path)

    return GlobalConfig(**{**DEFAULT_CONFIG.__dict__, **loaded})


_TOML_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _toml_string(value: str) -> str:
    """Quote a string as a TOML basic string."""
    chars = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            chars.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            chars.append(f"\\u{ord(ch):04X}")
        else:
            chars.append(ch)
    return '"' + "".join(chars) + '"'


def _toml_value(spec: OptionSpec, value: object) -> str:
    if spec.kind is OptionKind.BOOL:
        return "true" if value else "false"
    if spec.kind is OptionKind.INT:
        return str(value)
    if spec.kind is OptionKind.STRING:
        return _toml_string(value)  # type: ignore[arg-type]
    return "[" + ", ".join(_toml_string(item) for item in value) + "]"  # type: ignore[attr-defined]


_TOML_HEADER = """\
# globalconf global configuration
# Location: ~/.config/globalconf/global_config.toml
# Managed by `globalconf config global`
"""


def dump_config(config: GlobalConfig) -> str:
    """Serialize every option to TOML in catalog order."""
    lines = [_TOML_HEADER]
    for spec in OPTION_CATALOG:
        lines.append(f"{spec.attr} = {_toml_value(spec, getattr(config, spec.attr))}\n")
    return "".join(lines)


def save_config(config: GlobalConfig, config_path: Path | None = None) -> None:
    """Write the full configuration to disk.

    Uses atomic write pattern (temp file + rename) so a failure never
    leaves a partially written config file. Sets file permissions to 600.

    Args:
        config: Configuration to persist. Defaults are written too.
        config_path: Optional path override. Defaults to XDG config path.

    Raises:
        WriteFailedError: On any I/O error.
    """
    content = dump_config(config)

    try:
        if config_path is None:
            config_path = get_config_path()
            ensure_config_directory()
        else:
            config_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailedError(config_path, e.strerror or str(e)) from e

    temp_path: Path | None = None
    try:
        # One temp file per writer, in the target directory
        fd, temp_name = tempfile.mkstemp(
            dir=config_path.parent, prefix=f"{config_path.name}.", suffix=".tmp"
        )
        temp_path = Path(temp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        # Set permissions before move (0o600 = owner read/write only)
        temp_path.chmod(CONFIG_FILE_MODE)
        temp_path.replace(config_path)
    except (OSError, UnicodeEncodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise WriteFailedError(config_path, reason) from e
    finally:
        # Clean up our temp file if it still exists
        try:
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
        except OSError:
            pass

    logger.debug("Saved configuration to %s", config_path)


def reset_config(config_path: Path | None = None) -> None:
    """Reset configuration to default values.

    Overwrites the config file with DEFAULT_CONFIG.

    Args:
        config_path: Optional path override. Defaults to XDG config path.
    """
    save_config(DEFAULT_CONFIG, config_path)


def format_option_value(spec: OptionSpec, value: object) -> str:
    """Format a single option value for display.

    Booleans render as true/false, lists as [a,b] and strings unquoted.
    """
    if spec.kind is OptionKind.BOOL:
        return "true" if value else "false"
    if spec.kind is OptionKind.LIST:
        return "[" + ",".join(value) + "]"  # type: ignore[arg-type]
    return str(value)


def render_config(config: GlobalConfig) -> str:
    """Render all options as key=value lines in catalog order.

    Args:
        config: The GlobalConfig to format.

    Returns:
        One line per option, newline-terminated.
    """
    return "".join(
        f"{spec.name}={format_option_value(spec, getattr(config, spec.attr))}\n"
        for spec in OPTION_CATALOG
    )


def get_config_display(config: GlobalConfig) -> str:
    """Format the configuration as printed by `config global`."""
    return f"{DISPLAY_HEADER}\n{render_config(config)}"


def get_option_value(config: GlobalConfig, name: str) -> str:
    """Get a single option value for display.

    Args:
        config: The GlobalConfig to read from.
        name: Kebab-case option name.

    Returns:
        The value exactly as it appears in render_config().

    Raises:
        UnknownOptionError: If name is not a catalog option.
    """
    spec = get_option(name)
    return format_option_value(spec, getattr(config, spec.attr))
