"""Constants for globalconf.

Exit codes, storage locations, and value bounds.
"""

from typing import Final

# Exit codes (following Unix conventions)
EXIT_SUCCESS: Final[int] = 0
EXIT_USER_ERROR: Final[int] = 1
EXIT_INTERNAL_ERROR: Final[int] = 2

# Storage location: $XDG_CONFIG_HOME/globalconf/global_config.toml
APP_DIR_NAME: Final[str] = "globalconf"
CONFIG_FILE_NAME: Final[str] = "global_config.toml"

# File and directory permissions for persisted config (owner only)
CONFIG_DIR_MODE: Final[int] = 0o700
CONFIG_FILE_MODE: Final[int] = 0o600

# First line of `config global` output
DISPLAY_HEADER: Final[str] = "Global configuration:"

# Integer options are stored as signed 64-bit values
INT_MIN: Final[int] = -(2**63)
INT_MAX: Final[int] = 2**63 - 1

# Separator for list-valued options on the command line
LIST_SEPARATOR: Final[str] = ","
