"""Pytest configuration and shared fixtures.

Every test gets its own XDG config home so nothing touches the real
~/.config/globalconf/ directory.
"""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from globalconf.core.config import GlobalConfig


@pytest.fixture
def config_home(tmp_path: Path) -> Iterator[Path]:
    """Point XDG_CONFIG_HOME at a temp directory for the duration of a test.

    Yields:
        The globalconf config directory (not created yet).
    """
    custom_xdg = tmp_path / "xdg-config"
    with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(custom_xdg)}):
        yield custom_xdg / "globalconf"


@pytest.fixture
def config_file(config_home: Path) -> Path:
    """Path of the global config file inside the temp config home."""
    return config_home / "global_config.toml"


@pytest.fixture
def customized_config() -> GlobalConfig:
    """A config with every option moved off its default."""
    return GlobalConfig(
        instrumentation_opt_in=True,
        omit_containers=("dba", "ddev-ssh-agent"),
        web_environment=('"SOMEENV=some+val"', "FOO=bar"),
        mutagen_enabled=True,
        nfs_mount_enabled=True,
        router_bind_all_interfaces=True,
        internet_detection_timeout_ms=850,
        disable_http2=True,
        use_letsencrypt=True,
        letsencrypt_email="nobody@example.com",
        table_style="bright",
        simple_formatting=True,
        auto_restart_containers=True,
        use_hardened_images=True,
        fail_on_hook_fail=True,
        required_docker_compose_version="v2.5.1",
        use_docker_compose_from_path=True,
        project_tld="ddev.test",
        xdebug_ide_location="container",
    )
