"""Integration tests for global config persistence.

Tests end-to-end load/apply/save cycles using temp XDG directories.
"""

from pathlib import Path

import pytest

from globalconf.core.config import (
    DEFAULT_CONFIG,
    GlobalConfig,
    get_config_path,
    get_xdg_config_home,
    load_config,
    reset_config,
    save_config,
)
from globalconf.core.exceptions import CorruptConfigError, InvalidValueError
from globalconf.core.mutation import Operation, apply_operations


class TestConfigFilePermissions:
    """Integration tests for config file permissions."""

    def test_directory_and_file_are_owner_only(self, config_home: Path) -> None:
        """Saving creates a 700 directory and a 600 file."""
        save_config(DEFAULT_CONFIG)

        assert get_xdg_config_home().stat().st_mode & 0o777 == 0o700
        assert get_config_path().stat().st_mode & 0o777 == 0o600


class TestConfigPersistenceRoundTrip:
    """Integration tests for the load, apply, save cycle."""

    def test_apply_save_load(self, config_home: Path) -> None:
        """Changes made by a batch survive a reload."""
        updated = apply_operations(
            load_config(),
            [
                Operation.replace_list("omit-containers", "dba,ddev-ssh-agent"),
                Operation.set("internet-detection-timeout-ms", "850"),
                Operation.set("use-letsencrypt"),
            ],
        )
        save_config(updated)

        reloaded = load_config()

        assert reloaded == updated
        assert reloaded.omit_containers == ("dba", "ddev-ssh-agent")
        assert reloaded.internet_detection_timeout_ms == 850
        assert reloaded.use_letsencrypt is True

    def test_successive_appends_accumulate(self, config_home: Path) -> None:
        """Each invocation's append builds on the persisted list."""
        for entry in ["A=1", "B=2", "A=1", "C=3"]:
            config = apply_operations(load_config(), [Operation.append("web-environment", entry)])
            save_config(config)

        assert load_config().web_environment == ("A=1", "B=2", "C=3")

    def test_failed_batch_leaves_file_untouched(
        self, config_home: Path, customized_config: GlobalConfig
    ) -> None:
        """An invalid batch never reaches the file."""
        save_config(customized_config)
        before = get_config_path().read_bytes()

        with pytest.raises(InvalidValueError):
            config = apply_operations(
                load_config(),
                [
                    Operation.set("project-tld", "other.test"),
                    Operation.set("mutagen-enabled", "sometimes"),
                ],
            )
            save_config(config)

        assert get_config_path().read_bytes() == before
        assert load_config() == customized_config

    def test_hand_edited_partial_file(self, config_home: Path) -> None:
        """A hand-written file with a few keys is merged over defaults."""
        config_home.mkdir(parents=True)
        get_config_path().write_text("nfs_mount_enabled = true\n")

        loaded = load_config()

        assert loaded == GlobalConfig(nfs_mount_enabled=True)


class TestCorruptConfigRecovery:
    """Integration tests for recovering from a corrupt file."""

    def test_reset_replaces_corrupt_file(self, config_home: Path) -> None:
        """reset_config() makes a corrupt file loadable again."""
        config_home.mkdir(parents=True)
        get_config_path().write_text("[[[")

        with pytest.raises(CorruptConfigError):
            load_config()

        reset_config()

        assert load_config() == DEFAULT_CONFIG
