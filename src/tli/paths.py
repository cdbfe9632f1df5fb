"""Path management for tli's per-user files."""

from pathlib import Path

from .config import DEFAULT_CONFIG_NAME, resolve_config_path

HISTORY_FILE_NAME = ".tli_history"


class TliPaths:
    """Locations of the config and history files for one user."""

    def __init__(self, home: Path, config_file: Path | None = None):
        """Initialize paths from a home directory.

        Args:
            home: The user's home directory
            config_file: Explicit config file; defaults to <home>/.tli_config
        """
        self.home = home
        self.config_file = config_file or home / DEFAULT_CONFIG_NAME
        self.history_file = home / HISTORY_FILE_NAME

    @classmethod
    def from_env(cls, env: dict | None = None, home: Path | None = None) -> "TliPaths":
        """Resolve paths from the environment (TLI_CONF) and home directory.

        Raises:
            RuntimeError: If the home directory cannot be determined
        """
        home = home or Path.home()
        return cls(home, config_file=resolve_config_path(env=env, home=home))
