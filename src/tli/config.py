"""Configuration management for tli."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigInvalidError, ConfigMissingError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TLI_CONF"
DEFAULT_CONFIG_NAME = ".tli_config"


class TliConfig(BaseModel):
    """Everything needed to send a note to the Things inbox.

    Keys match the YAML written by `tli init`.
    """

    smtp_host: str = Field(description="SMTP server host name")
    smtp_port: int = Field(default=587, description="SMTP server port")
    avatar: str = Field(default="", description="Sender display name")
    email_addr: str = Field(description="Sender email address")
    username: str = Field(description="SMTP login user name")
    password: str = Field(description="SMTP login password")
    things_addr: str = Field(description="Things 3 'Mail to Things' address")

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("smtp_host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("SMTP host must not be empty.")
        return v

    @field_validator("smtp_port", mode="before")
    @classmethod
    def parse_port(cls, v):
        # Older configs store the port as a quoted string
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("smtp_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (1 <= v <= 65535):
            raise ValueError("Port must be an integer between 1 and 65535.")
        return v

    @field_validator("email_addr", "things_addr")
    @classmethod
    def validate_email_addresses(cls, v: str) -> str:
        v = v.strip()
        if not re.match(r"^[^@\s]+@[^@\s]+$", v):
            raise ValueError(f"Email address format is invalid: {v!r}")
        return v

    def to_yaml_str(self) -> str:
        """Generate the YAML document stored in the config file."""
        data = yaml.safe_dump(self.model_dump(), sort_keys=False, allow_unicode=True)
        return f"---\n{data}"


def default_config_path(home: Path | None = None) -> Path:
    """Path of the config file in the user's home directory."""
    return (home or Path.home()) / DEFAULT_CONFIG_NAME


def resolve_config_path(env: dict | None = None, home: Path | None = None) -> Path:
    """Resolve the config file path with the following precedence:

    1. TLI_CONF environment variable, if it names an existing file
    2. ~/.tli_config

    Args:
        env: Environment mapping; defaults to os.environ
        home: Home directory; defaults to Path.home()

    Returns:
        Path to the config file (which may not exist)
    """
    env = os.environ if env is None else env
    override = env.get(CONFIG_ENV_VAR)
    if override:
        candidate = Path(override).expanduser()
        if candidate.is_file():
            return candidate
        logger.debug("%s=%s does not exist, falling back to default", CONFIG_ENV_VAR, override)
    return default_config_path(home)


def load_config(path: Path) -> TliConfig:
    """Load and validate a config file.

    Raises:
        ConfigMissingError: If the file does not exist or cannot be read
        ConfigInvalidError: If the file is not valid YAML or fails validation
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigMissingError(f"cannot find tli config at {path}\ntry: tli init") from e
    except OSError as e:
        raise ConfigMissingError(f"cannot read tli config at {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigInvalidError(f"cannot parse tli config at {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigInvalidError(f"cannot parse tli config at {path}: expected a mapping")

    try:
        return TliConfig(**data)
    except ValidationError as e:
        raise ConfigInvalidError(f"invalid tli config at {path}:\n{e}") from e


def save_config(config: TliConfig, path: Path) -> Path:
    """Write the config file, readable only by its owner.

    Returns:
        The path written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(config.to_yaml_str())
    # O_CREAT only applies the mode to new files
    os.chmod(path, 0o600)
    return path
