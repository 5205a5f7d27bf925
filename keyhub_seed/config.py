"""
Configuration management for keyhub-seed.

Loads and validates configuration from keyhub-seed.toml files using Pydantic.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILENAME = "keyhub-seed.toml"


def _toml_string(value: str) -> str:
    # JSON string escapes are a subset of TOML basic string escapes
    return json.dumps(value, ensure_ascii=False)


class DatabaseConfig(BaseSettings):
    """Database connection configuration."""

    model_config = SettingsConfigDict(env_prefix="KEYHUB_DATABASE_")

    url: str = Field(
        default="postgresql://localhost/keyhub_dev",
        description="PostgreSQL connection URL",
    )
    min_size: int = Field(default=1, description="Minimum pooled connections")
    max_size: int = Field(default=10, description="Maximum pooled connections")


class AdminConfig(BaseSettings):
    """Bootstrap administrator account."""

    model_config = SettingsConfigDict(env_prefix="KEYHUB_ADMIN_")

    email: str = Field(default="admin@example.com", description="Admin login email")
    password: str = Field(default="Admin@123", description="Admin password (hashed on write)")
    name: str = Field(default="System Administrator", description="Admin display name")
    org_code: str = Field(default="ADMIN_ORG", description="Code of the admin organization")
    org_name: str = Field(
        default="System Administration", description="Name of the admin organization"
    )


class FactoryConfig(BaseSettings):
    """Batch factory tuning."""

    model_config = SettingsConfigDict(env_prefix="KEYHUB_FACTORY_")

    batch_size: int = Field(default=10, description="Records created concurrently per chunk")
    max_retries: int = Field(default=3, description="Attempts per record before giving up")
    unique_max_attempts: int = Field(
        default=50, description="Collision budget of the uniqueness resolver"
    )
    transaction_timeout: float = Field(
        default=30.0, description="Server-side statement timeout per transaction (seconds)"
    )
    max_wait: float = Field(
        default=5.0, description="Maximum wait for a pooled connection (seconds)"
    )
    bcrypt_rounds: int = Field(default=10, description="bcrypt cost factor for passwords")


class DefaultsConfig(BaseSettings):
    """Default volumes when the caller does not pass explicit options."""

    model_config = SettingsConfigDict(env_prefix="KEYHUB_")

    environment: str = Field(default="development", description="development, test or production")
    user_count: int = Field(default=20, description="Random users per run")
    license_count: int = Field(default=30, description="Random licenses per run")
    logs_per_license: int = Field(default=4, description="Access logs per eligible license")
    realistic_days: int = Field(default=30, description="Days of realistic access pattern")


class Config(BaseSettings):
    """Main configuration for keyhub-seed."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    factory: FactoryConfig = Field(default_factory=FactoryConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @classmethod
    def from_toml(cls, path: Path | str) -> Config:
        """
        Load configuration from TOML file.

        Args:
            path: Path to keyhub-seed.toml file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)

    @classmethod
    def find_and_load(cls, start_dir: Optional[Path] = None) -> Config:
        """
        Find and load configuration from keyhub-seed.toml.

        Searches for keyhub-seed.toml starting from start_dir and walking up
        parent directories until found or reaching filesystem root.

        Args:
            start_dir: Directory to start search (defaults to current directory)

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If no config file found
        """
        if start_dir is None:
            start_dir = Path.cwd()

        current = Path(start_dir).resolve()

        while True:
            config_path = current / CONFIG_FILENAME
            if config_path.exists():
                return cls.from_toml(config_path)

            parent = current.parent
            if parent == current:
                break
            current = parent

        raise FileNotFoundError(
            f"No {CONFIG_FILENAME} found in {start_dir} or parent directories. "
            f"Run 'keyhub-seed init' to create one."
        )

    def to_toml(self, path: Path | str) -> None:
        """
        Write configuration to TOML file.

        The admin password is written as-is; keep the file out of version control.

        Args:
            path: Path to write keyhub-seed.toml
        """
        config_path = Path(path)

        toml_content = f"""# keyhub-seed configuration

[database]
url = {_toml_string(self.database.url)}
min_size = {self.database.min_size}
max_size = {self.database.max_size}

[admin]
email = {_toml_string(self.admin.email)}
password = {_toml_string(self.admin.password)}
name = {_toml_string(self.admin.name)}
org_code = {_toml_string(self.admin.org_code)}
org_name = {_toml_string(self.admin.org_name)}

[factory]
batch_size = {self.factory.batch_size}
max_retries = {self.factory.max_retries}
unique_max_attempts = {self.factory.unique_max_attempts}
transaction_timeout = {self.factory.transaction_timeout}
max_wait = {self.factory.max_wait}
bcrypt_rounds = {self.factory.bcrypt_rounds}

[defaults]
environment = {_toml_string(self.defaults.environment)}
user_count = {self.defaults.user_count}
license_count = {self.defaults.license_count}
logs_per_license = {self.defaults.logs_per_license}
realistic_days = {self.defaults.realistic_days}
"""

        config_path.write_text(toml_content, encoding="utf-8")


