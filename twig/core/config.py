"""Configuration management for Twig.

Reads and writes the repository-local and global configuration files.
The repository file records whether the repository is bare; both files
may carry the user identity stamped on commits.
"""

import configparser
import io
import os
from pathlib import Path
from typing import Optional, Tuple

from twig.utils.fs import atomic_write_text

DEFAULT_NAME = 'Twig'
DEFAULT_EMAIL = 'twig@localhost'


class Config:
    """
    Manages Twig configuration files.

    Configuration is stored in INI format:
    - Global config: ~/.twigconfig
    - Repository config: <repo>/config

    Environment variables take highest precedence, then repository
    config, then global config.
    """

    GLOBAL_CONFIG_PATH = Path.home() / '.twigconfig'

    def __init__(self, repo_config_path: Optional[Path] = None):
        """
        Args:
            repo_config_path: Path to repository config file, if in a repo
        """
        self.repo_config_path = repo_config_path
        self._global_config = None
        self._repo_config = None

    @property
    def global_config(self) -> configparser.ConfigParser:
        """The ~/.twigconfig parser, loaded on first use."""
        if self._global_config is None:
            self._global_config = configparser.ConfigParser()
            if self.GLOBAL_CONFIG_PATH.exists():
                self._global_config.read(self.GLOBAL_CONFIG_PATH)
        return self._global_config

    @property
    def repo_config(self) -> Optional[configparser.ConfigParser]:
        """The repository config parser, or None when there is no repository."""
        if self._repo_config is None and self.repo_config_path:
            self._repo_config = configparser.ConfigParser()
            if self.repo_config_path.exists():
                self._repo_config.read(self.repo_config_path)
        return self._repo_config

    def get(self, section: str, key: str, fallback: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value.

        Priority order (highest to lowest):
        1. Environment variables (TWIG_<SECTION>_<KEY>)
        2. Repository config
        3. Global config
        4. Fallback value
        """
        env_value = os.environ.get(f"TWIG_{section.upper()}_{key.upper()}")
        if env_value is not None:
            return env_value

        if self.repo_config and self.repo_config.has_option(section, key):
            return self.repo_config.get(section, key)

        if self.global_config.has_option(section, key):
            return self.global_config.get(section, key)

        return fallback

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """
        Get a configuration value as a boolean.

        Accepts 1/true/yes/on (any case) as true; any other value is false.

        Args:
            section: Config section name
            key: Key within the section
            fallback: Value returned when the key is not set anywhere
        """
        value = self.get(section, key)
        if value is None:
            return fallback
        return value.strip().lower() in ('1', 'true', 'yes', 'on')

    def set(self, section: str, key: str, value: str, global_config: bool = False) -> None:
        """
        Set a configuration value and persist the file.

        Args:
            section: Config section
            key: Config key
            value: Value to set
            global_config: If True, write to global config; otherwise repo config
        """
        if global_config:
            config = self.global_config
            config_path = self.GLOBAL_CONFIG_PATH
        else:
            if not self.repo_config_path:
                raise ValueError("No repository config path available")
            config = self.repo_config
            config_path = self.repo_config_path

        if not config.has_section(section):
            config.add_section(section)
        config.set(section, key, value)

        buffer = io.StringIO()
        config.write(buffer)
        atomic_write_text(config_path, buffer.getvalue())

    def is_bare(self) -> bool:
        """Whether the repository-mode marker says the repository is bare."""
        return self.get_bool('core', 'bare')

    def get_user_identity(self) -> Tuple[str, str]:
        """Name and email for commits, with a fallback identity."""
        name = self.get('user', 'name', DEFAULT_NAME)
        email = self.get('user', 'email', DEFAULT_EMAIL)
        return name, email

    def signature(self) -> str:
        """Identity rendered as ``Name <email>``."""
        name, email = self.get_user_identity()
        return f"{name} <{email}>"


def get_config(repo=None) -> Config:
    """
    Get a Config instance.

    Args:
        repo: Repository instance, or None for global-only config
    """
    if repo:
        return Config(repo.config_file)
    return Config()
