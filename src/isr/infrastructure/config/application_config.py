#!/usr/bin/env python3

"""Application configuration: defaults, .env file, environment and CLI arguments."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from ...domain.models.profile import Architecture

ENV_PREFIX = "ISR_"
TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass
class Config:
    """Settings shared by all commands."""

    output_path: Path = Path("profile.json")
    log_dir: Optional[Path] = Path("logs")
    verbose: bool = False
    architecture: Optional[str] = None

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Config":
        """
        Load configuration from ISR_* environment variables and an optional .env file.

        Args:
            env_path: .env file to load (defaults to .env in the current directory)

        Returns:
            Config object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        config = cls()
        output_path = os.getenv(f"{ENV_PREFIX}OUTPUT_PATH")
        if output_path:
            config.output_path = Path(output_path)

        log_dir = os.getenv(f"{ENV_PREFIX}LOG_DIR")
        if log_dir is not None:
            # An empty value disables the log file
            config.log_dir = Path(log_dir) if log_dir else None

        config.verbose = os.getenv(f"{ENV_PREFIX}VERBOSE", "false").lower() in TRUE_VALUES
        config.architecture = os.getenv(f"{ENV_PREFIX}ARCHITECTURE") or None
        return config

    @classmethod
    def from_args(
        cls,
        output_path: Optional[Path] = None,
        verbose: Optional[bool] = None,
        architecture: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ) -> "Config":
        """
        Create configuration from explicit arguments, falling back to the environment.

        Arguments left as None keep the environment (or default) value.
        """
        config = cls.from_env()

        if output_path is not None:
            config.output_path = output_path
        if verbose:
            config.verbose = True
        if architecture is not None:
            config.architecture = architecture
        if log_dir is not None:
            config.log_dir = log_dir

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ValueError: If the architecture override is not a known architecture
        """
        if self.architecture is not None:
            Architecture.parse(self.architecture)

    def ensure_output_dir(self) -> None:
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
