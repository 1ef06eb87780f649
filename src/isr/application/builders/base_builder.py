#!/usr/bin/env python3

"""Base class for profile builders.

A builder owns the debug-information files of one build. It is used as a
context manager; ``build()`` may only be called inside the ``with`` block.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from ...domain.models.profile import Profile
from ...infrastructure.logging import get_logger

logger = get_logger(__name__)


class ProfileBuilder(ABC):
    """Opens a debug-information source and turns it into a ``Profile``.

    Args:
        path: Primary input file (PDB or ELF image)
    """

    def __init__(self, path: Path):
        self.path = path
        self.file_handle: BinaryIO | None = None

    def __enter__(self) -> "ProfileBuilder":
        logger.debug(f"Opening {self.path}")
        self.file_handle = open(self.path, "rb")
        try:
            self._load()
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object | None
    ) -> None:
        self.close()

    def close(self) -> None:
        if self.file_handle is not None:
            self.file_handle.close()
            self.file_handle = None
            logger.debug(f"Closed {self.path}")

    @abstractmethod
    def _load(self) -> None:
        """Parse container headers from ``self.file_handle``."""

    @abstractmethod
    def build(self) -> Profile:
        """Run the normalizer and return the finished profile."""
