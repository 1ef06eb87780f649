#!/usr/bin/env python3

"""Infrastructure configuration module."""

from .application_config import Config

__all__ = ["Config"]
