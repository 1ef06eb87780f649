#!/usr/bin/env python3

"""Serialization of built profiles."""

from . import json_codec

__all__ = ["json_codec"]
