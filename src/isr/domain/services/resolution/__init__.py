#!/usr/bin/env python3

"""Query engine over built profiles."""

from .profile_resolver import ProfileResolver

__all__ = ["ProfileResolver"]
