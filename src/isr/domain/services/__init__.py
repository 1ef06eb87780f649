#!/usr/bin/env python3

"""Domain services for profile normalization and resolution."""
