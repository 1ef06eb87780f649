#!/usr/bin/env python3

"""Domain layer: profile model and the services that build and query it."""
