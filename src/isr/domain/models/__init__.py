#!/usr/bin/env python3

"""Domain models: profile data model and error taxonomy."""
