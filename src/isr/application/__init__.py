#!/usr/bin/env python3

"""Application layer: orchestration of profile builds."""
