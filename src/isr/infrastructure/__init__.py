#!/usr/bin/env python3

"""Infrastructure: logging, configuration, file readers and codecs."""
