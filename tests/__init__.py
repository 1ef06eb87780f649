"""Test suite for isr.

Test Structure:
- domain/: Type model, resolver, registration policy and both normalizers
- infrastructure/: PDB container readers, JSON codec, logging, platform detection
- config/: Tests for configuration management
- application/: Profile builders end to end
- test_main.py: Command line interface

Run tests with pytest:
    pytest                    # Run all tests
    pytest -m unit            # Run unit tests only
"""
