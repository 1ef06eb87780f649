#!/usr/bin/env python3

"""Normalizers turning PDB and DWARF debug information into profile data."""

from .registration_policy import DeclarationCache, DeclarationSite, MoreFieldsWins, RegistrationPolicy

__all__ = ["DeclarationCache", "DeclarationSite", "MoreFieldsWins", "RegistrationPolicy"]
