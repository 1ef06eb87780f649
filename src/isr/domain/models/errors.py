#!/usr/bin/env python3

"""Exception taxonomy for profile ingestion and resolution.

Ingestion errors are fatal to a single build and never leave a partial
profile behind. Lookup errors are raised at query time and are expected
to be handled by callers probing optional symbols or fields.
"""


class IsrError(Exception):
    """Base exception for this package."""


class IngestionError(IsrError):
    """A debug-information source could not be turned into a profile."""


class PdbFormatError(IngestionError):
    """The PDB container or one of its streams is malformed."""


class DwarfFormatError(IngestionError):
    """The ELF image or its DWARF sections could not be read."""


class InvalidSystemMapError(IngestionError):
    """A System.map line is missing fields or carries a non-hex address."""

    def __init__(self, line_number: int, line: str, reason: str):
        super().__init__(f"invalid System.map line {line_number}: {reason}: {line!r}")
        self.line_number = line_number
        self.line = line
        self.reason = reason


class UnsupportedArchitectureError(IsrError, ValueError):
    """The architecture tag is not one of X86, Arm, Amd64 or Arm64."""

    def __init__(self, architecture: object):
        super().__init__(f"unsupported architecture: {architecture!r}")
        self.architecture = architecture


class ProfileLookupError(IsrError, LookupError):
    """Base class for query-time lookup failures."""


class SymbolNotFoundError(ProfileLookupError):
    def __init__(self, name: str):
        super().__init__(f"symbol not found: {name}")
        self.name = name


class TypeNotFoundError(ProfileLookupError):
    def __init__(self, name: str):
        super().__init__(f"type not found: {name}")
        self.name = name


class FieldNotFoundError(ProfileLookupError):
    def __init__(self, type_name: str, field_name: str):
        super().__init__(f"field not found: {type_name}.{field_name}")
        self.type_name = type_name
        self.field_name = field_name


class ConversionError(IsrError, TypeError):
    """A field descriptor does not have the requested shape."""


class CodecError(IsrError):
    """A serialized profile could not be decoded."""
