#!/usr/bin/env python3

"""JSON encoding of profiles.

Types are objects tagged by ``"kind"``::

    {"kind": "base", "subkind": "u32"}
    {"kind": "struct", "name": "_LIST_ENTRY"}
    {"kind": "array", "subtype": {...}, "dims": [16], "size": 16}
    {"kind": "bitfield", "subtype": {...}, "bit_length": 3, "bit_position": 5}

Enumerators keep their width and signedness::

    {"kind": "i32", "value": -1}

A bare integer is also accepted and decodes to the smallest variant holding it.
"""

import json
from pathlib import Path
from typing import Any, TextIO

from ...domain.models.errors import CodecError, UnsupportedArchitectureError
from ...domain.models.profile import (
    Array,
    Base,
    BaseKind,
    Bitfield,
    EnumInfo,
    EnumRef,
    FieldInfo,
    Function,
    Pointer,
    Profile,
    StructInfo,
    StructKind,
    StructRef,
    Type,
    TypeCollection,
    Variant,
    VariantKind,
)
from ..logging import get_logger

logger = get_logger(__name__)


def encode_type(type_: Type) -> dict[str, Any]:
    if isinstance(type_, Base):
        return {"kind": "base", "subkind": type_.kind.value}
    if isinstance(type_, EnumRef):
        return {"kind": "enum", "name": type_.name}
    if isinstance(type_, StructRef):
        return {"kind": "struct", "name": type_.name}
    if isinstance(type_, Array):
        return {
            "kind": "array",
            "subtype": encode_type(type_.element_type),
            "dims": list(type_.dims),
            "size": type_.total_count,
        }
    if isinstance(type_, Pointer):
        return {"kind": "pointer", "subtype": encode_type(type_.pointee_type)}
    if isinstance(type_, Bitfield):
        return {
            "kind": "bitfield",
            "subtype": encode_type(type_.underlying_type),
            "bit_length": type_.bit_length,
            "bit_position": type_.bit_position,
        }
    if isinstance(type_, Function):
        return {"kind": "function"}
    raise TypeError(f"not a profile type: {type_!r}")


def decode_type(data: dict[str, Any]) -> Type:
    kind = data["kind"]
    if kind == "base":
        return Base(BaseKind(data["subkind"]))
    if kind == "enum":
        return EnumRef(data["name"])
    if kind == "struct":
        return StructRef(data["name"])
    if kind == "array":
        return Array(decode_type(data["subtype"]), tuple(data["dims"]), data["size"])
    if kind == "pointer":
        return Pointer(decode_type(data["subtype"]))
    if kind == "bitfield":
        return Bitfield(decode_type(data["subtype"]), data["bit_length"], data["bit_position"])
    if kind == "function":
        return Function()
    raise ValueError(f"unknown type kind {kind!r}")


def encode_variant(variant: Variant) -> dict[str, Any]:
    return {"kind": variant.kind.label, "value": variant.value}


def decode_variant(data: dict[str, Any] | int) -> Variant:
    if isinstance(data, bool):
        raise TypeError(f"enumerator value must be an integer, got {data!r}")
    if isinstance(data, int):
        return Variant.fit(data)
    return Variant(VariantKind.from_label(data["kind"]), data["value"])


def to_dict(profile: Profile) -> dict[str, Any]:
    return {
        "architecture": profile.architecture.value,
        "symbols": dict(profile.symbols),
        "types": {
            "enums": {
                name: {
                    "subtype": encode_type(enum.subtype),
                    "fields": {field: encode_variant(variant) for field, variant in enum.fields.items()},
                }
                for name, enum in profile.types.enums.items()
            },
            "structs": {
                name: {
                    "kind": struct.kind.value,
                    "size": struct.size,
                    "fields": {
                        field: {"offset": info.offset, "type": encode_type(info.type)}
                        for field, info in struct.fields.items()
                    },
                }
                for name, struct in profile.types.structs.items()
            },
        },
    }


def from_dict(data: dict[str, Any]) -> Profile:
    """
    Rebuild a profile from its JSON object form.

    Raises:
        CodecError: If a required key is missing or a value is invalid
        UnsupportedArchitectureError: If the architecture tag is unknown
    """
    try:
        types = TypeCollection(
            enums={
                name: EnumInfo(
                    subtype=decode_type(enum["subtype"]),
                    fields={field: decode_variant(value) for field, value in enum["fields"].items()},
                )
                for name, enum in data["types"]["enums"].items()
            },
            structs={
                name: StructInfo(
                    kind=StructKind(struct["kind"]),
                    size=struct["size"],
                    fields={
                        field: FieldInfo(offset=info["offset"], type=decode_type(info["type"]))
                        for field, info in struct["fields"].items()
                    },
                )
                for name, struct in data["types"]["structs"].items()
            },
        )
        symbols = {name: int(address) for name, address in data["symbols"].items()}
        architecture = data["architecture"]
    except UnsupportedArchitectureError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise CodecError(f"malformed profile: {e!r}") from e

    return Profile(architecture=architecture, symbols=symbols, types=types)


def dumps(profile: Profile, indent: int | None = None) -> str:
    return json.dumps(to_dict(profile), indent=indent)


def loads(text: str | bytes) -> Profile:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CodecError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise CodecError("profile must be a JSON object")
    return from_dict(data)


def encode(profile: Profile, fp: TextIO, indent: int | None = None) -> None:
    json.dump(to_dict(profile), fp, indent=indent)


def decode(fp: TextIO) -> Profile:
    return loads(fp.read())


def save(profile: Profile, path: Path, indent: int | None = None) -> None:
    """Write a profile to ``path`` as UTF-8 JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        encode(profile, f, indent=indent)
    logger.info(f"Profile written to {path}")


def load(path: Path) -> Profile:
    with open(path, encoding="utf-8") as f:
        return decode(f)
