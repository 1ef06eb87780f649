"""Mock DIE factories for DWARF normalizer tests."""

from collections.abc import Callable, Sequence
from itertools import count
from types import SimpleNamespace
from typing import Any
from unittest.mock import Mock

import pytest

DieFactory = Callable[..., Mock]

# Forms used for mocked attribute values
CONSTANT_FORM = "DW_FORM_udata"
STRING_FORM = "DW_FORM_strp"
REFERENCE_FORM = "DW_FORM_ref4"


@pytest.fixture
def make_die() -> DieFactory:
    """
    Build mock DIEs shaped like pyelftools DIEs.

    Attribute values are wrapped in objects with ``value`` and ``form``;
    ``type_die`` wires up ``DW_AT_type`` and ``get_DIE_from_attribute``.
    """
    offsets = count(0x100, 0x10)

    def factory(
        tag: str,
        attributes: dict[str, Any] | None = None,
        children: Sequence[Mock] = (),
        type_die: Mock | None = None,
        offset: int | None = None,
        cu: Any = None,
    ) -> Mock:
        die = Mock()
        die.tag = tag
        die.offset = next(offsets) if offset is None else offset
        die.cu = cu
        die.attributes = {}
        for name, value in (attributes or {}).items():
            form = STRING_FORM if isinstance(value, bytes) else CONSTANT_FORM
            die.attributes[name] = Mock(value=value, form=form)

        if type_die is not None:
            die.attributes["DW_AT_type"] = Mock(value=type_die.offset, form=REFERENCE_FORM)
            die.get_DIE_from_attribute.return_value = type_die

        die.iter_children.side_effect = lambda: iter(children)
        return die

    return factory


@pytest.fixture
def make_base(make_die: DieFactory) -> Callable[[bytes, int, int], Mock]:
    """DW_TAG_base_type DIE from name, byte size and DW_ATE encoding."""

    def factory(name: bytes, byte_size: int, encoding: int) -> Mock:
        return make_die(
            "DW_TAG_base_type",
            {"DW_AT_name": name, "DW_AT_byte_size": byte_size, "DW_AT_encoding": encoding},
        )

    return factory


@pytest.fixture
def line_program() -> SimpleNamespace:
    """DWARF 4 line program header with one include directory and two files."""
    return SimpleNamespace(
        header={
            "version": 4,
            "include_directory": [b"include/linux"],
            "file_entry": [
                SimpleNamespace(name=b"main.c", dir_index=0),
                SimpleNamespace(name=b"sched.h", dir_index=1),
            ],
        }
    )


@pytest.fixture
def dwarf_info(line_program: SimpleNamespace) -> Mock:
    info = Mock()
    info.config.little_endian = True
    info.line_program_for_CU.return_value = line_program
    return info
