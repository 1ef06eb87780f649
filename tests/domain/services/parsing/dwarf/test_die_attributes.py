#!/usr/bin/env python3

"""Unit tests for DIE attribute accessors and declaration sites."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from elftools.dwarf.structs import DWARFStructs

from isr.domain.services.parsing import DeclarationSite
from isr.domain.services.parsing.dwarf.die_attributes import (
    DeclarationSiteResolver,
    data_member_location,
    die_name,
    is_declaration,
    type_name,
    udata,
)


class TestAttributeAccessors:
    """Tests for udata(), die_name() and friends."""

    @pytest.mark.unit
    def test_udata(self, make_die) -> None:
        die = make_die("DW_TAG_member", {"DW_AT_byte_size": 8})
        assert udata(die, "DW_AT_byte_size") == 8
        assert udata(die, "DW_AT_bit_size") is None

    @pytest.mark.unit
    def test_udata_rejects_non_constants(self, make_die) -> None:
        die = make_die("DW_TAG_member", {"DW_AT_byte_size": -4, "DW_AT_count": True})
        die.attributes["DW_AT_upper_bound"] = Mock(value=0x2A0, form="DW_FORM_ref4")

        assert udata(die, "DW_AT_byte_size") is None
        assert udata(die, "DW_AT_count") is None
        assert udata(die, "DW_AT_upper_bound") is None

    @pytest.mark.unit
    def test_names(self, make_die) -> None:
        named = make_die("DW_TAG_structure_type", {"DW_AT_name": b"task_struct"})
        anonymous = make_die("DW_TAG_union_type", offset=0x2A)
        invalid = make_die("DW_TAG_structure_type", {"DW_AT_name": b"bad\xff"})

        assert die_name(named) == "task_struct"
        assert type_name(named) == "task_struct"
        assert die_name(anonymous) is None
        assert type_name(anonymous) == "__unnamed_2a"
        assert die_name(invalid) == "bad\ufffd"

    @pytest.mark.unit
    def test_is_declaration(self, make_die) -> None:
        assert is_declaration(make_die("DW_TAG_structure_type", {"DW_AT_declaration": True}))
        assert not is_declaration(make_die("DW_TAG_structure_type"))


class TestMemberLocation:
    """Tests for DW_AT_data_member_location constants and expressions."""

    CU = SimpleNamespace(structs=DWARFStructs(little_endian=True, dwarf_format=32, address_size=8))

    def location(self, make_die, value) -> int | None:
        return data_member_location(make_die("DW_TAG_member", {"DW_AT_data_member_location": value}, cu=self.CU))

    @pytest.mark.unit
    def test_constant_location(self, make_die) -> None:
        assert self.location(make_die, 24) == 24
        assert data_member_location(make_die("DW_TAG_member")) is None

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("expression", "offset"),
        [
            ([0x23, 0x02], 2),
            ([0x23, 0x90, 0x01], 0x90),
            ([0x23, 0xE5, 0x8E, 0x26], 624485),
        ],
    )
    def test_plus_uconst_expression(self, make_die, expression: list[int], offset: int) -> None:
        assert self.location(make_die, expression) == offset

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "expression",
        [
            [0x10, 0x08],  # DW_OP_constu
            [0x23, 0x08, 0x23, 0x08],
            [0x23, 0x80, 0x80],
            [0x01],
        ],
    )
    def test_unsupported_expression(self, make_die, expression: list[int]) -> None:
        assert self.location(make_die, expression) is None


class TestDeclarationSiteResolver:
    """Tests for declaration site resolution through the line program."""

    @pytest.mark.unit
    def test_resolve_with_directory(self, make_die, dwarf_info: Mock) -> None:
        cu = SimpleNamespace(cu_offset=0x0B)
        die = make_die(
            "DW_TAG_structure_type",
            {"DW_AT_decl_file": 2, "DW_AT_decl_line": 741, "DW_AT_decl_column": 8},
            cu=cu,
        )

        site = DeclarationSiteResolver(dwarf_info).resolve(die)
        assert site == DeclarationSite("include/linux/sched.h", 741, 8)

    @pytest.mark.unit
    def test_resolve_without_directory(self, make_die, dwarf_info: Mock) -> None:
        """Directory index 0 is the compilation directory before DWARF 5."""
        cu = SimpleNamespace(cu_offset=0x0B)
        die = make_die(
            "DW_TAG_structure_type",
            {"DW_AT_decl_file": 1, "DW_AT_decl_line": 3, "DW_AT_decl_column": 1},
            cu=cu,
        )
        assert DeclarationSiteResolver(dwarf_info).resolve(die) == DeclarationSite("main.c", 3, 1)

    @pytest.mark.unit
    def test_dwarf5_indices_are_zero_based(self, make_die) -> None:
        program = SimpleNamespace(
            header={
                "version": 5,
                "include_directory": [SimpleNamespace(DW_LNCT_path=b"/build/linux")],
                "file_entry": [SimpleNamespace(name=b"init/main.c", dir_index=0)],
            }
        )
        dwarf_info = Mock()
        dwarf_info.line_program_for_CU.return_value = program
        die = make_die(
            "DW_TAG_structure_type",
            {"DW_AT_decl_file": 0, "DW_AT_decl_line": 10, "DW_AT_decl_column": 5},
            cu=SimpleNamespace(cu_offset=0),
        )

        site = DeclarationSiteResolver(dwarf_info).resolve(die)
        assert site == DeclarationSite("/build/linux/init/main.c", 10, 5)

    @pytest.mark.unit
    def test_incomplete_site(self, make_die, dwarf_info: Mock) -> None:
        cu = SimpleNamespace(cu_offset=0x0B)
        no_column = make_die("DW_TAG_structure_type", {"DW_AT_decl_file": 2, "DW_AT_decl_line": 741}, cu=cu)
        bad_file = make_die(
            "DW_TAG_structure_type",
            {"DW_AT_decl_file": 9, "DW_AT_decl_line": 1, "DW_AT_decl_column": 1},
            cu=cu,
        )

        resolver = DeclarationSiteResolver(dwarf_info)
        assert resolver.resolve(no_column) is None
        assert resolver.resolve(bad_file) is None

    @pytest.mark.unit
    def test_line_program_cached_per_unit(self, make_die, dwarf_info: Mock) -> None:
        cu = SimpleNamespace(cu_offset=0x0B)
        attributes = {"DW_AT_decl_file": 2, "DW_AT_decl_line": 1, "DW_AT_decl_column": 1}
        resolver = DeclarationSiteResolver(dwarf_info)

        resolver.resolve(make_die("DW_TAG_structure_type", attributes, cu=cu))
        resolver.resolve(make_die("DW_TAG_union_type", attributes, cu=cu))

        dwarf_info.line_program_for_CU.assert_called_once_with(cu)
