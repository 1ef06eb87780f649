#!/usr/bin/env python3

"""Tests for the PDB and DWARF profile builders."""

import struct
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from elftools.common.exceptions import ELFError
from elftools.construct.core import ConstructError

from isr.application.builders import (
    DwarfProfileBuilder,
    PdbProfileBuilder,
    create_profile_from_dwarf,
    create_profile_from_pdb,
)
from isr.domain.models.errors import DwarfFormatError, InvalidSystemMapError, PdbFormatError
from isr.domain.models.profile import Architecture, Base, BaseKind, FieldInfo, StructKind
from isr.domain.services.resolution import ProfileResolver
from isr.infrastructure.pdb.c_pdb import S_PUB32
from tests.pdb_images import build_pdb, kernel_pdb, public_symbol

SYSTEM_MAP = "ffffffff81000000 T _text\nffffffff82a12340 d init_task\nffffffff82c00000 B __bss_start\n"


class TestPdbProfileBuilder:
    """Tests for profiles built from assembled PDB files."""

    @pytest.mark.unit
    def test_create_profile(self, tmp_path: Path) -> None:
        pdb_path = tmp_path / "ntkrnlmp.pdb"
        pdb_path.write_bytes(kernel_pdb())

        profile = create_profile_from_pdb(pdb_path)

        assert profile.architecture == Architecture.AMD64
        assert profile.symbols == {"KiCounters": 0x200080, "KiSystemCall64": 0x1040}
        struct_info = profile.types.structs["_KCOUNTERS"]
        assert struct_info.kind == StructKind.STRUCT
        assert struct_info.size == 16
        assert struct_info.fields == {
            "Count": FieldInfo(0, Base(BaseKind.I32)),
            "Total": FieldInfo(8, Base(BaseKind.U64)),
        }
        assert ProfileResolver(profile).find_offset("_KCOUNTERS", "Total") == 8

    @pytest.mark.unit
    def test_unsupported_machine(self, tmp_path: Path) -> None:
        pdb_path = tmp_path / "mips.pdb"
        pdb_path.write_bytes(kernel_pdb(machine=0x0166))

        with pytest.raises(ValueError, match="unsupported architecture"):
            create_profile_from_pdb(pdb_path)

    @pytest.mark.unit
    def test_not_a_pdb(self, tmp_path: Path) -> None:
        pdb_path = tmp_path / "broken.pdb"
        pdb_path.write_bytes(b"\x00" * 1024)

        with pytest.raises(PdbFormatError):
            create_profile_from_pdb(pdb_path)

    @pytest.mark.unit
    def test_truncated_public_symbol(self, tmp_path: Path) -> None:
        short_record = struct.pack("<HH", 6, S_PUB32) + b"\x00" * 4
        pdb_path = tmp_path / "truncated.pdb"
        pdb_path.write_bytes(build_pdb([], [short_record, public_symbol(b"KiCounters", 1, 0)], sections=[0x1000]))

        with pytest.raises(PdbFormatError, match="truncated S_PUB32"):
            create_profile_from_pdb(pdb_path)

    @pytest.mark.unit
    def test_file_closed_after_build(self, tmp_path: Path) -> None:
        pdb_path = tmp_path / "ntkrnlmp.pdb"
        pdb_path.write_bytes(kernel_pdb())

        builder = PdbProfileBuilder(pdb_path)
        with builder:
            builder.build()
        assert builder.file_handle is None

    @pytest.mark.unit
    def test_build_outside_with_block(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            PdbProfileBuilder(tmp_path / "unused.pdb").build()


@pytest.fixture
def kernel_files(tmp_path: Path) -> tuple[Path, Path]:
    elf_path = tmp_path / "vmlinux"
    elf_path.write_bytes(b"\x7fELF")
    map_path = tmp_path / "System.map"
    map_path.write_text(SYSTEM_MAP)
    return elf_path, map_path


def mock_elf(machine: str = "EM_AARCH64") -> Mock:
    """ELF image with one compilation unit defining ``struct point``."""
    cu = SimpleNamespace(cu_offset=0x0B, header={"version": 4})

    base = Mock(tag="DW_TAG_base_type", offset=0x30)
    base.attributes = {
        "DW_AT_name": Mock(value=b"int", form="DW_FORM_strp"),
        "DW_AT_byte_size": Mock(value=4, form="DW_FORM_data1"),
        "DW_AT_encoding": Mock(value=5, form="DW_FORM_data1"),
    }
    member = Mock(tag="DW_TAG_member", offset=0x40)
    member.attributes = {
        "DW_AT_name": Mock(value=b"y", form="DW_FORM_strp"),
        "DW_AT_data_member_location": Mock(value=4, form="DW_FORM_data1"),
        "DW_AT_type": Mock(value=0x30, form="DW_FORM_ref4"),
    }
    member.get_DIE_from_attribute.return_value = base
    point = Mock(tag="DW_TAG_structure_type", offset=0x20, cu=cu)
    point.attributes = {
        "DW_AT_name": Mock(value=b"point", form="DW_FORM_strp"),
        "DW_AT_byte_size": Mock(value=8, form="DW_FORM_data1"),
    }
    point.iter_children.side_effect = lambda: iter([member])
    top = Mock(tag="DW_TAG_compile_unit")
    top.iter_children.side_effect = lambda: iter([point])
    cu.get_top_DIE = lambda: top

    dwarf_info = Mock()
    dwarf_info.config.little_endian = True
    dwarf_info.iter_CUs.side_effect = lambda: iter([cu])

    elf = Mock()
    elf.header = {"e_machine": machine}
    elf.little_endian = True
    elf.has_dwarf_info.return_value = True
    elf.get_dwarf_info.return_value = dwarf_info
    return elf


class TestDwarfProfileBuilder:
    """Tests for profiles built from ELF images and System.map files."""

    ELF_FILE = "isr.application.builders.dwarf_profile_builder.ELFFile"

    @pytest.mark.unit
    def test_create_profile(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        with patch(self.ELF_FILE, return_value=mock_elf()):
            profile = create_profile_from_dwarf(elf_path, map_path)

        assert profile.architecture == Architecture.ARM64
        assert profile.symbols == {"_text": 0xFFFFFFFF81000000, "init_task": 0xFFFFFFFF82A12340}
        assert profile.types.structs["point"].size == 8
        assert profile.types.structs["point"].fields == {"y": FieldInfo(4, Base(BaseKind.I32))}

    @pytest.mark.unit
    def test_architecture_override(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        with patch(self.ELF_FILE, return_value=mock_elf()):
            profile = create_profile_from_dwarf(elf_path, map_path, "Arm")

        assert profile.architecture == Architecture.ARM

    @pytest.mark.unit
    def test_unknown_machine_falls_back_to_amd64(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        with patch(self.ELF_FILE, return_value=mock_elf("EM_RISCV")):
            profile = create_profile_from_dwarf(elf_path, map_path)

        assert profile.architecture == Architecture.AMD64

    @pytest.mark.unit
    def test_no_dwarf_info(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        elf = mock_elf()
        elf.has_dwarf_info.return_value = False

        with patch(self.ELF_FILE, return_value=elf), pytest.raises(DwarfFormatError, match="No DWARF info"):
            create_profile_from_dwarf(elf_path, map_path)

    @pytest.mark.unit
    def test_not_an_elf(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        builder = DwarfProfileBuilder(elf_path, map_path)

        with patch(self.ELF_FILE, side_effect=ELFError("Magic number does not match")):
            with pytest.raises(DwarfFormatError):
                builder.__enter__()
        assert builder.file_handle is None

    @pytest.mark.unit
    def test_corrupt_compilation_unit(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        elf = mock_elf()
        elf.get_dwarf_info.return_value.iter_CUs.side_effect = ConstructError("expected 4, found 2")

        with patch(self.ELF_FILE, return_value=elf), pytest.raises(DwarfFormatError, match="Cannot decode"):
            create_profile_from_dwarf(elf_path, map_path, "Amd64")

    @pytest.mark.unit
    def test_truncated_debug_sections(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        elf = mock_elf()
        elf.get_dwarf_info.side_effect = ConstructError("expected 11, found 3")

        with patch(self.ELF_FILE, return_value=elf), pytest.raises(DwarfFormatError, match="Cannot read"):
            create_profile_from_dwarf(elf_path, map_path)

    @pytest.mark.unit
    def test_invalid_system_map(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        map_path.write_text("ffffffff81000000 T _text\ngarbage\n")

        with patch(self.ELF_FILE, return_value=mock_elf()), pytest.raises(InvalidSystemMapError):
            create_profile_from_dwarf(elf_path, map_path)

    @pytest.mark.unit
    def test_invalid_architecture_override(self, kernel_files: tuple[Path, Path]) -> None:
        elf_path, map_path = kernel_files
        with pytest.raises(ValueError):
            DwarfProfileBuilder(elf_path, map_path, "Sparc")
