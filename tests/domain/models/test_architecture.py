#!/usr/bin/env python3

"""Unit tests for Architecture and Profile construction."""

import pytest

from isr.domain.models.errors import IsrError, UnsupportedArchitectureError
from isr.domain.models.profile import Architecture, Profile


class TestArchitecture:
    """Tests for architecture tags and machine mappings."""

    @pytest.mark.unit
    def test_string_representation(self) -> None:
        assert str(Architecture.AMD64) == "Amd64"
        assert str(Architecture.ARM) == "Arm"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("architecture", "pointer_size"),
        [
            (Architecture.X86, 4),
            (Architecture.ARM, 4),
            (Architecture.AMD64, 8),
            (Architecture.ARM64, 8),
        ],
    )
    def test_pointer_size(self, architecture: Architecture, pointer_size: int) -> None:
        assert architecture.pointer_size == pointer_size

    @pytest.mark.unit
    def test_parse(self) -> None:
        assert Architecture.parse("Arm64") == Architecture.ARM64
        assert Architecture.parse(Architecture.X86) == Architecture.X86

    @pytest.mark.unit
    def test_parse_unknown_tag(self) -> None:
        with pytest.raises(UnsupportedArchitectureError) as exc_info:
            Architecture.parse("Mips")
        assert exc_info.value.architecture == "Mips"
        assert isinstance(exc_info.value, ValueError)
        assert isinstance(exc_info.value, IsrError)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("machine", "architecture"),
        [
            (0x014C, Architecture.X86),
            (0x8664, Architecture.AMD64),
            (0x01C0, Architecture.ARM),
            (0x01C4, Architecture.ARM),
            (0xAA64, Architecture.ARM64),
        ],
    )
    def test_from_pe_machine(self, machine: int, architecture: Architecture) -> None:
        assert Architecture.from_pe_machine(machine) == architecture

    @pytest.mark.unit
    def test_from_pe_machine_unknown(self) -> None:
        with pytest.raises(UnsupportedArchitectureError):
            Architecture.from_pe_machine(0x0200)

    @pytest.mark.unit
    def test_from_elf_machine(self) -> None:
        assert Architecture.from_elf_machine("EM_X86_64") == Architecture.AMD64
        assert Architecture.from_elf_machine("EM_AARCH64") == Architecture.ARM64
        with pytest.raises(UnsupportedArchitectureError):
            Architecture.from_elf_machine("EM_PPC64")


class TestProfile:
    """Tests for Profile validation."""

    @pytest.mark.unit
    def test_string_architecture_is_converted(self) -> None:
        profile = Profile(architecture="Arm")  # type: ignore[arg-type]
        assert profile.architecture == Architecture.ARM
        assert profile.symbols == {}
        assert profile.types.structs == {}

    @pytest.mark.unit
    def test_unknown_architecture_rejected(self) -> None:
        with pytest.raises(UnsupportedArchitectureError):
            Profile(architecture="Sparc")  # type: ignore[arg-type]
