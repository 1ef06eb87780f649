"""Pytest configuration and shared fixtures."""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from isr.domain.models.profile import (
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
    TypeCollection,
    Variant,
    VariantKind,
)
from isr.infrastructure.logging import LoggerSetup

ENV_VARIABLES = ("ISR_OUTPUT_PATH", "ISR_LOG_DIR", "ISR_VERBOSE", "ISR_ARCHITECTURE")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove ISR_* variables for the duration of a test, including ones a .env file sets."""
    for name in ENV_VARIABLES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def reset_logging() -> Generator[None, None, None]:
    """Undo LoggerSetup.initialize() after the test."""
    yield
    LoggerSetup.reset()


@pytest.fixture
def sample_types() -> TypeCollection:
    """
    Small kernel-like type collection.

    ``task_struct`` embeds an anonymous union and a ``list_head``; ``cycle_a``
    and ``cycle_b`` embed each other; ``mm`` refers to a struct that was
    never defined.
    """
    return TypeCollection(
        enums={
            "pid_type": EnumInfo(
                subtype=Base(BaseKind.U32),
                fields={
                    "PIDTYPE_PID": Variant(VariantKind.U8, 0),
                    "PIDTYPE_TGID": Variant(VariantKind.U8, 1),
                    "PIDTYPE_MAX": Variant(VariantKind.U8, 4),
                },
            ),
        },
        structs={
            "list_head": StructInfo(
                kind=StructKind.STRUCT,
                size=16,
                fields={
                    "next": FieldInfo(0, Pointer(StructRef("list_head"))),
                    "prev": FieldInfo(8, Pointer(StructRef("list_head"))),
                },
            ),
            "__unnamed_1a2b": StructInfo(
                kind=StructKind.UNION,
                size=8,
                fields={
                    "pid": FieldInfo(0, Base(BaseKind.I32)),
                    "raw": FieldInfo(0, Base(BaseKind.U64)),
                },
            ),
            "task_struct": StructInfo(
                kind=StructKind.STRUCT,
                size=80,
                fields={
                    "state": FieldInfo(0, Base(BaseKind.I64)),
                    "flags": FieldInfo(8, Base(BaseKind.U32)),
                    "__unnamed_field_2": FieldInfo(16, StructRef("__unnamed_1a2b")),
                    "tasks": FieldInfo(24, StructRef("list_head")),
                    "comm": FieldInfo(40, Array(Base(BaseKind.CHAR), (16,), 16)),
                    "sched_bits": FieldInfo(56, Bitfield(Base(BaseKind.U32), 3, 5)),
                    "pid_kind": FieldInfo(60, EnumRef("pid_type")),
                    "mm": FieldInfo(64, StructRef("mm_struct")),
                    "callback": FieldInfo(72, Pointer(Function())),
                },
            ),
            "cycle_a": StructInfo(
                kind=StructKind.STRUCT,
                size=16,
                fields={"head": FieldInfo(0, Base(BaseKind.U32)), "b": FieldInfo(4, StructRef("cycle_b"))},
            ),
            "cycle_b": StructInfo(
                kind=StructKind.STRUCT,
                size=16,
                fields={"a": FieldInfo(8, StructRef("cycle_a"))},
            ),
        },
    )


@pytest.fixture
def sample_profile(sample_types: TypeCollection) -> Profile:
    return Profile(
        architecture="Amd64",
        symbols={
            "_text": 0xFFFFFFFF81000000,
            "init_task": 0xFFFFFFFF82A12340,
            "linux_banner": 0xFFFFFFFF82200100,
        },
        types=sample_types,
    )
