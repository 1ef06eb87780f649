#!/usr/bin/env python3

"""Unit tests for declaration-site deduplication and the merge rule."""

import pytest

from isr.domain.models.profile import Base, BaseKind, FieldInfo, StructInfo, StructKind
from isr.domain.services.parsing import DeclarationCache, DeclarationSite, MoreFieldsWins, RegistrationPolicy


def make_struct(field_count: int) -> StructInfo:
    return StructInfo(
        kind=StructKind.STRUCT,
        size=4 * field_count,
        fields={f"f{i}": FieldInfo(4 * i, Base(BaseKind.U32)) for i in range(field_count)},
    )


class TestDeclarationCache:
    """Tests for DeclarationCache."""

    @pytest.mark.unit
    def test_claim_once(self) -> None:
        cache = DeclarationCache()
        site = DeclarationSite("include/linux/list.h", 21, 8)

        assert cache.claim(site)
        assert not cache.claim(DeclarationSite("include/linux/list.h", 21, 8))
        assert site in cache
        assert len(cache) == 1

    @pytest.mark.unit
    def test_column_distinguishes_sites(self) -> None:
        cache = DeclarationCache()
        assert cache.claim(DeclarationSite("a.h", 1, 1))
        assert cache.claim(DeclarationSite("a.h", 1, 2))

    @pytest.mark.unit
    def test_site_string(self) -> None:
        assert str(DeclarationSite("a.h", 3, 7)) == "a.h:3:7"


class TestMoreFieldsWins:
    """Tests for the name collision merge rule."""

    @pytest.mark.unit
    def test_first_definition_is_inserted(self) -> None:
        structs: dict[str, StructInfo] = {}
        assert MoreFieldsWins().merge(structs, "foo", make_struct(1))
        assert len(structs["foo"].fields) == 1

    @pytest.mark.unit
    @pytest.mark.parametrize("order", [(1, 3), (3, 1)])
    def test_more_fields_wins_in_any_order(self, order: tuple[int, int]) -> None:
        structs: dict[str, StructInfo] = {}
        rule = MoreFieldsWins()
        for count in order:
            rule.merge(structs, "foo", make_struct(count))
        assert len(structs["foo"].fields) == 3

    @pytest.mark.unit
    def test_tie_keeps_existing(self) -> None:
        structs: dict[str, StructInfo] = {}
        rule = MoreFieldsWins()
        first = make_struct(2)
        rule.merge(structs, "foo", first)

        assert not rule.merge(structs, "foo", make_struct(2))
        assert structs["foo"] is first


class TestRegistrationPolicy:
    """Tests for RegistrationPolicy."""

    @pytest.mark.unit
    def test_duplicate_site_is_skipped(self) -> None:
        policy = RegistrationPolicy()
        site = DeclarationSite("include/linux/sched.h", 700, 8)

        assert policy.should_process(site, "task_struct")
        assert not policy.should_process(site, "task_struct")

    @pytest.mark.unit
    def test_missing_site_is_always_processed(self, caplog: pytest.LogCaptureFixture) -> None:
        policy = RegistrationPolicy()

        assert policy.should_process(None, "anon")
        assert policy.should_process(None, "anon")
        assert "incomplete declaration site" in caplog.text
        assert len(policy.declarations) == 0

    @pytest.mark.unit
    def test_register_applies_merge_rule(self) -> None:
        policy = RegistrationPolicy()
        structs: dict[str, StructInfo] = {}

        policy.register(structs, "foo", make_struct(2), "struct")
        policy.register(structs, "foo", make_struct(1), "struct")
        assert len(structs["foo"].fields) == 2
