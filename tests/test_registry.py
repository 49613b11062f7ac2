"""Tests for tagguard.core.registry — tag name <-> id arena."""

from __future__ import annotations

import pytest

from tagguard.core.errors import TagGuardError, UnknownTag
from tagguard.core.registry import TagRegistry, iter_bits


class TestTagRegistry:
    def test_intern_allocates_dense_ids(self) -> None:
        registry = TagRegistry()
        assert registry.intern("a") == 0
        assert registry.intern("b") == 1
        assert registry.intern("c") == 2
        assert len(registry) == 3

    def test_intern_is_idempotent(self) -> None:
        registry = TagRegistry(["a", "b"])
        assert registry.intern("a") == 0
        assert registry.intern("b") == 1
        assert len(registry) == 2

    def test_name_of_roundtrip(self) -> None:
        registry = TagRegistry(["x", "y"])
        assert registry.name_of(registry.id_of("y")) == "y"

    def test_name_of_unknown_id(self) -> None:
        registry = TagRegistry(["x"])
        with pytest.raises(UnknownTag):
            registry.name_of(5)
        with pytest.raises(UnknownTag):
            registry.name_of(-1)

    def test_id_of_unknown_name(self) -> None:
        registry = TagRegistry(["x"])
        with pytest.raises(UnknownTag) as exc_info:
            registry.id_of("nope")
        assert exc_info.value.names == ("nope",)
        assert isinstance(exc_info.value, LookupError)

    def test_empty_name_rejected(self) -> None:
        registry = TagRegistry()
        with pytest.raises(ValueError, match="non-empty"):
            registry.intern("")

    def test_frozen_registry_rejects_new_names(self) -> None:
        registry = TagRegistry(["a"])
        registry.freeze()
        assert registry.frozen
        assert registry.intern("a") == 0
        with pytest.raises(TagGuardError, match="frozen"):
            registry.intern("b")

    def test_mask_of_reports_every_unknown_name(self) -> None:
        registry = TagRegistry(["a", "b"])
        with pytest.raises(UnknownTag) as exc_info:
            registry.mask_of(["a", "typo", "b", "other", "typo"])
        assert exc_info.value.names == ("typo", "other")

    def test_mask_of_rejects_a_bare_string(self) -> None:
        registry = TagRegistry(["scp", "s", "c", "p"])
        with pytest.raises(TypeError, match="not the string 'scp'"):
            registry.mask_of("scp")

    def test_mask_and_names_in(self) -> None:
        registry = TagRegistry(["a", "b", "c"])
        mask = registry.mask_of(["c", "a"])
        assert mask == 0b101
        assert registry.names_in(mask) == ("a", "c")

    def test_contains_and_iter(self) -> None:
        registry = TagRegistry(["a", "b"])
        assert "a" in registry
        assert "z" not in registry
        assert list(registry) == ["a", "b"]


def test_iter_bits() -> None:
    assert list(iter_bits(0)) == []
    assert list(iter_bits(0b10110)) == [1, 2, 4]
    assert list(iter_bits(1 << 70)) == [70]
