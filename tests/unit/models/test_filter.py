"""
Unit tests for models.filter module.

Tests:
- Default filter and direct construction validation
- with_authors(), with_kinds(), with_limit() builders
- Immutability of every builder step
- to_dict() NIP-01 representation
"""

import pytest

from nostrpipe.exceptions import ConfigurationError
from nostrpipe.models import DEFAULT_LIMIT, EventKind, Filter


AUTHOR_A = "a" * 64
AUTHOR_B = "b" * 64


class TestFilterDefaults:
    """A fresh filter is unconstrained but bounded."""

    def test_defaults(self):
        f = Filter()
        assert f.authors == frozenset()
        assert f.kinds == frozenset()
        assert f.limit == DEFAULT_LIMIT

    def test_direct_construction_is_validated(self):
        with pytest.raises(ConfigurationError, match="limit must be positive"):
            Filter(limit=0)

    def test_direct_construction_coerces_sets(self):
        f = Filter(authors={AUTHOR_A}, kinds={1})
        assert isinstance(f.authors, frozenset)
        assert isinstance(f.kinds, frozenset)


class TestWithAuthors:
    """with_authors() builder."""

    def test_sets_authors(self):
        assert Filter().with_authors([AUTHOR_A, AUTHOR_B]).authors == {AUTHOR_A, AUTHOR_B}

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError, match="author set must not be empty"):
            Filter().with_authors([])

    @pytest.mark.parametrize("bad", ["a" * 63, "A" * 64, "npub1xyz", 42])
    def test_invalid_key_rejected(self, bad):
        with pytest.raises(ConfigurationError, match="invalid author public key"):
            Filter().with_authors([bad])

    def test_single_string_rejected(self):
        with pytest.raises(ConfigurationError, match="not a single string"):
            Filter().with_authors(AUTHOR_A)


class TestWithKinds:
    """with_kinds() builder."""

    def test_sets_kinds(self):
        f = Filter().with_kinds([EventKind.LONG_FORM_ARTICLE, 1])
        assert f.kinds == {30023, 1}

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError, match="kind set must not be empty"):
            Filter().with_kinds([])

    @pytest.mark.parametrize("kind", [-1, 65_536])
    def test_out_of_range(self, kind):
        with pytest.raises(ConfigurationError, match="kind must be between"):
            Filter().with_kinds([kind])

    def test_non_int(self):
        with pytest.raises(ConfigurationError, match="kind must be an int"):
            Filter().with_kinds(["1"])


class TestWithLimit:
    """with_limit() builder."""

    def test_sets_limit(self):
        assert Filter().with_limit(25).limit == 25

    @pytest.mark.parametrize("n", [0, -5])
    def test_non_positive(self, n):
        with pytest.raises(ConfigurationError, match="limit must be positive"):
            Filter().with_limit(n)

    @pytest.mark.parametrize("n", [True, 2.5, "3"])
    def test_non_int(self, n):
        with pytest.raises(ConfigurationError, match="limit must be an int"):
            Filter().with_limit(n)


class TestImmutability:
    """Every builder returns a new filter and leaves its receiver untouched."""

    def test_builders_return_new_instances(self):
        base = Filter()
        narrowed = base.with_authors([AUTHOR_A]).with_kinds([1]).with_limit(3)
        assert base == Filter()
        assert narrowed is not base
        assert narrowed == Filter(authors=frozenset({AUTHOR_A}), kinds=frozenset({1}), limit=3)

    def test_failed_builder_leaves_receiver_valid(self):
        base = Filter().with_limit(5)
        with pytest.raises(ConfigurationError):
            base.with_limit(0)
        assert base.limit == 5


class TestToDict:
    """to_dict() NIP-01 filter representation."""

    def test_unconstrained(self):
        assert Filter().to_dict() == {"limit": DEFAULT_LIMIT}

    def test_sorted_fields(self):
        f = Filter().with_authors([AUTHOR_B, AUTHOR_A]).with_kinds([30023, 1]).with_limit(2)
        assert f.to_dict() == {"authors": [AUTHOR_A, AUTHOR_B], "kinds": [1, 30023], "limit": 2}
