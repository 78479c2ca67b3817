"""Unit tests for the lazy top-level exports of the nostrpipe package."""

import pytest

import nostrpipe


class TestLazyImports:
    """Top-level names resolve on first access to their subpackage objects."""

    @pytest.mark.parametrize("name", nostrpipe.__all__)
    def test_every_export_resolves(self, name: str) -> None:
        assert getattr(nostrpipe, name) is not None

    def test_resolves_to_subpackage_object(self) -> None:
        from nostrpipe.stages import Pipeline

        assert nostrpipe.Pipeline is Pipeline

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="no attribute 'Missing'"):
            nostrpipe.Missing  # noqa: B018

    def test_dir_lists_exports(self) -> None:
        assert set(dir(nostrpipe)) == set(nostrpipe.__all__)

    def test_version(self) -> None:
        assert isinstance(nostrpipe.__version__, str)
