"""Unit tests for the error catalogue and result envelopes."""

import json

import pytest

from docstore_core.runtime.catalog import FALLBACK_MESSAGE, ErrorCatalog
from docstore_core.runtime.errors import ErrorCode
from docstore_core.runtime.result import PagedResult, Result


class TestErrorCatalogLoading:
    """Tests for loading the catalogue file."""

    def test_bundled_catalogue_covers_every_code(self):
        catalog = ErrorCatalog.load_from_file()

        codes = [v for k, v in vars(ErrorCode).items() if k.isupper()]
        for code in codes:
            assert catalog.get_error(code).code == code

    def test_load_custom_file(self, catalog_file):
        catalog = ErrorCatalog.load_from_file(catalog_file)

        assert catalog.get_error("STR-002").message == "Missing object"

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ErrorCatalog.load_from_file(tmp_path / "absent.json")


class TestErrorCatalogLookup:
    """Tests for code lookups."""

    def test_lookup_is_case_insensitive(self, catalog):
        assert catalog.get_error("str-002").message == "Missing object"

    def test_unknown_code_falls_back_to_generic(self, catalog):
        error = catalog.get_error("STR-999")

        assert error.code == ErrorCode.GENERIC_UNEXPECTED
        assert error.message == "Something broke"

    def test_unknown_code_without_generic_entry(self):
        catalog = ErrorCatalog({"STR-002": "Missing object"})

        error = catalog.get_error("STR-999")

        assert error.message == FALLBACK_MESSAGE

    def test_fail_builds_failed_result(self, catalog):
        result = catalog.fail("STR-002")

        assert result.success is False
        assert result.error_code == "STR-002"
        assert result.message == "Missing object"
        assert result.data is None


class TestResultEnvelope:
    """Tests for Result and PagedResult."""

    def test_ok_carries_data(self):
        result = Result.ok(42, "done")

        assert result.success is True
        assert result.data == 42
        assert result.message == "done"
        assert result.error_code is None

    @pytest.mark.parametrize(
        "total, page_size, pages",
        [(0, 50, 0), (1, 50, 1), (50, 50, 1), (51, 50, 2), (7, 3, 3), (5, 0, 0)],
    )
    def test_pages(self, total, page_size, pages):
        assert PagedResult(total=total, page_size=page_size).pages == pages


# --- Fixtures ---


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / "errors.json"
    path.write_text(
        json.dumps(
            {
                "STORAGE": [
                    {"code": "STR-000", "message": "Something broke"},
                    {"code": "STR-002", "message": "Missing object"},
                    {"code": "", "message": "ignored"},
                ]
            }
        )
    )
    return path


@pytest.fixture
def catalog(catalog_file):
    return ErrorCatalog.load_from_file(catalog_file)
