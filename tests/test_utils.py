"""
Site Content API - Utility Tests

Tests for:
- coerce_numeros (array-or-JSON-string leniency, fallback to empty)
- upload_extension / generate_upload_filename (extension follows the media type)
- item_at
"""

import re

import pytest

from src.utils import coerce_numeros, generate_upload_filename, item_at, upload_extension

# ===========================================================================
# coerce_numeros
# ===========================================================================


class TestCoerceNumeros:
    def test_json_array_string(self):
        assert coerce_numeros('["12", "34", "56"]') == ["12", "34", "56"]

    def test_json_array_of_numbers_is_stringified(self):
        assert coerce_numeros("[1, 22, 333]") == ["1", "22", "333"]

    def test_structured_list_passes_through(self):
        assert coerce_numeros(["01", "02"]) == ["01", "02"]

    def test_structured_list_elements_stringified(self):
        assert coerce_numeros([7, "08"]) == ["7", "08"]

    def test_empty_json_array(self):
        assert coerce_numeros("[]") == []

    @pytest.mark.parametrize(
        "raw",
        ["[1, 2", "not json", "{'a': 1}", "", "   "],
    )
    def test_malformed_json_defaults_to_empty(self, raw):
        assert coerce_numeros(raw) == []

    @pytest.mark.parametrize("raw", ['"12"', "42", '{"a": 1}', "null"])
    def test_non_array_json_defaults_to_empty(self, raw):
        assert coerce_numeros(raw) == []

    def test_none_defaults_to_empty(self):
        assert coerce_numeros(None) == []

    def test_unsupported_type_defaults_to_empty(self):
        assert coerce_numeros(12) == []


# ===========================================================================
# upload_extension / generate_upload_filename
# ===========================================================================

JPEG_EXTS = (".jpg", ".jpeg")
PNG_EXTS = (".png",)


class TestUploadExtension:
    def test_matching_suffix_kept(self):
        assert upload_extension("photo.jpeg", JPEG_EXTS) == ".jpeg"

    def test_suffix_lowercased(self):
        assert upload_extension("PHOTO.JPG", JPEG_EXTS) == ".jpg"

    def test_missing_suffix_uses_canonical(self):
        assert upload_extension("photo", JPEG_EXTS) == ".jpg"

    def test_no_name_uses_canonical(self):
        assert upload_extension(None, PNG_EXTS) == ".png"

    def test_suffix_disagreeing_with_media_type_replaced(self):
        assert upload_extension("x.html", PNG_EXTS) == ".png"

    def test_other_image_suffix_replaced(self):
        assert upload_extension("x.gif", PNG_EXTS) == ".png"

    def test_directory_components_ignored(self):
        assert upload_extension("..\\dir.gif\\evil", PNG_EXTS) == ".png"
        assert upload_extension("../../etc/evil.png", PNG_EXTS) == ".png"


class TestGenerateUploadFilename:
    def test_format(self):
        name = generate_upload_filename("photo.png", PNG_EXTS)
        assert re.fullmatch(r"\d{13}-[0-9a-f]{8}\.png", name)

    def test_never_stores_script_extension(self):
        assert generate_upload_filename("x.html", PNG_EXTS).endswith(".png")

    def test_unique(self):
        names = {generate_upload_filename("a.png", PNG_EXTS) for _ in range(50)}
        assert len(names) == 50

    def test_no_path_components(self):
        name = generate_upload_filename("../../etc/evil.png", PNG_EXTS)
        assert "/" not in name
        assert name.endswith(".png")


# ===========================================================================
# item_at
# ===========================================================================


class TestItemAt:
    def test_in_range(self):
        assert item_at(["a", "b"], 1) == "b"

    def test_out_of_range_default(self):
        assert item_at(["a"], 3) == ""

    def test_custom_default(self):
        assert item_at([], 0, None) is None

    def test_negative_index_is_out_of_range(self):
        assert item_at(["a"], -1) == ""
