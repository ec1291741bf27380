"""Tests for key and name validation helpers."""

import pytest

from tenantdrive.errors import InvalidKey, InvalidName, MissingKey
from tenantdrive.keys import (
    is_folder_key,
    normalize_prefix,
    sanitize_key,
    sanitize_segment,
    validate_object_key,
)


class TestSanitizeKey:
    """Tests for sanitize_key()."""

    # -- Normalization --------------------------------------------------------

    def test_plain_key_unchanged(self):
        assert sanitize_key("docs/report.pdf") == "docs/report.pdf"

    def test_trims_whitespace(self):
        assert sanitize_key("  docs/a.txt  ") == "docs/a.txt"

    def test_backslashes_become_slashes(self):
        """Windows-style separators are converted."""
        assert sanitize_key("docs\\sub\\a.txt") == "docs/sub/a.txt"

    def test_strips_leading_slash(self):
        assert sanitize_key("/docs/a.txt") == "docs/a.txt"

    def test_collapses_repeated_slashes(self):
        assert sanitize_key("docs//sub///a.txt") == "docs/sub/a.txt"

    def test_repeated_leading_slashes(self):
        """Leading slashes are collapsed first, so no slash survives."""
        assert sanitize_key("//docs/a.txt") == "docs/a.txt"

    # -- Folder suffix --------------------------------------------------------

    def test_expect_folder_adds_trailing_slash(self):
        assert sanitize_key("a/b", expect_folder=True) == "a/b/"

    def test_expect_folder_keeps_single_trailing_slash(self):
        assert sanitize_key("a/b//", expect_folder=True) == "a/b/"

    def test_file_strips_trailing_slash(self):
        assert sanitize_key("a/b/", expect_folder=False) == "a/b"

    # -- Empty input ----------------------------------------------------------

    def test_none_is_missing(self):
        with pytest.raises(MissingKey):
            sanitize_key(None)

    def test_blank_is_missing(self):
        with pytest.raises(MissingKey):
            sanitize_key("   ")

    def test_only_slashes_is_missing(self):
        with pytest.raises(MissingKey):
            sanitize_key("///")

    def test_allow_empty_returns_empty(self):
        assert sanitize_key("", allow_empty=True) == ""
        assert sanitize_key(None, allow_empty=True) == ""
        assert sanitize_key("/", allow_empty=True, expect_folder=True) == ""

    # -- Traversal ------------------------------------------------------------

    def test_rejects_parent_segment(self):
        with pytest.raises(InvalidKey):
            sanitize_key("a/../b")

    def test_rejects_leading_parent_segment(self):
        with pytest.raises(InvalidKey):
            sanitize_key("../etc/passwd")

    def test_rejects_backslash_traversal(self):
        with pytest.raises(InvalidKey):
            sanitize_key("a\\..\\b")

    def test_rejects_double_dot_substring(self):
        """Any '..' sequence is rejected, even inside a name."""
        with pytest.raises(InvalidKey):
            sanitize_key("notes..txt")

    def test_error_is_bad_request(self):
        with pytest.raises(InvalidKey) as exc_info:
            sanitize_key("a/../b")
        assert exc_info.value.http_status == 400
        assert exc_info.value.code == "InvalidKey"

    # -- Idempotence ----------------------------------------------------------

    @pytest.mark.parametrize(
        "raw",
        [
            "docs/a.txt",
            "  /docs//a.txt ",
            "\\docs\\sub\\",
            "//x//y//",
            "a /",
            "a/ /",
            "/ a/b",
            "über/ファイル.txt",
        ],
    )
    @pytest.mark.parametrize("expect_folder", [False, True])
    def test_idempotent(self, raw, expect_folder):
        once = sanitize_key(raw, expect_folder=expect_folder)
        assert sanitize_key(once, expect_folder=expect_folder) == once

    @pytest.mark.parametrize("raw", ["a//b", "/a/b/", "a\\b\\c"])
    def test_result_has_no_backslash_or_repeated_slash(self, raw):
        result = sanitize_key(raw, expect_folder=True)
        assert "\\" not in result
        assert "//" not in result
        assert not result.startswith("/")


class TestSanitizeSegment:
    """Tests for sanitize_segment()."""

    def test_valid_name(self):
        assert sanitize_segment("report.pdf") == "report.pdf"

    def test_trims(self):
        assert sanitize_segment("  photos ") == "photos"

    def test_empty_rejected(self):
        with pytest.raises(InvalidName):
            sanitize_segment("   ")

    def test_slash_rejected(self):
        with pytest.raises(InvalidName):
            sanitize_segment("a/b")

    def test_backslash_rejected(self):
        with pytest.raises(InvalidName):
            sanitize_segment("a\\b")

    def test_traversal_rejected(self):
        with pytest.raises(InvalidName):
            sanitize_segment("..")

    def test_non_string_rejected(self):
        with pytest.raises(InvalidName):
            sanitize_segment(None)
        with pytest.raises(InvalidName):
            sanitize_segment(42)


class TestNormalizePrefix:
    """Tests for normalize_prefix()."""

    def test_empty_is_root(self):
        assert normalize_prefix("") == ""
        assert normalize_prefix(None) == ""
        assert normalize_prefix("   ") == ""

    def test_adds_trailing_slash(self):
        assert normalize_prefix("docs") == "docs/"

    def test_normalizes_like_folder_key(self):
        assert normalize_prefix("/docs//sub") == "docs/sub/"

    def test_slash_only_is_root(self):
        assert normalize_prefix("/") == ""

    def test_traversal_rejected(self):
        with pytest.raises(InvalidKey):
            normalize_prefix("docs/..")


class TestIsFolderKey:
    """Tests for is_folder_key()."""

    def test_trailing_slash(self):
        assert is_folder_key("docs/")

    def test_trailing_slash_with_whitespace(self):
        assert is_folder_key("docs/  ")

    def test_file(self):
        assert not is_folder_key("docs/a.txt")

    def test_none_and_empty(self):
        assert not is_folder_key(None)
        assert not is_folder_key("")


class TestValidateObjectKey:
    """Tests for validate_object_key()."""

    def test_valid_at_limit(self):
        """A key of exactly 1024 bytes is accepted."""
        validate_object_key("a" * 1024)

    def test_too_long_ascii(self):
        with pytest.raises(InvalidKey):
            validate_object_key("a" * 1025)

    def test_too_long_multibyte(self):
        """342 CJK characters encode to 1026 bytes."""
        with pytest.raises(InvalidKey):
            validate_object_key("一" * 342)
