"""Tests for paste ID and URL shape checks."""

import pytest

from pastebox.validation import extract_url, is_valid_paste_id, looks_like_url


class TestPasteIdValidation:

    @pytest.mark.parametrize("paste_id", ["abcde", "ABC123", "", "a" * 30])
    def test_valid_ids(self, paste_id):
        assert is_valid_paste_id(paste_id)

    @pytest.mark.parametrize(
        "paste_id",
        [
            "favicon.ico",
            "1234567890123456789012345678901",
            "abc-def",
            "abc_def",
            "abc def",
            "é",
            "'; DROP TABLE pastebin; --",
        ],
    )
    def test_invalid_ids(self, paste_id):
        assert not is_valid_paste_id(paste_id)


class TestURLValidation:

    @pytest.mark.parametrize(
        "content",
        [
            "https://example.com",
            "http://example.com/path?q=1#frag",
            "ftp://files.example.org/pub/file.txt",
            "see https://sub.example.co.uk/page",
        ],
    )
    def test_urls(self, content):
        assert looks_like_url(content)

    @pytest.mark.parametrize(
        "content",
        ["", "example.com", "https://localhost", "mailto:user@example.com", "just text"],
    )
    def test_not_urls(self, content):
        assert not looks_like_url(content)


class TestExtractURL:

    def test_url_surrounded_by_text(self):
        assert extract_url("see\nhttps://example.com/x for details") == (
            "https://example.com/x"
        )

    def test_no_url(self):
        assert extract_url("just text") is None
