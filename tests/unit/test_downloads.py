"""Tests for download header helpers."""

from __future__ import annotations

from docstore_api.common.downloads import build_content_disposition


def test_ascii_filename_is_quoted() -> None:
    assert build_content_disposition("report.pdf") == 'attachment; filename="report.pdf"'


def test_non_ascii_filename_adds_utf8_variant() -> None:
    """Non-ASCII names get an ASCII fallback plus filename*."""

    header = build_content_disposition("résumé.pdf")

    assert header.startswith('attachment; filename="r_sum_.pdf"')
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.pdf" in header


def test_unsafe_characters_are_replaced() -> None:
    """Quotes and separators never reach the quoted filename."""

    header = build_content_disposition('a"b;c.txt')

    assert 'filename="a_b_c.txt"' in header


def test_blank_filename_uses_default() -> None:
    assert build_content_disposition("   ") == 'attachment; filename="download"'
    assert build_content_disposition(None, default="file") == 'attachment; filename="file"'
