"""
Tests for validation functions.

Run with: pytest tests/test_validation.py -v
"""
import base64

import pytest
from fastapi import HTTPException

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.validation import (
    require_text,
    normalize_key,
    validate_data_kind,
    coerce_render_kind,
    validate_image_type,
    validate_upload_size,
    parse_data_url,
)


class TestRequireText:
    """Tests for required text fields."""

    def test_trims(self):
        """Surrounding whitespace is removed."""
        assert require_text("  Roçadeira  ", "nome") == "Roçadeira"

    def test_blank_rejected(self):
        """Empty, whitespace-only and missing values raise 400."""
        for value in ("", "   ", "\t\n", None):
            with pytest.raises(HTTPException) as exc:
                require_text(value, "nome")
            assert exc.value.status_code == 400
            assert "nome" in exc.value.detail


class TestNormalizeKey:
    """Tests for variable key normalization."""

    def test_lowercase_and_underscores(self):
        """Whitespace runs become a single underscore."""
        assert normalize_key("Motor  Power HP") == "motor_power_hp"

    def test_drops_other_characters(self):
        """Anything outside [a-z0-9_] is dropped."""
        assert normalize_key("disco-(mm)!") == "discomm"
        assert normalize_key("tensão_v") == "tenso_v"

    def test_derived_from_name(self):
        """A blank key falls back to the display name."""
        assert normalize_key("", "Largura de Corte") == "largura_de_corte"
        assert normalize_key(None, "Peso 2") == "peso_2"

    def test_explicit_key_wins(self):
        """The name is only used when the key is blank."""
        assert normalize_key("peso", "Something else") == "peso"

    def test_unusable_key(self):
        """Nothing usable in either source raises 400."""
        with pytest.raises(HTTPException) as exc:
            normalize_key("   ", "!!!")
        assert exc.value.status_code == 400


class TestDataKind:
    """Tests for variable data kinds."""

    def test_valid_kinds(self):
        """texto / numero / lista are accepted case-insensitively."""
        assert validate_data_kind("texto") == "texto"
        assert validate_data_kind("NUMERO") == "numero"
        assert validate_data_kind(" lista ") == "lista"

    def test_default(self):
        """Missing kind defaults to texto."""
        assert validate_data_kind(None) == "texto"

    def test_invalid(self):
        """Unknown kinds raise 400."""
        with pytest.raises(HTTPException) as exc:
            validate_data_kind("booleano")
        assert exc.value.status_code == 400


class TestCoerceRenderKind:
    """Tests for marker render kind coercion."""

    def test_valid_kinds(self):
        """Valid kinds are lowercased."""
        assert coerce_render_kind("variavel") == "variavel"
        assert coerce_render_kind("NUMERO") == "numero"
        assert coerce_render_kind("Toggle") == "toggle"

    def test_fallback(self):
        """Missing or unknown kinds become variavel."""
        assert coerce_render_kind(None) == "variavel"
        assert coerce_render_kind("") == "variavel"
        assert coerce_render_kind("slider") == "variavel"


class TestImageUploads:
    """Tests for image type, size and data URL checks."""

    def test_allowed_types(self):
        """Image types map to a file extension."""
        assert validate_image_type("image/png") == "png"
        assert validate_image_type("image/JPEG") == "jpg"
        assert validate_image_type("image/webp; charset=binary") == "webp"

    def test_rejected_types(self):
        """Non-image types raise 400."""
        for ct in ("application/pdf", "text/plain", "", None, "image/svg+xml"):
            with pytest.raises(HTTPException) as exc:
                validate_image_type(ct)
            assert exc.value.status_code == 400

    def test_size_limits(self):
        """Empty files raise 400, oversized files 413."""
        validate_upload_size(10, 100)
        with pytest.raises(HTTPException) as exc:
            validate_upload_size(0, 100)
        assert exc.value.status_code == 400
        with pytest.raises(HTTPException) as exc:
            validate_upload_size(101, 100)
        assert exc.value.status_code == 413

    def test_parse_data_url(self):
        """A base64 data URL decodes to (mime, bytes)."""
        payload = b"\x89PNG\r\n\x1a\nfake"
        url = "data:image/PNG;base64," + base64.b64encode(payload).decode()
        assert parse_data_url(url) == ("image/png", payload)

    def test_parse_data_url_invalid(self):
        """Anything else raises 400."""
        for url in ("", None, "https://example.com/a.png", "data:image/png,plain"):
            with pytest.raises(HTTPException) as exc:
                parse_data_url(url)
            assert exc.value.status_code == 400
