"""Tests for byte sniffing, base64 decoding and the adapter base class."""

import pytest
from image_create_mcp.errors import DecodeError, NoImageDataError, UpstreamHTTPError
from image_create_mcp.providers.base import (
    ImageFormat,
    ImagePayload,
    PendingImage,
    ProviderAdapter,
    decode_base64,
    detect_image_format,
    extract_error_message,
    infer_mime_type,
    redact_secrets,
    resolve_mime_type,
    response_excerpt,
)
from image_create_mcp.transport import HttpRequest, HttpResponse

from conftest import SAMPLE_GIF_BYTES, SAMPLE_WEBP_BYTES


class TestImageFormat:
    """Test ImageFormat enum."""

    def test_image_format_extensions(self):
        """Test file extensions for each format."""
        assert ImageFormat.PNG.extension == ".png"
        assert ImageFormat.JPEG.extension == ".jpg"
        assert ImageFormat.WEBP.extension == ".webp"
        assert ImageFormat.GIF.extension == ".gif"
        assert ImageFormat.UNKNOWN.extension == ".png"

    def test_image_format_mime_types(self):
        """Test MIME types for each format."""
        assert ImageFormat.PNG.mime_type == "image/png"
        assert ImageFormat.JPEG.mime_type == "image/jpeg"
        assert ImageFormat.WEBP.mime_type == "image/webp"
        assert ImageFormat.GIF.mime_type == "image/gif"
        assert ImageFormat.UNKNOWN.mime_type == "image/png"

    def test_from_mime_type(self):
        """Test MIME type lookup, including aliases and parameters."""
        assert ImageFormat.from_mime_type("image/jpeg") == ImageFormat.JPEG
        assert ImageFormat.from_mime_type("image/jpg") == ImageFormat.JPEG
        assert ImageFormat.from_mime_type("IMAGE/WEBP") == ImageFormat.WEBP
        assert ImageFormat.from_mime_type("image/gif; charset=binary") == ImageFormat.GIF
        assert ImageFormat.from_mime_type("image/bmp") == ImageFormat.UNKNOWN
        assert ImageFormat.from_mime_type(None) == ImageFormat.UNKNOWN


class TestDetectImageFormat:
    """Test image format detection from magic bytes."""

    def test_detect_png_format(self, sample_png_bytes):
        assert detect_image_format(sample_png_bytes) == ImageFormat.PNG

    def test_detect_jpeg_format(self, sample_jpeg_bytes):
        assert detect_image_format(sample_jpeg_bytes) == ImageFormat.JPEG

    def test_detect_webp_format(self):
        assert detect_image_format(SAMPLE_WEBP_BYTES) == ImageFormat.WEBP

    def test_detect_gif_format(self):
        assert detect_image_format(SAMPLE_GIF_BYTES) == ImageFormat.GIF
        assert detect_image_format(b'GIF87a' + b'\x00' * 4) == ImageFormat.GIF

    def test_detect_unknown_format(self):
        assert detect_image_format(b'INVALID' + b'\x00' * 10) == ImageFormat.UNKNOWN

    def test_four_byte_prefixes_are_enough(self):
        """Only the leading magic number is inspected."""
        assert detect_image_format(b'\x89PNG') == ImageFormat.PNG
        assert detect_image_format(b'RIFF') == ImageFormat.WEBP
        assert detect_image_format(b'GIF8') == ImageFormat.GIF
        assert detect_image_format(b'\xff\xd8\xff\xe0') == ImageFormat.JPEG


class TestInferMimeType:
    """Test MIME inference with the PNG fallback."""

    @pytest.mark.parametrize("data,expected", [
        (b'\x89PNG\r\n\x1a\n', "image/png"),
        (b'\xff\xd8\xff\xdb', "image/jpeg"),
        (b'RIFF\x10\x00\x00\x00WEBPVP8 ', "image/webp"),
        (b'GIF89a\x01\x00', "image/gif"),
    ])
    def test_known_prefixes(self, data, expected):
        assert infer_mime_type(data) == expected

    @pytest.mark.parametrize("data", [b'', b'\x89', b'\xff\xd8\xff', b'GIF', b'BM\x00\x00\x00', b'%PDF-1.4'])
    def test_fallback_is_png(self, data):
        """Short or unrecognized input never fails."""
        assert infer_mime_type(data) == "image/png"

    def test_resolve_prefers_sniffed_type(self, sample_jpeg_bytes):
        assert resolve_mime_type(sample_jpeg_bytes, "image/png") == "image/jpeg"

    def test_resolve_uses_known_declared_type(self):
        assert resolve_mime_type(b'\x00\x00\x00\x00', "image/webp") == "image/webp"
        assert resolve_mime_type(b'\x00\x00\x00\x00', "application/pdf") == "image/png"


class TestDecodeBase64:
    """Test lenient base64 decoding."""

    def test_decode_valid(self, sample_png_base64, sample_png_bytes):
        assert decode_base64(sample_png_base64) == sample_png_bytes

    def test_decode_without_padding(self, sample_png_base64, sample_png_bytes):
        assert decode_base64(sample_png_base64.rstrip("=")) == sample_png_bytes

    def test_decode_with_whitespace(self, sample_png_base64, sample_png_bytes):
        wrapped = "\n".join(sample_png_base64[i:i + 20] for i in range(0, len(sample_png_base64), 20))
        assert decode_base64(wrapped) == sample_png_bytes

    def test_decode_truncated_payload(self):
        """A dangling character is dropped instead of failing."""
        data = decode_base64("iVBORw0KG==")
        assert data == b'\x89PNG\r\n'

    def test_decode_urlsafe_alphabet(self):
        assert decode_base64("_9j_") == b'\xff\xd8\xff'

    def test_decode_invalid_characters(self):
        with pytest.raises(DecodeError):
            decode_base64("not*base64!")

    def test_decode_empty(self):
        with pytest.raises(DecodeError):
            decode_base64("")


class TestPayloads:
    """Test the pending/resolved payload variants."""

    def test_payload_requires_bytes(self):
        with pytest.raises(DecodeError):
            ImagePayload(data=b"", mime_type="image/png", source="b64")

    def test_pending_image_source(self):
        assert PendingImage(url="https://example.com/a.png").source == "url"


class TestErrorHelpers:
    """Test error message extraction and diagnostics."""

    def test_extract_nested_message(self):
        assert extract_error_message({"error": {"message": "bad prompt"}}) == "bad prompt"

    def test_extract_string_error(self):
        assert extract_error_message({"error": "quota exceeded"}) == "quota exceeded"

    def test_extract_errors_array(self):
        assert extract_error_message({"errors": [{"message": "first"}]}) == "first"

    def test_extract_nothing(self):
        assert extract_error_message({"rawText": "<html>"}) is None
        assert extract_error_message(["not", "a", "dict"]) is None

    def test_redact_key_parameter(self):
        text = "POST https://host/models/x:generateContent?key=AIzaSecret&alt=json failed"
        assert "AIzaSecret" not in redact_secrets(text)
        assert "key=***" in redact_secrets(text)

    def test_redact_literal_secret(self):
        assert redact_secrets("Bearer sk-abc rejected", ["sk-abc"]) == "Bearer *** rejected"

    def test_response_excerpt_is_bounded(self):
        excerpt = response_excerpt("x" * 2000, limit=100)
        assert excerpt.startswith("x" * 100)
        assert "1900 more chars" in excerpt


class EchoAdapter(ProviderAdapter):
    name = "echo"
    display_name = "Echo"

    def build_request(self, input, config):
        return HttpRequest(method="POST", url="https://example.com")

    def parse_images(self, body):
        return [PendingImage(url=u) for u in body.get("urls", [])]


class TestProviderAdapter:
    """Test the shared status and empty-result handling."""

    def test_non_200_uses_vendor_message(self):
        with pytest.raises(UpstreamHTTPError) as exc_info:
            EchoAdapter().parse_response(HttpResponse(status=400, body={"error": {"message": "nope"}}))
        assert "nope" in str(exc_info.value)
        assert exc_info.value.status == 400

    def test_non_200_falls_back_to_status(self):
        with pytest.raises(UpstreamHTTPError, match="HTTP 502"):
            EchoAdapter().parse_response(HttpResponse(status=502, body={"rawText": "Bad Gateway"}))

    def test_no_images_raises(self):
        with pytest.raises(NoImageDataError) as exc_info:
            EchoAdapter().parse_response(HttpResponse(status=200, body={"urls": [], "note": "empty"}))
        assert "empty" in exc_info.value.details

    def test_no_images_non_json_body(self):
        """Non-JSON bodies are quoted as received."""
        with pytest.raises(NoImageDataError) as exc_info:
            EchoAdapter().parse_response(HttpResponse(status=200, body={"rawText": "<html>maintenance</html>"}))
        assert exc_info.value.details == "<html>maintenance</html>"

    def test_images_returned(self):
        images = EchoAdapter().parse_response(
            HttpResponse(status=200, body={"urls": ["https://example.com/a.png"]})
        )
        assert images == [PendingImage(url="https://example.com/a.png")]
