"""Tests for image payload handling."""

import pytest

from allergen_scanner.domain.errors import PreconditionError
from allergen_scanner.domain.scans import EncodedImage


def test_from_bytes_detects_png() -> None:
    image = EncodedImage.from_bytes(b"\x89PNG\r\n\x1a\n" + b"rest")

    assert image.mime_type == "image/png"
    assert image.to_data_uri().startswith("data:image/png;base64,")


def test_from_bytes_defaults_to_jpeg() -> None:
    assert EncodedImage.from_bytes(b"unknown").mime_type == "image/jpeg"


def test_data_uri_keeps_declared_mime_type() -> None:
    image = EncodedImage.from_data_uri("data:image/webp;base64,ZmFrZQ==")

    assert image.mime_type == "image/webp"
    assert image.data == b"fake"
    assert image.to_data_uri() == "data:image/webp;base64,ZmFrZQ=="


@pytest.mark.parametrize(
    "uri",
    [
        "ZmFrZQ==",
        "data:image/png,ZmFrZQ==",
        "data:image/png;base64,not base64!",
        "data:image/png;base64,",
    ],
)
def test_invalid_data_uris_are_rejected(uri: str) -> None:
    with pytest.raises(PreconditionError):
        EncodedImage.from_data_uri(uri)


def test_zero_byte_image_is_rejected() -> None:
    with pytest.raises(PreconditionError):
        EncodedImage.from_bytes(b"")
