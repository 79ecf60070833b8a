"""Unit tests for file utilities."""

from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from picasa_web_albums.models import UploadFileNotFoundError
from picasa_web_albums.utils.file_utils import (
    detect_image_type,
    get_image_dimensions,
    get_upload_metadata,
    is_uploadable,
    read_upload,
)


@pytest.fixture
def test_image(tmp_path):
    """Create a test image file."""
    image_path = tmp_path / "test_image.jpg"
    img = Image.new("RGB", (100, 200), color="red")
    img.save(image_path)
    return image_path


def test_is_uploadable():
    """Test upload extension filtering."""
    test_cases = [
        ("photo.jpg", True),
        ("photo.JPEG", True),
        ("scan.png", True),
        ("anim.gif", True),
        ("old.bmp", True),
        ("movie.mp4", False),
        ("notes.txt", False),
        ("no_extension", False),
    ]

    for filename, expected in test_cases:
        assert is_uploadable(filename) == expected


def test_read_upload(test_image):
    data = read_upload(str(test_image))

    assert data == test_image.read_bytes()
    assert data[:2] == b"\xff\xd8"


def test_read_upload_missing(tmp_path):
    """Test a missing file raises the upload error with the path."""
    missing = str(tmp_path / "missing.jpg")

    with pytest.raises(UploadFileNotFoundError) as exc_info:
        read_upload(missing)

    assert exc_info.value.message == "The specified file could not be found."
    assert exc_info.value.url == missing


def test_detect_image_type_from_contents(tmp_path):
    """Test the contents win over a misleading extension."""
    png_path = tmp_path / "really_a_png.jpg"
    Image.new("RGB", (4, 4)).save(png_path, format="PNG")

    assert detect_image_type(str(png_path)) == "image/png"


def test_detect_image_type_falls_back_to_extension(tmp_path):
    text_file = tmp_path / "broken.gif"
    text_file.write_text("Not an image")

    assert detect_image_type(str(text_file)) == "image/gif"


def test_detect_image_type_unknown(tmp_path):
    text_file = tmp_path / "blob.unknownext"
    text_file.write_text("Not an image")

    assert detect_image_type(str(text_file)) == "application/octet-stream"


def test_get_image_dimensions(test_image):
    """Test getting image dimensions."""
    assert get_image_dimensions(str(test_image)) == (100, 200)
    assert get_image_dimensions("non_existent.jpg") == (0, 0)


def test_get_image_dimensions_mocked():
    with patch("PIL.Image.open") as mock_open:
        mock_img = MagicMock()
        mock_img.size = (640, 480)
        mock_open.return_value.__enter__.return_value = mock_img

        assert get_image_dimensions("test.jpg") == (640, 480)


def test_get_upload_metadata(test_image):
    metadata = get_upload_metadata(str(test_image))

    assert metadata.filename == "test_image.jpg"
    assert metadata.size == test_image.stat().st_size
    assert metadata.content_type == "image/jpeg"
    assert (metadata.width, metadata.height) == (100, 200)


def test_get_upload_metadata_not_a_file(tmp_path):
    assert get_upload_metadata(str(tmp_path)) is None
