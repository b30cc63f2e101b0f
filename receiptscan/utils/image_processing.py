"""Image preprocessing utilities.

Preprocessing receipt images improves local OCR results. The functions
in this module perform basic transformations such as applying EXIF
orientation, converting to grayscale and capping the image size.
Pillow is used as the imaging backend.
"""

from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError


def prepare_for_ocr(image_data: bytes, max_size: int = 2400) -> Image.Image:
    """Open an image for text recognition.

    Applies EXIF orientation (e.g. phone photos taken upright), converts
    to grayscale and shrinks the longest edge to ``max_size`` pixels
    while maintaining aspect ratio.

    :param image_data: Raw image bytes
    :param max_size: Maximum size of the longest edge in pixels
    :raises ValueError: if the bytes are not a decodable image
    """
    try:
        with Image.open(BytesIO(image_data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            img = img.convert("L")
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"cannot decode image: {exc}") from exc
    width, height = img.size
    max_dim = max(width, height)
    if max_dim > max_size:
        scale = max_size / float(max_dim)
        img = img.resize((max(1, int(width * scale)), max(1, int(height * scale))))
    return img
