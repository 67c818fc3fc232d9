import io
import unittest

from PIL import Image, features

from app.utils.image import validate_image_format
from tests.helpers import image_bytes


class ValidateImageFormatTests(unittest.TestCase):
    def test_allowed_formats_detected(self):
        expected = {
            "PNG": ("image/png", "png"),
            "JPEG": ("image/jpeg", "jpeg"),
            "GIF": ("image/gif", "gif"),
            "BMP": ("image/bmp", "bmp"),
            "TIFF": ("image/tiff", "tiff"),
        }
        for fmt, (mime, ext) in expected.items():
            with self.subTest(fmt=fmt):
                detected = validate_image_format(image_bytes(fmt))
                self.assertIsNotNone(detected)
                self.assertEqual((detected.mime_type, detected.extension), (mime, ext))

    @unittest.skipUnless(features.check("webp"), "Pillow built without WEBP support")
    def test_webp_detected(self):
        detected = validate_image_format(image_bytes("WEBP"))
        self.assertIsNotNone(detected)
        self.assertEqual((detected.mime_type, detected.extension), ("image/webp", "webp"))

    def test_empty_payload(self):
        self.assertIsNone(validate_image_format(b""))

    def test_non_image_payloads(self):
        for data in (b"hello world", b"%PDF-1.4\n%...", b"\x89PNG\r\n\x1a\n" + b"\x00" * 8):
            with self.subTest(data=data[:8]):
                self.assertIsNone(validate_image_format(data))

    def test_format_outside_allow_list(self):
        buf = io.BytesIO()
        Image.new("RGB", (16, 16), (0, 0, 255)).save(buf, format="ICO")
        self.assertIsNone(validate_image_format(buf.getvalue()))


if __name__ == "__main__":
    unittest.main()
