from datetime import datetime
import io

from PIL import Image

from visit_coupons.services.images import (
    CARD_SIZE,
    TEXT_BASELINE_Y,
    compose_coupon_image,
    coupon_filename,
    coupon_png_bytes,
)
from visit_coupons.services.qr import decode_qr


class TestCouponCard:

    def test_size_and_mode(self):
        card = compose_coupon_image('ZK8X2Q1B')
        assert card.size == CARD_SIZE == (1080, 1080)
        assert card.mode == 'RGB'

    def test_card_qr_scans_back(self):
        res = decode_qr(coupon_png_bytes('ZK8X2Q1B'))
        assert res.code == 'ZK8X2Q1B'

    def test_code_text_is_drawn_under_the_qr(self):
        card = compose_coupon_image('ZK8X2Q1B').convert('L')
        band = card.crop((400, TEXT_BASELINE_Y - 40, 700, TEXT_BASELINE_Y + 5))
        assert band.getextrema()[0] < 128

    def test_background_is_used(self, tmp_path):
        bg_path = tmp_path / 'bg.png'
        Image.new('RGB', (540, 540), color=(200, 30, 30)).save(bg_path)
        card = compose_coupon_image('ZK8X2Q1B', background_path=str(bg_path))
        assert card.getpixel((10, 10)) == (200, 30, 30)
        # QR quiet zone covers the background
        assert card.getpixel((385, 388)) == (255, 255, 255)

    def test_png_bytes(self):
        with Image.open(io.BytesIO(coupon_png_bytes('ZK8X2Q1B'))) as img:
            assert img.format == 'PNG'
            assert img.size == (1080, 1080)


class TestFilename:

    def test_format(self):
        when = datetime(2026, 10, 18, 9, 5)
        assert coupon_filename('Gangnam Square', 'ZK8X2Q1B', when) == 'Gangnam-Square-ZK8X2Q1B-202610180905.png'

    def test_missing_name(self):
        when = datetime(2026, 10, 18, 9, 5)
        assert coupon_filename('', 'ZK8X2Q1B', when) == 'coupon-ZK8X2Q1B-202610180905.png'

    def test_slashes_are_replaced(self):
        name = coupon_filename('A/B', 'ZK8X2Q1B')
        assert '/' not in name
        assert name.startswith('A-B-ZK8X2Q1B-')
