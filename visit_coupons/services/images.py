"""Downloadable coupon card: background, QR code and the code in text."""
from datetime import datetime
import io

from PIL import Image, ImageDraw, ImageFont

from .qr import make_qr_bytes

CARD_SIZE = (1080, 1080)
QR_BOX = (380, 383, 345)  # x, y, side
TEXT_CENTER_X = 550
TEXT_BASELINE_Y = 800
FONT_SIZE = 36


def _load_font(font_path=None, size=FONT_SIZE):
    for candidate in filter(None, (font_path, 'Arial Bold.ttf', 'arialbd.ttf', 'DejaVuSans-Bold.ttf')):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def compose_coupon_image(code: str, background_path=None, font_path=None) -> Image.Image:
    card = Image.new('RGB', CARD_SIZE, color=(255, 255, 255))
    if background_path:
        with Image.open(background_path) as bg:
            card.paste(bg.convert('RGB').resize(CARD_SIZE, Image.LANCZOS), (0, 0))

    x, y, side = QR_BOX
    qr = Image.open(io.BytesIO(make_qr_bytes(code))).convert('RGB')
    card.paste(qr.resize((side, side), Image.LANCZOS), (x, y))

    draw = ImageDraw.Draw(card)
    font = _load_font(font_path)
    if isinstance(font, ImageFont.FreeTypeFont):
        draw.text((TEXT_CENTER_X, TEXT_BASELINE_Y), code, fill=(0, 0, 0), font=font, anchor='ms')
    else:
        text_w = draw.textlength(code, font=font)
        draw.text((TEXT_CENTER_X - text_w / 2, TEXT_BASELINE_Y - FONT_SIZE), code, fill=(0, 0, 0), font=font)
    return card


def coupon_png_bytes(code: str, background_path=None, font_path=None) -> bytes:
    buf = io.BytesIO()
    compose_coupon_image(code, background_path, font_path).save(buf, format='PNG')
    return buf.getvalue()


def coupon_filename(location_name: str, code: str, now: datetime | None = None) -> str:
    now = now or datetime.now()
    base = f"{location_name or 'coupon'}-{code}".replace('/', '-').replace(' ', '-')
    return f"{base}-{now.strftime('%Y%m%d%H%M')}.png"
