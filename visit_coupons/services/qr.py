"""QR rendering for issued coupons and QR decoding for the validator.

Decoding runs an ordered list of strategies over the uploaded image and stops
at the first one that yields a payload.
"""
from dataclasses import dataclass
from enum import Enum
import io
import logging

import cv2
import numpy as np
import qrcode

from .codes import looks_like_code

logger = logging.getLogger(__name__)

MSG_NO_QR = 'No QR code found.\nMake sure the image is sharp and the QR code is clearly visible.'
MSG_BAD_IMAGE = 'The image could not be read.'

# the center crop pass needs something left to crop
MIN_CROP_SIDE = 100


class QRDecodeError(Exception):
    pass


class DecodeStrategy(str, Enum):
    NO_INVERT = 'no_invert'
    ONLY_INVERT = 'only_invert'
    BOTH = 'both'
    CENTER_CROP = 'center_crop'


DEFAULT_STRATEGIES = (
    DecodeStrategy.NO_INVERT,
    DecodeStrategy.ONLY_INVERT,
    DecodeStrategy.BOTH,
    DecodeStrategy.CENTER_CROP,
)


@dataclass
class DecodeResult:
    raw: str
    code: str
    strategy: DecodeStrategy

    @property
    def looks_valid(self) -> bool:
        return looks_like_code(self.code)

    def to_dict(self):
        return {
            'ok': True,
            'raw': self.raw,
            'code': self.code,
            'strategy': self.strategy.value,
            'looks_valid': self.looks_valid,
        }


def make_qr(payload: str, path: str):
    img = qrcode.make(payload)
    img.save(path)


def make_qr_bytes(payload: str) -> bytes:
    """Return QR PNG bytes for the provided payload."""
    img = qrcode.make(payload)
    buf = io.BytesIO()
    img.save(buf, format='PNG')
    return buf.getvalue()


def extract_code(raw: str) -> str:
    """Turn a scanned payload into a candidate coupon code.

    URLs keep their last path segment, query strings are dropped and the
    result is upper-cased. The 8-character pattern is only advisory.
    """
    value = (raw or '').strip()
    if '/' in value:
        value = value.split('/')[-1]
    if '?' in value:
        value = value.split('?')[0]
    value = value.upper()
    if not looks_like_code(value):
        logger.warning("scanned payload %r does not look like a coupon code", value)
    return value


def load_grayscale(data: bytes):
    arr = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_GRAYSCALE)
    if img is None:
        raise QRDecodeError(MSG_BAD_IMAGE)
    return img


def center_crop(gray):
    h, w = gray.shape[:2]
    y, x = h // 4, w // 4
    return gray[y:y + h // 2, x:x + w // 2]


def candidates(gray, strategy: DecodeStrategy) -> list:
    """Images to try, in order, for one strategy."""
    if strategy is DecodeStrategy.NO_INVERT:
        return [gray]
    if strategy is DecodeStrategy.ONLY_INVERT:
        return [cv2.bitwise_not(gray)]
    if strategy is DecodeStrategy.BOTH:
        return [gray, cv2.bitwise_not(gray)]
    if strategy is DecodeStrategy.CENTER_CROP:
        h, w = gray.shape[:2]
        if h <= MIN_CROP_SIDE or w <= MIN_CROP_SIDE:
            return []
        crop = center_crop(gray)
        return [crop, cv2.bitwise_not(crop)]
    raise ValueError(f"unknown strategy {strategy!r}")


def opencv_detect(img) -> str | None:
    detector = cv2.QRCodeDetector()
    value, _points, _ = detector.detectAndDecode(img)
    return value or None


def decode_qr(data: bytes, strategies=DEFAULT_STRATEGIES, detect=opencv_detect) -> DecodeResult:
    if not data:
        raise QRDecodeError(MSG_BAD_IMAGE)
    gray = load_grayscale(data)
    for strategy in strategies:
        for img in candidates(gray, strategy):
            try:
                raw = detect(img)
            except cv2.error:
                logger.debug("detector failed on %s pass", strategy.value, exc_info=True)
                raw = None
            if raw:
                logger.info("decoded QR payload with %s pass", strategy.value)
                return DecodeResult(raw=raw, code=extract_code(raw), strategy=strategy)
    raise QRDecodeError(MSG_NO_QR)
