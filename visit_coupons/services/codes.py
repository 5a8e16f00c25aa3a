import re
import secrets
import string
import time

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8
CODE_PATTERN = re.compile(r'^[A-Z0-9]{8}$')
MAX_RANDOM_ATTEMPTS = 5


class CodeSpaceExhausted(Exception):
    pass


def random_code() -> str:
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def fallback_code(code: str, now_ms: int | None = None) -> str:
    """First four characters of ``code`` followed by the last four digits of the clock."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{code[:4]}{str(now_ms)[-4:]}"


def normalize_code(value) -> str:
    # non-string input counts as blank
    if not isinstance(value, str):
        return ''
    return value.strip().upper()


def looks_like_code(value: str) -> bool:
    return bool(CODE_PATTERN.match(value or ''))


def generate_unique_code(exists, attempts: int = MAX_RANDOM_ATTEMPTS, draw=random_code, now_ms=None) -> str:
    """Draw codes until ``exists(code)`` is False.

    After ``attempts`` collisions the last draw is turned into a
    timestamp-suffixed code, which is checked once more before giving up.
    """
    code = None
    for _ in range(max(1, attempts)):
        code = draw()
        if not exists(code):
            return code
    candidate = fallback_code(code, now_ms)
    if exists(candidate):
        raise CodeSpaceExhausted(f"no free code after {attempts} draws")
    return candidate
