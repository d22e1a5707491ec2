"""
Small text helpers shared across modules (slugs, generated codes)
"""
import random
import re
import string
import time
import unicodedata
from typing import Callable, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_BASE36 = string.digits + string.ascii_lowercase


def slugify(text: str) -> str:
    """
    Turn a title into a URL slug.

    "Tin tức Đặc biệt!" -> "tin-tuc-dac-biet"
    """
    if not text:
        return ""
    text = text.replace("đ", "d").replace("Đ", "D")
    normalized = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in normalized if unicodedata.category(ch) != "Mn")
    return _NON_ALNUM.sub("-", stripped.lower()).strip("-")


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Append -1, -2, ... until exists(slug) is false"""
    base = base or "item"
    slug = base
    counter = 1
    while exists(slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def random_code(length: int, alphabet: str = string.ascii_uppercase + string.digits) -> str:
    return "".join(random.choice(alphabet) for _ in range(length))


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    number = abs(number)
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def timestamp_base36(now_ms: Optional[int] = None) -> str:
    """Current epoch milliseconds in upper-case base36"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return to_base36(now_ms).upper()
