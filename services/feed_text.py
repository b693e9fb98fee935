from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"'>]+)["']""", re.IGNORECASE)


def strip_html(value: Optional[str]) -> str:
    """
    Remove HTML tags, decode entities and collapse whitespace.
    """
    if not value:
        return ""
    text = BeautifulSoup(value, "html.parser").get_text(" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def first_img_src(html: Optional[str]) -> Optional[str]:
    """src of the first <img> tag in an HTML fragment, if any."""
    if not html:
        return None
    match = _IMG_SRC_RE.search(html)
    if not match:
        return None
    return match.group(1).strip() or None
