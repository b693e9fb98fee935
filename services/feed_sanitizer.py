"""
Pre-parse repair of near-valid feed XML.

Publishers regularly ship feeds with bare ampersands, stray control bytes and
CDATA blocks the strict XML parser chokes on. sanitize() fixes what can be
fixed textually; anything still broken is left for the parser to report.
"""

from __future__ import annotations

import re

# &name; / &#123; / &#x1F; are kept, any other "&" is escaped
_BARE_AMPERSAND_RE = re.compile(r"&(?![a-zA-Z][a-zA-Z0-9]*;|#[0-9]+;|#[xX][0-9a-fA-F]+;)")
# C0 controls except TAB, LF, CR; plus DEL
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_CDATA_RE = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
# Complement of the XML 1.0 Char production
_NON_XML_CHARS_RE = re.compile(r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


def escape_bare_ampersands(text: str) -> str:
    return _BARE_AMPERSAND_RE.sub("&amp;", text)


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS_RE.sub("", text)


def strip_comments(text: str) -> str:
    return _COMMENT_RE.sub("", text)


def unwrap_cdata(text: str) -> str:
    return _CDATA_RE.sub(r"\1", text)


def strip_non_xml_chars(text: str) -> str:
    return _NON_XML_CHARS_RE.sub("", text)


def sanitize(raw_text: str | None) -> str:
    """
    Repair near-valid XML text. Steps run in a fixed order:
    ampersands, control characters, comments, CDATA, non-XML code points.

    Never raises; None and empty input give an empty string.
    """
    if not raw_text:
        return ""
    if not isinstance(raw_text, str):
        raw_text = str(raw_text)
    text = escape_bare_ampersands(raw_text)
    text = strip_control_chars(text)
    text = strip_comments(text)
    text = unwrap_cdata(text)
    return strip_non_xml_chars(text)
