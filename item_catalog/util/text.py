from __future__ import annotations

import re
import unicodedata


_WS_RE = re.compile(r"\s+")


def normalize_label(s: str) -> str:
    """
    Canonical form of a human-supplied label (category names):
      - unicode NFC, so visually identical labels compare equal
      - surrounding whitespace stripped, inner whitespace runs collapsed to one space
    Case is preserved.
    """
    if s is None:
        return s
    s = unicodedata.normalize("NFC", str(s))
    return _WS_RE.sub(" ", s).strip()
