# copycheck/textmask.py
"""Reversible URL masking.

URLs are swapped for ``__URL<n>__`` placeholders so word-level rewrites cannot
touch them. Text that already contains a placeholder-shaped substring does not
round-trip.
"""
import re
from typing import List, NamedTuple

URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
PLACEHOLDER = "__URL{}__"

class MaskedText(NamedTuple):
    text: str
    urls: List[str]

def mask_urls(text: str) -> MaskedText:
    urls: List[str] = []

    def _swap(match: re.Match) -> str:
        urls.append(match.group(0))
        return PLACEHOLDER.format(len(urls) - 1)

    return MaskedText(URL_RE.sub(_swap, text), urls)

def restore_urls(masked: str, urls: List[str]) -> str:
    text = masked
    for i, url in enumerate(urls):
        text = text.replace(PLACEHOLDER.format(i), url)
    return text
