"""
Text helpers shared by the research and scoring stages.
"""
import html as html_lib
import re
from typing import Iterable, List, Optional
from urllib.parse import urlsplit


_SCRIPT = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"\s+")


def clean_text(value: object) -> str:
    return _SPACES.sub(" ", str(value or "")).strip()


def strip_html(value: str) -> str:
    """Drop scripts, styles and tags; unescape entities; collapse whitespace."""
    text = str(value or "")
    text = _SCRIPT.sub(" ", text)
    text = _STYLE.sub(" ", text)
    text = _TAG.sub(" ", text)
    text = html_lib.unescape(text)
    return clean_text(text)


def unique_strings(values: Iterable[object], limit: Optional[int] = None) -> List[str]:
    """Trimmed, case-insensitively unique strings in first-seen order."""
    seen = set()
    out: List[str] = []
    for raw in values:
        text = str(raw or "").strip()
        if not text:
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(text)
        if limit and len(out) >= limit:
            break
    return out


def host_of(url: str) -> str:
    """Lower-cased hostname without a leading ``www.``; empty when unparsable."""
    try:
        hostname = urlsplit(str(url or "").strip()).hostname or ""
    except ValueError:
        return ""
    return re.sub(r"^www\.", "", hostname.lower())


def truncate(value: str, max_len: int, ellipsis: str = "…") -> str:
    text = str(value or "")
    if len(text) <= max_len:
        return text
    return text[:max_len] + ellipsis
