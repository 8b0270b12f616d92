"""Text normalization for stable comparison keys."""
import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_INTEGER = re.compile(r"-?[0-9]+")


def clean(text: str | None) -> str:
    """NFKC-normalize, turn non-breaking spaces into spaces, collapse whitespace and trim."""
    if text is None:
        return ""
    value = unicodedata.normalize("NFKC", str(text)).replace("\u00a0", " ")
    return _WHITESPACE.sub(" ", value).strip()


def normalize(text: str | None) -> str:
    """
    Cleaned, upper-cased text used for all cross-dataset key matching.

    Accents are kept: "Café" and "CAFE" stay distinct. NFKC runs again after
    upper-casing because some capitals come out decomposed ("ΐ").
    """
    return unicodedata.normalize("NFKC", clean(text).upper())


def parse_count(text: str | None) -> int:
    """
    Parse a locale-formatted integer ("1.234" or "1,234" -> 1234).

    Both separators are thousands separators, never decimal points.
    Only ASCII digits with an optional leading minus are accepted.
    Returns 0 on empty or unparseable input.
    """
    if text is None:
        return 0
    cleaned = str(text).replace(".", "").replace(",", "").strip()
    if not _INTEGER.fullmatch(cleaned):
        return 0
    return int(cleaned, 10)
