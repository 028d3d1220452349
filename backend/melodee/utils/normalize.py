"""Text normalization utilities."""
import re
import unicodedata


def normalize_name(text: str) -> str:
    """
    Normalize a display name for catalog lookups.

    - Normalize unicode (NFKC)
    - Lowercase
    - Collapse whitespace
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text)
    text = text.lower()
    text = re.sub(r"\s+", " ", text).strip()

    return text


def fold_ascii(text: str) -> str:
    """Strip diacritics, keeping only the ASCII base characters."""
    if not text:
        return ""

    decomposed = unicodedata.normalize("NFKD", text)
    return decomposed.encode("ascii", "ignore").decode("ascii")


def normalize_sort_name(name: str) -> str:
    """
    Create a sort-friendly name.

    - "The Beatles" -> "Beatles, The"
    - "A Tribe Called Quest" -> "Tribe Called Quest, A"
    """
    if not name:
        return ""

    articles = ["The ", "A ", "An "]

    for article in articles:
        if name.startswith(article):
            return f"{name[len(article):]}, {article.strip()}"

    return name
