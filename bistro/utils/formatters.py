import re
import unicodedata

from bistro.config import settings


def money(v: float) -> str:
    return f"{settings.currency}{v:.{settings.decimals}f}"


def slugify(text: str) -> str:
    t = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    t = re.sub(r"[^a-zA-Z0-9]+", "-", t).strip("-").lower()
    return t
