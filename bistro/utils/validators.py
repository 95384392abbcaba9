import math

from bistro.constants import LANGUAGES


def require_positive_number(v, name: str = "value") -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v) or v <= 0:
        raise ValueError(f"{name.capitalize()} must be a positive number")
    return float(v)


def require_text(v, name: str = "value") -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"{name.capitalize()} is required")
    return v.strip()


def require_language(code: str) -> str:
    lang = (code or "").strip().lower()
    if lang not in LANGUAGES:
        raise ValueError(f'Language must be one of: {", ".join(LANGUAGES)}')
    return lang


def normalize_language(code: str) -> str:
    # en-US -> en
    return (code or "").split("-")[0].strip().lower()
