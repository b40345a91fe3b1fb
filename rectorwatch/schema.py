from typing import Any, Dict, List, Optional

from .errors import MalformedRecord

REQUIRED_STR_FIELDS = ["academie"]
OPTIONAL_STR_FIELDS = ["nom", "genre"]

# Sentences scraped from the page body are always longer than this
MAX_NAME_LENGTH = 60

NOISE_PHRASES = [
    "est nommé",
    "est vice-rect",
    "pour aller plus loin",
    "annuaire",
    "est recteur",
    "est rectrice",
    "est chef du",
    "coordonnées",
    "académie de",
    "page à consulter",
    "en hiver",
    "en été",
    "en automne",
    "en printemps",
]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def is_noise(name: Optional[str]) -> bool:
    """
    True if the name looks like a scraping artifact rather than a person:
    empty, too long, containing page boilerplate, or a single word.
    """
    if not _is_non_empty_str(name):
        return True
    if len(name) > MAX_NAME_LENGTH:
        return True
    lower = name.lower()
    if any(phrase in lower for phrase in NOISE_PHRASES):
        return True
    # first name + last name at least
    return len(name.split()) < 2


def validate_record(data: Any) -> List[str]:
    """
    Returns a list of validation error messages for a raw snapshot record.
    Empty list means the record can be merged.
    """
    if not isinstance(data, dict):
        return [f"Record must be an object, got {type(data).__name__}"]

    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    # Failed scrapes carry an "error" key and no nom; that is not malformed
    for f in OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    return errors


def require_record(data: Any) -> Dict[str, Any]:
    """Return the record unchanged, or raise MalformedRecord."""
    errors = validate_record(data)
    if errors:
        raise MalformedRecord("; ".join(errors), errors=errors)
    return data
