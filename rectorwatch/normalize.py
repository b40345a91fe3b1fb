from typing import Dict, Optional


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def canonical_name(name: Optional[str]) -> str:
    """Comparison-only key for a rector name.

    "Rémi DECOUT-PAOLINI" and "Rémi  Decout-Paolini" share the same key.
    """
    return normalize_text(name or "")


# Labels used by early scraper versions -> current labels
UNIT_ALIASES: Dict[str, str] = {
    "Saint-Pierre et Miquelon (Services de l'EN)": "Saint-Pierre-et-Miquelon",
    "Saint-Pierre et Miquelon (Services de l’EN)": "Saint-Pierre-et-Miquelon",
    "Polynésie Française": "Polynésie française",
    "Wallis et Futuna": "Wallis-et-Futuna",
    "Guadeloupe (Région académique)": "Guadeloupe",
    "La Martinique": "Martinique",
}


def normalize_unit(label: str) -> str:
    unit = label.strip()
    return UNIT_ALIASES.get(unit, unit)
