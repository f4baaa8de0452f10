"""How people are shown to other users."""
from typing import Optional

ANONYMOUS_NAMES = {
    "pl": "Anonimowy freelancer",
    "en": "Anonymous freelancer",
}


def display_name(name: Optional[str], surname: Optional[str], lang: str = "pl") -> str:
    """First name plus the surname initial, e.g. "Jan K."."""
    name = (name or "").strip()
    surname = (surname or "").strip()
    if not name:
        return ANONYMOUS_NAMES.get(lang, ANONYMOUS_NAMES["pl"])
    if not surname:
        return name
    return f"{name} {surname[0].upper()}."


def initials(name: Optional[str], surname: Optional[str]) -> str:
    parts = [part.strip() for part in (name, surname) if part and part.strip()]
    if not parts:
        return "?"
    return "".join(part[0].upper() for part in parts)
