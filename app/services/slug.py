"""
Slug derivation for place names.

    slugify("Kalaja e Skënderajt!")  → "kalaja-e-sk-nderajt"
    slugify("  Ura e Gurit -- 1912") → "ura-e-gurit-1912"

Only ASCII letters and digits survive; every other run of characters,
including accented letters, becomes a single hyphen.
"""

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_ALPHANUMERIC.sub("-", name.lower()).strip("-")
