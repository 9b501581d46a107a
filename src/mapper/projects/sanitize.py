"""Project and folder name sanitization.

The rules must stay byte-for-byte stable: existing project directories on
disk were named with them.
"""

from __future__ import annotations

import re

SURVEY_TOKEN = "befahrung"

TRANSLITERATION = {
    "ä": "ae", "ö": "oe", "ü": "ue",
    "Ä": "Ae", "Ö": "Oe", "Ü": "Ue",
    "ß": "ss",
    "á": "a", "à": "a", "â": "a",
    "é": "e", "è": "e", "ê": "e", "ë": "e",
    "í": "i", "ì": "i", "î": "i", "ï": "i",
    "ó": "o", "ò": "o", "ô": "o",
    "ú": "u", "ù": "u", "û": "u",
    "Á": "A", "À": "A", "Â": "A",
    "É": "E", "È": "E", "Ê": "E",
    "Ó": "O", "Ò": "O", "Ô": "O",
    "Ú": "U", "Ù": "U", "Û": "U",
    "ç": "c", "Ç": "C",
    "ñ": "n", "Ñ": "N",
}

_VALID_NAME = re.compile(r"[A-Za-z0-9_-]+")
_LEADING_JUNK = re.compile(r"^[\W_]+")
_SURVEY = re.compile(re.escape(SURVEY_TOKEN), re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORES = re.compile(r"_+")


def transliterate(text: str) -> str:
    return "".join(TRANSLITERATION.get(ch, ch) for ch in text)


def sanitize_name(raw: str) -> str:
    """Turn user input into a directory-safe project name.

    >>> sanitize_name("Befahrung Müller+Co.")
    'Mueller_plus_Co'
    """
    name = _LEADING_JUNK.sub("", raw)
    name = _SURVEY.sub("", name)
    name = transliterate(name)
    name = _WHITESPACE.sub("_", name)
    name = name.replace("+", "_plus_")
    name = _DISALLOWED.sub("_", name)
    name = _UNDERSCORES.sub("_", name)
    return name.strip("_")


def is_valid_name(name: str) -> bool:
    return bool(name) and _VALID_NAME.fullmatch(name) is not None
