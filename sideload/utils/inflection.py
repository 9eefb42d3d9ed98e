"""
Name inflection helpers used to derive document root keys.

Rule-based, English only. Covers the regular plural forms that model
names take in practice; irregular nouns can be added to ``_IRREGULAR``.
"""

from __future__ import annotations

import re

_IRREGULAR = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
    "datum": "data",
}

_UNCOUNTABLE = frozenset({
    "equipment", "information", "rice", "money", "species",
    "series", "fish", "sheep", "news", "metadata",
})

_CAMEL_BOUNDARY_1 = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_2 = re.compile(r"([a-z\d])([A-Z])")


def underscore(name: str) -> str:
    """``BlogPost`` → ``blog_post``; ``HTTPRequest`` → ``http_request``."""
    name = _CAMEL_BOUNDARY_1.sub(r"\1_\2", name)
    name = _CAMEL_BOUNDARY_2.sub(r"\1_\2", name)
    return name.replace("-", "_").lower()


def demodulize(name: str) -> str:
    """Strip a dotted module/qualname prefix: ``api.v2.PostSerializer`` → ``PostSerializer``."""
    return name.rsplit(".", 1)[-1]


def pluralize(word: str) -> str:
    """Pluralize the last ``_``-separated segment of *word*."""
    if not word:
        return word

    head, sep, last = word.rpartition("_")
    lower = last.lower()

    if lower in _UNCOUNTABLE:
        plural = last
    elif lower in _IRREGULAR:
        plural = _IRREGULAR[lower]
    elif lower.endswith(("s", "x", "z", "ch", "sh")):
        plural = last + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = last[:-1] + "ies"
    else:
        plural = last + "s"

    return f"{head}{sep}{plural}"
