from __future__ import annotations

import re
import secrets

from webtoolkit.core.errors import EmptyInputError, NoValidCharactersError

# 64 characters, all safe in file names.
RANDOM_STRING_SOURCE = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def random_string(n: int) -> str:
    """Return n characters drawn uniformly from RANDOM_STRING_SOURCE.

    Uses the secrets CSPRNG, so generated file names are unpredictable.
    """

    if n < 0:
        raise ValueError("n must be >= 0")
    return "".join(secrets.choice(RANDOM_STRING_SOURCE) for _ in range(n))


def slugify(s: str) -> str:
    """Convert s into a URL safe slug: "this is^.a__=TEST" -> "this-is-a-test".

    Only ASCII letters and digits survive; every other run becomes one hyphen.
    Raises EmptyInputError for blank input and NoValidCharactersError when
    nothing is left.
    """

    if not s.strip(" "):
        raise EmptyInputError()

    slug = _NON_SLUG.sub("-", s.lower()).strip("-")
    if not slug:
        raise NoValidCharactersError()
    return slug
