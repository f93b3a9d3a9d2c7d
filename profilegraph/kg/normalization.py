"""
Name, URL and attribute normalization for consistent matching.

Every comparison the resolver and the inference engine make goes through
one of these functions, so two records that refer to the same company,
school or profile normalize to the same string.
"""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import urlsplit

_PROFILE_SLUG_RE = re.compile(r"linkedin\.com/in/([^/?#]+)", re.IGNORECASE)
_COMPANY_SUFFIX_RE = re.compile(
    r"\s+(inc|llc|ltd|corp|corporation|co|company|group|holdings)\.?$",
    re.IGNORECASE,
)
_SCHOOL_GENERIC_RE = re.compile(
    r"\b(university|college|school|institute|of|the)\b", re.IGNORECASE
)
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
# "Partner at Acme Ventures | Angel investor" -> "Acme Ventures"
_BIO_COMPANY_RE = re.compile(r"(?:\bat|@)\s+(.+?)(?:\s*[|•·\-]|\s*$)", re.IGNORECASE)


def normalize_entity_name(name: str | None) -> str:
    """
    Normalize a person or entity name for comparison.

    Steps:
    1. Unicode NFKC normalization (compatibility decomposition)
    2. Casefold (better than lower() for Unicode)
    3. Collapse whitespace
    4. Strip leading/trailing punctuation only

    Args:
        name: The name to normalize.

    Returns:
        Normalized name for comparison.

    Examples:
        >>> normalize_entity_name("  Jane  DOE  ")
        'jane doe'
        >>> normalize_entity_name("Dr. Pepper")
        'dr. pepper'
    """
    if not name:
        return ""

    text = unicodedata.normalize("NFKC", name)
    text = text.casefold()
    text = " ".join(text.split())
    text = text.strip(".,;:!?\"'()[]{}")

    return text


def _strip_punctuation(text: str) -> str:
    return " ".join(_PUNCTUATION_RE.sub("", text).split())


def slugify(text: str | None) -> str:
    """
    Turn a display name into a key-safe slug.

    Examples:
        >>> slugify("Acme, Inc.")
        'acme-inc'
        >>> slugify("  ")
        ''
    """
    normalized = normalize_entity_name(text)
    return re.sub(r"[^\w]+", "-", normalized).strip("-_")


def profile_slug(url: str | None) -> str | None:
    """
    Extract the ``/in/<slug>`` identifier from a LinkedIn profile URL.

    Returns:
        Lower-cased slug, or None if the URL has no profile segment
    """
    if not url:
        return None
    match = _PROFILE_SLUG_RE.search(url)
    return match.group(1).lower() if match else None


def canonicalize_profile_url(url: str | None) -> str:
    """
    Canonical form of a profile URL for exact matching.

    LinkedIn profile URLs collapse to ``linkedin.com/in/<slug>`` regardless
    of scheme, subdomain, query string or trailing slash. Other URLs are
    lower-cased with scheme, ``www.``, query, fragment and trailing slash
    removed.

    Examples:
        >>> canonicalize_profile_url("https://www.LinkedIn.com/in/Jane-Doe/?trk=x")
        'linkedin.com/in/jane-doe'
        >>> canonicalize_profile_url("http://example.com/people/jane/")
        'example.com/people/jane'
    """
    if not url or not url.strip():
        return ""
    slug = profile_slug(url)
    if slug:
        return f"linkedin.com/in/{slug}"

    raw = url.strip()
    if "://" not in raw:
        raw = f"//{raw}"
    parts = urlsplit(raw)
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/").lower()
    return f"{host}{path}"


def normalize_company(company: str | None) -> str:
    """
    Normalize a company name for same-employer matching.

    Lower-cases, strips one trailing legal suffix (Inc, LLC, Corp, ...),
    removes punctuation and collapses whitespace.

    Examples:
        >>> normalize_company("Acme Inc.")
        'acme'
        >>> normalize_company("ACME")
        'acme'
    """
    if not company:
        return ""
    text = " ".join(company.lower().split())
    text = _COMPANY_SUFFIX_RE.sub("", text)
    return _strip_punctuation(text)


def normalize_school(school: str | None) -> str:
    """
    Normalize a school name for same-school matching.

    Removes generic words (university, college, school, institute, of,
    the), punctuation and extra whitespace.

    Examples:
        >>> normalize_school("The University of Oxford")
        'oxford'
        >>> normalize_school("Oxford University")
        'oxford'
    """
    if not school:
        return ""
    text = _SCHOOL_GENERIC_RE.sub(" ", school.lower())
    return _strip_punctuation(text)


def normalize_skill(skill: str | None) -> str:
    """Lower-case and trim a skill label."""
    if not skill:
        return ""
    return " ".join(skill.split()).lower()


def extract_company_from_bio(about: str | None) -> str | None:
    """
    Guess a company from a free-text bio snippet of the form "<text> at <company>".

    Examples:
        >>> extract_company_from_bio("Partner at Acme Ventures | Angel investor")
        'Acme Ventures'
        >>> extract_company_from_bio("Building things") is None
        True
    """
    if not about:
        return None
    match = _BIO_COMPANY_RE.search(about)
    if not match:
        return None
    company = match.group(1).strip()
    return company or None
