"""
Provider adapters: raw provider payloads -> ProfileRecord.

Each data provider names the same profile fields differently (``position``
vs ``headline``, ``company_name`` vs ``company``, follower counts as numbers
or as "11M followers"). Each adapter folds one provider's shape into the
normalized ProfileRecord so nothing downstream sees provider-specific keys.
The network calls that fetch these payloads live outside this package.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from profilegraph.kg.models import (
    Education,
    Experience,
    ProfileRecord,
    Recommendation,
)

logger = logging.getLogger(__name__)

_COUNT_RE = re.compile(r"^\s*([\d.,]+)\s*([KMB]?)", re.IGNORECASE)
_COUNT_MULTIPLIERS = {"": 1, "K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


def _first(data: dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-empty value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _as_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_count(value: Any) -> int | None:
    """
    Parse a social-proof counter.

    Accepts ints and strings such as "11M followers", "1.5K", "500+".

    Examples:
        >>> parse_count("11M followers")
        11000000
        >>> parse_count("500+")
        500
        >>> parse_count(None) is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _COUNT_RE.match(str(value))
    if not match:
        return None
    try:
        number = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    return round(number * _COUNT_MULTIPLIERS[match.group(2).upper()])


def _parse_skills(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return []
    skills: list[str] = []
    for item in raw:
        if isinstance(item, dict):
            text = _as_str(_first(item, "name", "title"))
        else:
            text = _as_str(item)
        if text:
            skills.append(text)
    return skills


def _parse_recommendations(raw: Any) -> list[Recommendation]:
    if not isinstance(raw, list):
        return []
    recs: list[Recommendation] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        recs.append(
            Recommendation(
                name=_as_str(_first(item, "name", "title")),
                profile_link=_as_str(_first(item, "profile_link", "profileLink", "link")),
                about=_as_str(_first(item, "about", "headline", "position")),
                location=_as_str(item.get("location")),
            )
        )
    return recs


def from_brightdata(payload: dict[str, Any], profile_url: str) -> ProfileRecord:
    """
    Normalize a Bright Data LinkedIn profile payload.

    Bright Data reports the school name as ``title``, headline as
    ``position`` and uses snake_case dates.

    Args:
        payload: Raw JSON object returned by the provider
        profile_url: URL the profile was requested for

    Returns:
        Normalized ProfileRecord
    """
    experience = [
        Experience(
            company=_as_str(_first(exp, "company", "company_name")),
            title=_as_str(exp.get("title")),
            start_date=_as_str(_first(exp, "start_date", "startDate")),
            end_date=_as_str(_first(exp, "end_date", "endDate")),
            description=_as_str(_first(exp, "description_html", "description")),
            company_url=_as_str(exp.get("url")),
            company_logo_url=_as_str(exp.get("company_logo_url")),
            company_id=_as_str(exp.get("company_id")),
        )
        for exp in payload.get("experience") or []
        if isinstance(exp, dict)
    ]

    raw_education = payload.get("education")
    education = [
        Education(
            school=_as_str(_first(edu, "title", "school_name", "school")),
            degree=_as_str(_first(edu, "degree", "degree_name")),
            field=_as_str(_first(edu, "field_of_study", "field")),
            start_date=_as_str(_first(edu, "start_year", "start_date")),
            end_date=_as_str(_first(edu, "end_year", "end_date")),
            url=_as_str(edu.get("url")),
            logo_url=_as_str(edu.get("institute_logo_url")),
        )
        for edu in (raw_education if isinstance(raw_education, list) else [])
        if isinstance(edu, dict)
    ]

    skills = _parse_skills(payload.get("skills"))
    if not skills:
        # Some payloads only carry languages
        skills = _parse_skills(payload.get("languages"))

    record = ProfileRecord(
        name=_as_str(payload.get("name")) or "",
        first_name=_as_str(payload.get("first_name")),
        last_name=_as_str(payload.get("last_name")),
        headline=_as_str(_first(payload, "position", "headline")),
        location=_as_str(_first(payload, "location", "city")),
        summary=_as_str(_first(payload, "about", "summary")),
        profile_url=profile_url,
        profile_picture_url=_as_str(_first(payload, "avatar", "profile_picture_url")),
        experience=experience,
        education=education,
        skills=skills,
        followers=parse_count(payload.get("followers")),
        connections=parse_count(_first(payload, "connections", "connections_count")),
        bio_links=[
            link["link"]
            for link in payload.get("bio_links") or []
            if isinstance(link, dict) and link.get("link")
        ],
        people_also_viewed=_parse_recommendations(payload.get("people_also_viewed")),
    )
    logger.debug(
        f"Normalized Bright Data profile {profile_url}: "
        f"{len(record.experience)} experience, {len(record.education)} education, "
        f"{len(record.skills)} skills"
    )
    return record


def _split_duration(duration: Any) -> tuple[str | None, str | None]:
    """Split a "1994 - 1996" duration string into start and end."""
    if not isinstance(duration, str) or not duration.strip(" -"):
        return None, None
    start, _, end = duration.partition(" - ")
    return _as_str(start), _as_str(end)


def from_scrapingdog(payload: dict[str, Any], profile_url: str) -> ProfileRecord:
    """
    Normalize a Scrapingdog LinkedIn profile payload.

    Scrapingdog reports counters as strings ("11M followers"), school names
    as ``college_name`` and education spans as one ``college_duration``
    string.

    Args:
        payload: Raw JSON object returned by the provider
        profile_url: URL the profile was requested for

    Returns:
        Normalized ProfileRecord
    """
    experience = []
    for exp in payload.get("experience") or []:
        if not isinstance(exp, dict):
            continue
        end_date = _as_str(_first(exp, "ends_at", "end_date"))
        experience.append(
            Experience(
                company=_as_str(_first(exp, "company_name", "company", "organization")),
                title=_as_str(_first(exp, "position", "title")),
                start_date=_as_str(_first(exp, "starts_at", "start_date")),
                end_date=None if end_date == "Present" else end_date,
                description=_as_str(_first(exp, "summary", "description")),
                company_url=_as_str(exp.get("company_url")),
                company_logo_url=_as_str(_first(exp, "company_image", "company_logo")),
                company_id=_as_str(exp.get("company_id")),
            )
        )

    education = []
    for edu in payload.get("education") or []:
        if not isinstance(edu, dict):
            continue
        start, end = _split_duration(edu.get("college_duration"))
        education.append(
            Education(
                school=_as_str(
                    _first(edu, "college_name", "title", "school", "school_name", "institution")
                ),
                degree=_as_str(_first(edu, "college_degree", "degree_name", "degree")),
                field=_as_str(_first(edu, "college_degree_field", "field_of_study", "field")),
                start_date=start or _as_str(_first(edu, "starts_at", "start_date")),
                end_date=end or _as_str(_first(edu, "ends_at", "end_date")),
                url=_as_str(_first(edu, "college_url", "school_url", "url")),
                logo_url=_as_str(_first(edu, "college_image", "school_image", "logo_url")),
            )
        )

    name = _as_str(_first(payload, "fullName", "full_name"))
    if not name:
        name = " ".join(
            part for part in (payload.get("first_name"), payload.get("last_name")) if part
        )

    return ProfileRecord(
        name=name or "",
        first_name=_as_str(payload.get("first_name")),
        last_name=_as_str(payload.get("last_name")),
        headline=_as_str(payload.get("headline")),
        location=_as_str(payload.get("location")),
        summary=_as_str(payload.get("about")),
        profile_url=profile_url,
        profile_picture_url=_as_str(_first(payload, "profile_photo", "profile_picture")),
        experience=experience,
        education=education,
        skills=_parse_skills(payload.get("skills")),
        followers=parse_count(payload.get("followers")),
        connections=parse_count(payload.get("connections")),
        people_also_viewed=_parse_recommendations(payload.get("people_also_viewed")),
    )


def from_twitter(payload: dict[str, Any], profile_url: str) -> ProfileRecord:
    """
    Normalize a Twitter/X profile payload.

    The person is keyed by username rather than by URL; the bio becomes the
    summary and the website a ``sameAs`` link. Import it with
    ``TransformOptions(source="Twitter")``.

    Args:
        payload: Raw JSON object returned by the provider
        profile_url: URL the profile was requested for

    Returns:
        Normalized ProfileRecord
    """
    username = _as_str(_first(payload, "username", "screen_name"))
    if username:
        username = username.lstrip("@")
    website = _as_str(_first(payload, "website", "url"))
    verified = payload.get("verified")

    return ProfileRecord(
        name=_as_str(payload.get("name")) or username or "",
        summary=_as_str(_first(payload, "bio", "description")),
        location=_as_str(payload.get("location")),
        profile_url=profile_url,
        profile_picture_url=_as_str(_first(payload, "profileImageUrl", "profile_image_url")),
        banner_url=_as_str(_first(payload, "bannerUrl", "profile_banner_url")),
        followers=parse_count(_first(payload, "followersCount", "followers_count")),
        bio_links=[website] if website else [],
        username=username,
        verified=verified if isinstance(verified, bool) else None,
    )
