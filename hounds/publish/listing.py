"""Store listing stage: title, descriptions, category and policy link."""

from __future__ import annotations

from urllib.parse import urlparse

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import PublishingApi, as_unavailable
from hounds.publish.errors import (
    DetailsPartial,
    ListingRejected,
    MetadataInvalid,
    PublishError,
    StageWarning,
    UnknownCategory,
)
from hounds.publish.model import ListingConfig, StageReport

TITLE_MAX = 50
SHORT_DESCRIPTION_MAX = 80
FULL_DESCRIPTION_MAX = 4000

KNOWN_CATEGORIES = frozenset(
    {
        "APPLICATION_PRODUCTIVITY",
        "APPLICATION_GAME",
        "APPLICATION_FINANCE",
        "APPLICATION_MEDICAL",
        "GAME_ACTION",
        "GAME_ADVENTURE",
        "GAME_ARCADE",
        "GAME_BOARD",
        "GAME_CARD",
        "GAME_CASINO",
        "GAME_CASUAL",
        "GAME_EDUCATIONAL",
        "GAME_MUSIC",
        "GAME_PUZZLE",
        "GAME_RACING",
        "GAME_ROLE_PLAYING",
        "GAME_SIMULATION",
        "GAME_SPORTS",
        "GAME_STRATEGY",
        "GAME_TRIVIA",
        "GAME_WORD",
    }
)


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and " " not in value


def validate_listing(listing: ListingConfig) -> Result[tuple[StageWarning, ...], MetadataInvalid]:
    """Check field limits locally, before any network call.

    Returns the non-fatal findings (currently: an unrecognised category).
    """
    limits = (
        ("title", listing.title, TITLE_MAX),
        ("shortDescription", listing.short_description, SHORT_DESCRIPTION_MAX),
        ("fullDescription", listing.full_description, FULL_DESCRIPTION_MAX),
    )
    for field, value, limit in limits:
        if len(value) > limit:
            return Err(
                MetadataInvalid(
                    field=field, reason=f"{len(value)} characters (max {limit})"
                )
            )

    if not is_valid_url(listing.policy_url):
        return Err(MetadataInvalid(field="policyUrl", reason=f"not a URL: {listing.policy_url!r}"))

    if listing.category not in KNOWN_CATEGORIES:
        return Ok((UnknownCategory(category=listing.category),))
    return Ok(())


def apply_listing(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    language: str,
    listing: ListingConfig,
    console: ConsoleProtocol,
) -> Result[StageReport, PublishError]:
    console.header(f"Store listing ({language})")

    checked = validate_listing(listing)
    if isinstance(checked, Err):
        return checked

    body: StrDict = {
        "language": language,
        "title": listing.title,
        "shortDescription": listing.short_description,
        "fullDescription": listing.full_description,
    }
    updated = api.update_listing(package, edit_id, language, body)
    if isinstance(updated, Err):
        if updated.error.rejected:
            return Err(ListingRejected(language=language, diagnostic=updated.error.message))
        return Err(as_unavailable("update listing", updated.error))
    console.success("listing text updated")

    warnings: list[StageWarning] = list(checked.value)

    # Category and policy link have no stable home in the listing resource;
    # they go through a separate call whose failure is not fatal.
    details: StrDict = {
        "category": listing.category,
        "privacyPolicyUrl": listing.policy_url,
    }
    patched = api.patch_details(package, edit_id, details)
    if isinstance(patched, Err):
        warnings.append(
            DetailsPartial(fields=("category", "policyUrl"), reason=patched.error.message)
        )
        console.warning(f"could not set category/policy link: {patched.error.message}")
        console.print("hint: set them in the store console after publishing", Style.DIM)
    else:
        console.success(f"category: {listing.category}")

    return Ok(StageReport(stage="listing", warnings=tuple(warnings)))
