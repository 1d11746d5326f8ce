"""Distribution stage: price, track assignment, country availability.

Track assignment is a read-modify-write of the track's release list. The
platform exposes no conditional update, so two runs against the same track at
the same time can overwrite each other; invocations per package must be
serialized by the caller.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict, as_str_dict, get_list
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import PublishingApi, as_unavailable
from hounds.publish.errors import (
    ConfigInvalid,
    DistributionPartial,
    InvalidTrack,
    PublishError,
    StageWarning,
)
from hounds.publish.model import TRACKS, DistributionConfig, PricingConfig, StageReport, Track

DEFAULT_CURRENCY = "USD"
MICROS_PER_UNIT = 1_000_000


def check_track(track: str) -> Result[Track, InvalidTrack]:
    for known in TRACKS:
        if track == known:
            return Ok(known)
    return Err(InvalidTrack(track=track))


def price_micros(price: str) -> Result[str, ConfigInvalid]:
    """Convert a major-unit price string to integer micro-units.

    Rounds half up on the decimal value, so "1.005" gives "1005000" and
    "0.0000005" gives "1".
    """
    try:
        value = Decimal(price.strip())
    except InvalidOperation:
        problem = f"distribution.pricing.price: not a number: {price!r}"
        return Err(ConfigInvalid(problems=(problem,)))
    if not value.is_finite() or value < 0:
        return Err(ConfigInvalid(problems=(f"distribution.pricing.price: invalid: {price!r}",)))

    micros = (value * MICROS_PER_UNIT).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return Ok(str(int(micros)))


def pricing_request(pricing: PricingConfig) -> Result[StrDict, ConfigInvalid]:
    currency = pricing.currency or DEFAULT_CURRENCY
    if pricing.free:
        return Ok({"price": {"priceMicros": "0", "currency": currency}})

    if pricing.price is None:
        problem = "distribution.pricing.price: required when free=false"
        return Err(ConfigInvalid(problems=(problem,)))
    micros = price_micros(pricing.price)
    if isinstance(micros, Err):
        return micros
    return Ok({"price": {"priceMicros": micros.value, "currency": currency}})


def track_release(
    *, version_code: int, language: str, release_notes: str | None
) -> StrDict:
    release: StrDict = {
        "versionCodes": [str(version_code)],
        "status": "completed",
    }
    if release_notes:
        release["releaseNotes"] = [{"language": language, "text": release_notes}]
    return release


def assign_track(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    track: Track,
    release: StrDict,
) -> Result[StrDict, PublishError]:
    current = api.get_track(package, edit_id, track)
    if isinstance(current, Err):
        if not current.error.not_found:
            return Err(as_unavailable(f"get {track} track", current.error))
        existing: list[object] = []
    else:
        releases = get_list(current.value, "releases") or []
        existing = [r for r in releases if as_str_dict(r) is not None]

    body: StrDict = {"track": track, "releases": [*existing, release]}
    updated = api.update_track(package, edit_id, track, body)
    if isinstance(updated, Err):
        return Err(as_unavailable(f"update {track} track", updated.error))
    return Ok(updated.value)


def apply_distribution(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    version_code: int,
    language: str,
    distribution: DistributionConfig,
    console: ConsoleProtocol,
) -> Result[StageReport, PublishError]:
    console.header("Distribution")

    track = check_track(distribution.track)
    if isinstance(track, Err):
        return track
    pricing = pricing_request(distribution.pricing)
    if isinstance(pricing, Err):
        return pricing

    priced = api.update_pricing(package, edit_id, pricing.value)
    if isinstance(priced, Err):
        return Err(as_unavailable("update pricing", priced.error))
    if distribution.pricing.free:
        console.success("pricing: free")
    else:
        currency = distribution.pricing.currency or DEFAULT_CURRENCY
        console.success(f"pricing: {currency} {distribution.pricing.price}")

    release = track_release(
        version_code=version_code, language=language, release_notes=distribution.release_notes
    )
    assigned = assign_track(
        api=api, package=package, edit_id=edit_id, track=track.value, release=release
    )
    if isinstance(assigned, Err):
        return assigned
    console.success(f"version {version_code} added to {track.value} track")

    warnings: list[StageWarning] = []
    countries = distribution.countries
    body: StrDict = (
        {"syncWithProduction": False, "countries": [], "restOfWorld": True}
        if countries == "all"
        else {"syncWithProduction": False, "countries": list(countries), "restOfWorld": False}
    )
    available = api.update_availability(package, edit_id, body)
    if isinstance(available, Err):
        warnings.append(DistributionPartial(reason=available.error.message))
        console.warning(f"country availability not set: {available.error.message}")
        console.print("hint: set availability in the store console", Style.DIM)
    else:
        where = "all countries" if countries == "all" else ", ".join(countries)
        console.success(f"availability: {where}")

    return Ok(StageReport(stage="distribution", warnings=tuple(warnings)))
