"""Publish configuration file: load, override, template.

The file is JSON. Relative paths inside it are resolved against the file's
own directory. Every missing required field is reported at once so a broken
file can be fixed in one pass.

The layout written by older tooling (``packageName``, ``build.aab`` /
``build.apk``, ``metadata``, ``contentRating``) is read as well.
"""

from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path
from typing import Literal

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_list,
    get_str,
    get_table,
)
from hounds.platform.files import atomic_write_json
from hounds.publish.errors import ConfigInvalid
from hounds.publish.model import (
    ComplianceConfig,
    DataSafety,
    DistributionConfig,
    GraphicsConfig,
    ListingConfig,
    PricingConfig,
    PublishConfig,
)

LISTING_FIELDS = ("title", "shortDescription", "fullDescription", "category", "policyUrl")


def _resolve(base: Path, raw: str | None) -> Path | None:
    if raw is None:
        return None
    p = Path(raw).expanduser()
    return p if p.is_absolute() else base / p


def _artifact(data: StrDict, problems: list[str]) -> str | None:
    direct = get_str(data, "artifactPath")
    if direct is not None:
        return direct

    build = get_table(data, "build") or {}
    aab = get_str(build, "aab")
    apk = get_str(build, "apk")
    if aab and apk:
        problems.append("build.aab and build.apk are mutually exclusive")
        return None
    return aab or apk


def _listing(data: StrDict, problems: list[str]) -> ListingConfig | None:
    table = get_table(data, "listing") or get_table(data, "metadata") or {}
    values: dict[str, str] = {}
    for name in LISTING_FIELDS:
        value = get_str(table, name)
        if value is None and name == "policyUrl":
            value = get_str(table, "privacyPolicyUrl")
        if value is None:
            problems.append(f"listing.{name}")
        else:
            values[name] = value

    if len(values) != len(LISTING_FIELDS):
        return None
    return ListingConfig(
        title=values["title"],
        short_description=values["shortDescription"],
        full_description=values["fullDescription"],
        category=values["category"],
        policy_url=values["policyUrl"],
    )


def _graphics(data: StrDict, base: Path) -> GraphicsConfig | None:
    table = get_table(data, "graphics")
    if table is None:
        return None
    return GraphicsConfig(
        screenshots_dir=_resolve(base, get_str(table, "screenshotsDir")),
        icon=_resolve(base, get_str(table, "icon")),
        feature_graphic=_resolve(base, get_str(table, "featureGraphic")),
    )


def _compliance(data: StrDict) -> ComplianceConfig | None:
    table = get_table(data, "compliance") or get_table(data, "contentRating")
    if table is None:
        return None
    safety = get_table(table, "dataSafety") or {}
    return ComplianceConfig(
        is_gambling_app=get_bool(table, "isGamblingApp"),
        is_financial_app=get_bool(table, "isFinancialApp"),
        is_health_app=get_bool(table, "isHealthApp"),
        target_age_group=get_str(table, "targetAgeGroup"),
        contains_violence=get_bool(table, "containsViolence"),
        contains_sexual_content=get_bool(table, "containsSexualContent"),
        contains_drugs=get_bool(table, "containsDrugs"),
        data_safety=DataSafety(
            collects_personal_data=get_bool(safety, "collectsPersonalData"),
            shares_personal_data=get_bool(safety, "sharesPersonalData"),
            collects_location=get_bool(safety, "collectsLocation"),
        ),
    )


def _price(table: StrDict, problems: list[str]) -> str | None:
    raw = table.get("price")
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        problems.append("distribution.pricing.price must be a string or number")
        return None
    return str(raw).strip() or None


def _free(table: StrDict, price: str | None, problems: list[str]) -> bool:
    """A price without an explicit ``free`` flag means a paid app."""
    raw = table.get("free")
    if raw is None:
        return price is None
    if not isinstance(raw, bool):
        problems.append("distribution.pricing.free must be true or false")
        return price is None
    return raw


def _countries(table: StrDict, problems: list[str]) -> Literal["all"] | tuple[str, ...]:
    raw = table.get("countries", "all")
    if raw == "all":
        return "all"

    items = get_list(table, "countries")
    if items is None:
        problems.append("distribution.countries must be \"all\" or a list of region codes")
        return "all"
    if not items:
        problems.append("distribution.countries must be \"all\" or a non-empty list")
        return ()

    codes: list[str] = []
    for item in items:
        if not isinstance(item, str) or not item.strip():
            problems.append(f"distribution.countries: not a region code: {item!r}")
            continue
        codes.append(item.strip().upper())
    return tuple(codes)


def _distribution(data: StrDict, problems: list[str]) -> DistributionConfig:
    table = get_table(data, "distribution") or {}
    pricing = get_table(table, "pricing") or {}
    price = _price(pricing, problems)

    return DistributionConfig(
        track=get_str(table, "track") or "internal",
        pricing=PricingConfig(
            free=_free(pricing, price, problems),
            price=price,
            currency=get_str(pricing, "currency"),
        ),
        countries=_countries(table, problems),
        release_notes=get_str(table, "releaseNotes"),
    )


def parse_publish_config(
    data: StrDict,
    *,
    base: Path,
    source: Path | None = None,
    default_language: str = "en-US",
) -> Result[PublishConfig, ConfigInvalid]:
    problems: list[str] = []

    package = get_str(data, "releaseTargetId") or get_str(data, "packageName")
    if package is None:
        problems.append("releaseTargetId")

    artifact = _artifact(data, problems)
    if artifact is None and not any("build." in p for p in problems):
        problems.append("artifactPath")

    listing = _listing(data, problems)
    distribution = _distribution(data, problems)

    if problems or package is None or artifact is None or listing is None:
        return Err(ConfigInvalid(problems=tuple(problems), path=source))

    return Ok(
        PublishConfig(
            package_name=package,
            artifact_path=_resolve(base, artifact) or Path(artifact),
            listing=listing,
            language=get_str(data, "language") or default_language,
            graphics=_graphics(data, base),
            compliance=_compliance(data),
            distribution=distribution,
            source=source,
        )
    )


def load_publish_config(
    path: Path, *, default_language: str = "en-US"
) -> Result[PublishConfig, ConfigInvalid]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(ConfigInvalid(problems=(f"config file not found: {path}",), path=path))
    except OSError as e:
        return Err(ConfigInvalid(problems=(f"cannot read config file: {e}",), path=path))

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ConfigInvalid(problems=(f"invalid JSON: {e}",), path=path))

    data = as_str_dict(obj)
    if data is None:
        return Err(ConfigInvalid(problems=("config root must be a JSON object",), path=path))

    return parse_publish_config(
        data, base=path.parent, source=path, default_language=default_language
    )


def apply_overrides(
    config: PublishConfig, *, artifact: Path | None = None, track: str | None = None
) -> PublishConfig:
    """Return a copy with caller overrides applied; the input is not modified."""
    out = config
    if artifact is not None:
        out = replace(out, artifact_path=artifact)
    if track is not None:
        out = replace(out, distribution=replace(out.distribution, track=track.strip()))
    return out


def template_payload(package: str | None = None, title: str | None = None) -> StrDict:
    return {
        "releaseTargetId": package or "com.example.app",
        "artifactPath": "./app/build/outputs/bundle/release/app-release.aab",
        "language": "en-US",
        "listing": {
            "title": title or "My Awesome App",
            "shortDescription": "Short description (max 80 characters)",
            "fullDescription": (
                "Full description with details about your app. "
                "This can be up to 4000 characters."
            ),
            "category": "APPLICATION_PRODUCTIVITY",
            "policyUrl": "https://example.com/privacy",
        },
        "graphics": {
            "screenshotsDir": "./screenshots/android",
            "icon": None,
            "featureGraphic": None,
        },
        "compliance": {
            "isFinancialApp": False,
            "isHealthApp": False,
            "isGamblingApp": False,
            "targetAgeGroup": "EVERYONE",
            "containsViolence": False,
            "containsSexualContent": False,
            "containsDrugs": False,
            "dataSafety": {
                "collectsPersonalData": False,
                "sharesPersonalData": False,
                "collectsLocation": False,
            },
        },
        "distribution": {
            "track": "internal",
            "pricing": {"free": True},
            "countries": "all",
        },
    }


def write_template(
    path: Path, *, package: str | None = None, title: str | None = None, force: bool = False
) -> Result[Path, ConfigInvalid]:
    if path.exists() and not force:
        problem = f"config file already exists: {path} (use --force)"
        return Err(ConfigInvalid(problems=(problem,), path=path))
    try:
        atomic_write_json(path, template_payload(package, title))
    except OSError as e:
        return Err(ConfigInvalid(problems=(f"cannot write config file: {e}",), path=path))
    return Ok(path)
