"""Content classification and data-handling disclosures.

Answers from the publish configuration are mapped onto the platform's rating
request. Two request shapes are known to be accepted depending on the account;
the primary one is tried first, the questionnaire shape once after a
rejection, and a second rejection only produces a warning. Ratings can be
corrected from the store console after publishing.
"""

from __future__ import annotations

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import ApiError, PublishingApi, as_unavailable
from hounds.publish.errors import ClassificationRejected, PublishError
from hounds.publish.model import ComplianceConfig, StageReport

AGE_BANDS = ("EVERYONE", "EVERYONE_10_PLUS", "TEEN", "MATURE")


def _data_safety(compliance: ComplianceConfig) -> StrDict:
    ds = compliance.data_safety
    return {
        "collectsPersonalData": ds.collects_personal_data,
        "sharesPersonalData": ds.shares_personal_data,
        "collectsLocation": ds.collects_location,
    }


def age_band(compliance: ComplianceConfig) -> str:
    """An explicit target age group wins; gambling apps otherwise default to MATURE."""
    if compliance.target_age_group:
        band = compliance.target_age_group.upper()
        return band if band in AGE_BANDS else "EVERYONE"
    return "MATURE" if compliance.is_gambling_app else "EVERYONE"


def rating_request(compliance: ComplianceConfig) -> StrDict:
    """Primary request shape: a rating id, an age band and descriptors."""
    if compliance.is_gambling_app:
        rating_id = "APPLICATION_GAMBLING"
    elif compliance.is_financial_app:
        rating_id = "APPLICATION_FINANCE"
    elif compliance.is_health_app:
        rating_id = "APPLICATION_MEDICAL"
    else:
        rating_id = "APPLICATION"

    body: StrDict = {
        "rating": age_band(compliance),
        "ratingId": rating_id,
        "dataSafety": _data_safety(compliance),
    }

    descriptors: list[object] = []
    if compliance.contains_violence:
        descriptors.append("VIOLENCE")
    if compliance.contains_sexual_content:
        descriptors.append("SEXUAL_CONTENT")
    if compliance.contains_drugs:
        descriptors.append("DRUGS")
    if descriptors:
        body["contentDescriptors"] = descriptors
    return body


def questionnaire_request(compliance: ComplianceConfig) -> StrDict:
    """Alternate request shape: raw questionnaire answers."""
    return {
        "questionnaire": {
            "gambling": compliance.is_gambling_app,
            "financialFeatures": compliance.is_financial_app,
            "healthFeatures": compliance.is_health_app,
            "violence": compliance.contains_violence,
            "sexualContent": compliance.contains_sexual_content,
            "controlledSubstances": compliance.contains_drugs,
        },
        "targetAgeGroup": age_band(compliance),
        "dataSafety": _data_safety(compliance),
    }


def _fatal(error: ApiError) -> bool:
    return error.unauthorized or error.transient


def apply_compliance(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    compliance: ComplianceConfig,
    console: ConsoleProtocol,
) -> Result[StageReport, PublishError]:
    console.header("Content rating & data safety")

    primary = api.update_content_rating(package, edit_id, rating_request(compliance))
    if isinstance(primary, Ok):
        console.success(f"content rating set ({age_band(compliance)})")
        return Ok(StageReport(stage="compliance"))

    error = primary.error
    if _fatal(error):
        return Err(as_unavailable("update content rating", error))

    if error.rejected:
        console.print(f"rating request rejected ({error.message}); trying questionnaire", Style.DIM)
        alternate = api.update_content_rating(package, edit_id, questionnaire_request(compliance))
        if isinstance(alternate, Ok):
            console.success(f"content rating set via questionnaire ({age_band(compliance)})")
            return Ok(StageReport(stage="compliance"))
        error = alternate.error
        if _fatal(error):
            return Err(as_unavailable("update content rating", error))

    console.warning(f"content rating not set: {error.message}")
    console.print("hint: complete the rating questionnaire in the store console", Style.DIM)
    return Ok(
        StageReport(stage="compliance", warnings=(ClassificationRejected(reason=error.message),))
    )
