from __future__ import annotations

from hounds.core.result import Err, Ok
from hounds.output.console import MockConsole
from hounds.publish.api import ApiError, MockPublishingApi
from hounds.publish.compliance import (
    age_band,
    apply_compliance,
    questionnaire_request,
    rating_request,
)
from hounds.publish.errors import ApiUnavailable, ClassificationRejected
from hounds.publish.model import ComplianceConfig, DataSafety


def _err(status: int, message: str = "x") -> ApiError:
    return ApiError(url="mock", status=status, message=message)


class TestMapping:
    def test_defaults(self) -> None:
        body = rating_request(ComplianceConfig())

        assert body == {
            "rating": "EVERYONE",
            "ratingId": "APPLICATION",
            "dataSafety": {
                "collectsPersonalData": False,
                "sharesPersonalData": False,
                "collectsLocation": False,
            },
        }

    def test_gambling_defaults_to_mature(self) -> None:
        compliance = ComplianceConfig(is_gambling_app=True)

        assert age_band(compliance) == "MATURE"
        assert rating_request(compliance)["ratingId"] == "APPLICATION_GAMBLING"

    def test_explicit_age_group_overrides_gambling_default(self) -> None:
        compliance = ComplianceConfig(is_gambling_app=True, target_age_group="teen")

        assert age_band(compliance) == "TEEN"
        assert rating_request(compliance)["ratingId"] == "APPLICATION_GAMBLING"

    def test_descriptors_and_flags(self) -> None:
        compliance = ComplianceConfig(
            is_health_app=True,
            target_age_group="teen",
            contains_violence=True,
            contains_drugs=True,
            data_safety=DataSafety(collects_location=True),
        )

        body = rating_request(compliance)

        assert body["rating"] == "TEEN"
        assert body["ratingId"] == "APPLICATION_MEDICAL"
        assert body["contentDescriptors"] == ["VIOLENCE", "DRUGS"]
        assert body["dataSafety"] == {
            "collectsPersonalData": False,
            "sharesPersonalData": False,
            "collectsLocation": True,
        }

    def test_unknown_age_band_defaults_to_everyone(self) -> None:
        assert age_band(ComplianceConfig(target_age_group="TODDLER")) == "EVERYONE"

    def test_questionnaire_shape(self) -> None:
        body = questionnaire_request(ComplianceConfig(is_financial_app=True))

        assert body["targetAgeGroup"] == "EVERYONE"
        assert body["questionnaire"] == {
            "gambling": False,
            "financialFeatures": True,
            "healthFeatures": False,
            "violence": False,
            "sexualContent": False,
            "controlledSubstances": False,
        }


class TestApplyCompliance:
    def test_primary_accepted(self, api: MockPublishingApi, console: MockConsole) -> None:
        result = apply_compliance(
            api=api, package="com.x", edit_id="e1", compliance=ComplianceConfig(), console=console
        )

        assert isinstance(result, Ok)
        assert result.value.clean
        assert api.count("update_content_rating") == 1

    def test_falls_back_to_questionnaire_once(
        self, api: MockPublishingApi, console: MockConsole
    ) -> None:
        api.fail("update_content_rating", _err(400, "unknown field ratingId"), times=1)

        result = apply_compliance(
            api=api, package="com.x", edit_id="e1", compliance=ComplianceConfig(), console=console
        )

        assert isinstance(result, Ok)
        assert result.value.clean
        sent = api.requests["update_content_rating"]
        assert len(sent) == 2
        assert "ratingId" in sent[0]
        assert "questionnaire" in sent[1]

    def test_second_rejection_is_only_a_warning(
        self, api: MockPublishingApi, console: MockConsole
    ) -> None:
        api.fail("update_content_rating", _err(400, "not supported"))

        result = apply_compliance(
            api=api, package="com.x", edit_id="e1", compliance=ComplianceConfig(), console=console
        )

        assert isinstance(result, Ok)
        assert result.value.warnings == (ClassificationRejected(reason="not supported"),)
        assert api.count("update_content_rating") == 2
        assert console.has_warning()

    def test_not_found_skips_alternate(self, api: MockPublishingApi, console: MockConsole) -> None:
        api.fail("update_content_rating", _err(404, "no such resource"))

        result = apply_compliance(
            api=api, package="com.x", edit_id="e1", compliance=ComplianceConfig(), console=console
        )

        assert isinstance(result, Ok)
        assert result.value.warnings == (ClassificationRejected(reason="no such resource"),)
        assert api.count("update_content_rating") == 1

    def test_auth_failure_is_fatal(self, api: MockPublishingApi, console: MockConsole) -> None:
        api.fail("update_content_rating", _err(403, "forbidden"))

        result = apply_compliance(
            api=api, package="com.x", edit_id="e1", compliance=ComplianceConfig(), console=console
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, ApiUnavailable)
