from __future__ import annotations

import pytest

from hounds.core.result import Err, Ok
from hounds.output.console import MockConsole
from hounds.publish.api import ApiError, MockPublishingApi
from hounds.publish.distribution import (
    apply_distribution,
    assign_track,
    check_track,
    price_micros,
    pricing_request,
    track_release,
)
from hounds.publish.errors import ApiUnavailable, ConfigInvalid, DistributionPartial, InvalidTrack
from hounds.publish.model import DistributionConfig, PricingConfig


class TestPricing:
    def test_free(self) -> None:
        assert pricing_request(PricingConfig(free=True)) == Ok(
            {"price": {"priceMicros": "0", "currency": "USD"}}
        )

    def test_free_keeps_configured_currency(self) -> None:
        result = pricing_request(PricingConfig(free=True, currency="EUR"))
        assert result == Ok({"price": {"priceMicros": "0", "currency": "EUR"}})

    def test_paid_defaults_to_usd(self) -> None:
        result = pricing_request(PricingConfig(free=False, price="1.99"))
        assert result == Ok({"price": {"priceMicros": "1990000", "currency": "USD"}})

    @pytest.mark.parametrize(
        ("price", "micros"),
        [
            ("1.005", "1005000"),
            ("0.99", "990000"),
            ("10", "10000000"),
            ("0.0000005", "1"),
            ("0.0000004", "0"),
            (" 2.50 ", "2500000"),
        ],
    )
    def test_rounds_instead_of_truncating(self, price: str, micros: str) -> None:
        assert price_micros(price) == Ok(micros)

    @pytest.mark.parametrize("price", ["abc", "-1", "NaN", "Infinity"])
    def test_invalid_price(self, price: str) -> None:
        result = price_micros(price)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigInvalid)

    def test_paid_without_price(self) -> None:
        result = pricing_request(PricingConfig(free=False))
        assert isinstance(result, Err)


class TestTrack:
    @pytest.mark.parametrize("track", ["internal", "alpha", "beta", "production"])
    def test_known(self, track: str) -> None:
        assert check_track(track) == Ok(track)

    @pytest.mark.parametrize("track", ["canary", "Production", "", "internal "])
    def test_unknown(self, track: str) -> None:
        assert check_track(track) == Err(InvalidTrack(track=track))

    def test_release_entry(self) -> None:
        assert track_release(version_code=42, language="en-US", release_notes=None) == {
            "versionCodes": ["42"],
            "status": "completed",
        }

    def test_release_notes(self) -> None:
        release = track_release(version_code=3, language="fr-FR", release_notes="Corrections")
        assert release["releaseNotes"] == [{"language": "fr-FR", "text": "Corrections"}]

    def test_assign_appends_to_existing_releases(self, api: MockPublishingApi) -> None:
        api.tracks["beta"] = [{"versionCodes": ["7"], "status": "completed"}]

        result = assign_track(
            api=api,
            package="com.x",
            edit_id="e1",
            track="beta",
            release={"versionCodes": ["8"], "status": "completed"},
        )

        assert isinstance(result, Ok)
        assert api.tracks["beta"] == [
            {"versionCodes": ["7"], "status": "completed"},
            {"versionCodes": ["8"], "status": "completed"},
        ]
        assert api.operations == ["get_track", "update_track"]

    def test_assign_to_missing_track(self, api: MockPublishingApi) -> None:
        api.fail("get_track", ApiError(url="mock", status=404, message="no track"))

        result = assign_track(
            api=api, package="com.x", edit_id="e1", track="alpha", release={"versionCodes": ["1"]}
        )

        assert isinstance(result, Ok)
        assert api.tracks["alpha"] == [{"versionCodes": ["1"]}]


class TestApplyDistribution:
    def test_internal_free(self, api: MockPublishingApi, console: MockConsole) -> None:
        result = apply_distribution(
            api=api,
            package="com.x",
            edit_id="e1",
            version_code=42,
            language="en-US",
            distribution=DistributionConfig(),
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.clean
        assert api.requests["update_pricing"] == [
            {"price": {"priceMicros": "0", "currency": "USD"}}
        ]
        assert api.tracks["internal"] == [{"versionCodes": ["42"], "status": "completed"}]
        assert api.requests["update_availability"] == [
            {"syncWithProduction": False, "countries": [], "restOfWorld": True}
        ]

    def test_invalid_track_makes_no_call(
        self, api: MockPublishingApi, console: MockConsole
    ) -> None:
        result = apply_distribution(
            api=api,
            package="com.x",
            edit_id="e1",
            version_code=42,
            language="en-US",
            distribution=DistributionConfig(track="canary"),
            console=console,
        )

        assert result == Err(InvalidTrack(track="canary"))
        assert api.calls == []

    def test_explicit_countries(self, api: MockPublishingApi, console: MockConsole) -> None:
        apply_distribution(
            api=api,
            package="com.x",
            edit_id="e1",
            version_code=42,
            language="en-US",
            distribution=DistributionConfig(countries=("US", "FR")),
            console=console,
        )

        assert api.requests["update_availability"] == [
            {"syncWithProduction": False, "countries": ["US", "FR"], "restOfWorld": False}
        ]

    def test_availability_failure_is_a_warning(
        self, api: MockPublishingApi, console: MockConsole
    ) -> None:
        api.fail("update_availability", ApiError(url="mock", status=400, message="unsupported"))

        result = apply_distribution(
            api=api,
            package="com.x",
            edit_id="e1",
            version_code=42,
            language="en-US",
            distribution=DistributionConfig(),
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.warnings == (DistributionPartial(reason="unsupported"),)

    def test_track_update_failure_is_fatal(
        self, api: MockPublishingApi, console: MockConsole
    ) -> None:
        api.fail("update_track", ApiError(url="mock", status=500, message="backend"))

        result = apply_distribution(
            api=api,
            package="com.x",
            edit_id="e1",
            version_code=42,
            language="en-US",
            distribution=DistributionConfig(),
            console=console,
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, ApiUnavailable)
        assert api.count("update_availability") == 0
