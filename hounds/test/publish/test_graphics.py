from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from hounds.core.result import Err, Ok
from hounds.output.console import MockConsole
from hounds.publish.api import ApiError, MockPublishingApi
from hounds.publish.errors import GraphicSkipped, GraphicsUploadFailed
from hounds.publish.graphics import apply_graphics, discover_screenshots, upload_screenshot_set
from hounds.publish.model import GraphicsConfig

Images = Callable[..., list[Path]]


class TestDiscover:
    def test_flat_directory_is_phone(self, tmp_path: Path, images: Images) -> None:
        images(tmp_path, "1.png", "2.jpg", "notes.txt")

        plan = discover_screenshots(tmp_path)

        assert plan == {"phoneScreenshots": (tmp_path / "1.png", tmp_path / "2.jpg")}

    def test_device_class_subdirectories(self, tmp_path: Path, images: Images) -> None:
        images(tmp_path / "phone", "a.png")
        images(tmp_path / "tablet", "b.png")
        images(tmp_path / "tablet-10", "c.png")
        images(tmp_path / "wear", "d.jpeg")

        plan = discover_screenshots(tmp_path)

        assert set(plan) == {
            "phoneScreenshots",
            "sevenInchScreenshots",
            "tenInchScreenshots",
            "wearScreenshots",
        }

    def test_subdirectory_disables_flat_fallback(self, tmp_path: Path, images: Images) -> None:
        images(tmp_path, "stray.png")
        images(tmp_path / "tv", "1.png", "2.png")

        plan = discover_screenshots(tmp_path)

        assert plan == {"tvScreenshots": (tmp_path / "tv" / "1.png", tmp_path / "tv" / "2.png")}

    def test_unknown_subdirectories_are_ignored(self, tmp_path: Path, images: Images) -> None:
        images(tmp_path / "watch", "1.png")

        assert discover_screenshots(tmp_path) == {}


class TestUploadSet:
    def test_uploads_every_image(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        paths = tuple(images(tmp_path, *(f"{i}.png" for i in range(6))))

        result = upload_screenshot_set(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            image_type="phoneScreenshots",
            paths=paths,
            max_workers=3,
            console=console,
        )

        assert result == Ok(6)
        assert sorted(name for _, name in api.images) == sorted(p.name for p in paths)

    def test_single_failure_fails_the_set(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        paths = tuple(images(tmp_path, "1.png", "2.png", "3.png"))
        api.fail("upload_image", ApiError(url="mock", status=400, message="too small"), times=1)

        result = upload_screenshot_set(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            image_type="phoneScreenshots",
            paths=paths,
            max_workers=1,
            console=console,
        )

        assert isinstance(result, Err)
        assert result.error.image_type == "phoneScreenshots"
        assert "too small" in result.error.reason


class TestApplyGraphics:
    def test_flat_directory_end_to_end(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        images(tmp_path / "shots", "1.png", "2.png", "3.png")

        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(screenshots_dir=tmp_path / "shots"),
            console=console,
        )

        assert isinstance(result, Ok)
        assert sorted(api.images) == [
            ("phoneScreenshots", "1.png"),
            ("phoneScreenshots", "2.png"),
            ("phoneScreenshots", "3.png"),
        ]

    def test_tv_only(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        images(tmp_path / "shots" / "tv", "1.png", "2.png")

        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(screenshots_dir=tmp_path / "shots"),
            console=console,
        )

        assert isinstance(result, Ok)
        assert sorted(api.images) == [("tvScreenshots", "1.png"), ("tvScreenshots", "2.png")]
        assert api.count("upload_image") == 2

    def test_rerun_replaces_instead_of_duplicating(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        images(tmp_path / "shots" / "phone", "1.png", "2.png")
        graphics = GraphicsConfig(screenshots_dir=tmp_path / "shots")

        for _ in range(2):
            apply_graphics(
                api=api,
                package="com.x",
                edit_id="e1",
                language="en-US",
                graphics=graphics,
                console=console,
            )

        assert len(api.images) == 2
        assert api.count("delete_images") == 2

    def test_icon_and_feature_graphic(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        icon, feature = images(tmp_path, "icon.png", "feature.png")

        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(icon=icon, feature_graphic=feature),
            console=console,
        )

        assert isinstance(result, Ok)
        assert api.images == [("icon", "icon.png"), ("featureGraphic", "feature.png")]

    def test_missing_icon_is_skipped(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path
    ) -> None:
        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(icon=tmp_path / "icon.png"),
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.warnings == (
            GraphicSkipped(image_type="icon", path=tmp_path / "icon.png", reason="file not found"),
        )
        assert api.calls == []

    def test_missing_screenshots_directory_is_a_warning(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path
    ) -> None:
        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(screenshots_dir=tmp_path / "nope"),
            console=console,
        )

        assert isinstance(result, Ok)
        assert len(result.value.warnings) == 1

    def test_screenshot_failure_is_fatal(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        images(tmp_path / "shots" / "phone", "1.png", "2.png")
        api.fail("upload_image", ApiError(url="mock", status=500, message="backend"))

        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(screenshots_dir=tmp_path / "shots"),
            console=console,
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, GraphicsUploadFailed)

    def test_icon_upload_failure_is_fatal(
        self, api: MockPublishingApi, console: MockConsole, tmp_path: Path, images: Images
    ) -> None:
        (icon,) = images(tmp_path, "icon.png")
        api.fail("upload_image", ApiError(url="mock", status=400, message="wrong size"))

        result = apply_graphics(
            api=api,
            package="com.x",
            edit_id="e1",
            language="en-US",
            graphics=GraphicsConfig(icon=icon),
            console=console,
        )

        assert result == Err(
            GraphicsUploadFailed(
                image_type="icon", path=icon, reason="HTTP 400: wrong size (mock)"
            )
        )
