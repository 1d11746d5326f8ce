"""Graphics stage: icon, feature graphic and screenshot sets.

Screenshots follow a directory convention::

    screenshots/
      phone/       -> phoneScreenshots
      tablet/      -> sevenInchScreenshots
      tablet-10/   -> tenInchScreenshots
      tv/          -> tvScreenshots
      wear/        -> wearScreenshots

A directory with none of those subdirectories is read as a flat list of phone
screenshots.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path

from hounds.core.result import Err, Ok, Result
from hounds.core.structured import StrDict
from hounds.output.console import ConsoleProtocol, Style
from hounds.publish.api import ApiError, PublishingApi
from hounds.publish.errors import (
    GraphicSkipped,
    GraphicsUploadFailed,
    PublishError,
    StageWarning,
)
from hounds.publish.model import DeviceClass, GraphicsConfig, StageReport

DEVICE_CLASS_IMAGE_TYPES: dict[DeviceClass, str] = {
    "phone": "phoneScreenshots",
    "tablet": "sevenInchScreenshots",
    "tablet-10": "tenInchScreenshots",
    "tv": "tvScreenshots",
    "wear": "wearScreenshots",
}

IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg"})

ScreenshotPlan = dict[str, tuple[Path, ...]]


def _images_in(directory: Path) -> tuple[Path, ...]:
    return tuple(
        sorted(
            p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
        )
    )


def discover_screenshots(root: Path) -> ScreenshotPlan:
    """Map image types to the files that should be uploaded for them.

    Unrecognised files are skipped. The flat fallback applies only when no
    device-class subdirectory exists at all.
    """
    plan: ScreenshotPlan = {}
    found_subdir = False
    for device_class, image_type in DEVICE_CLASS_IMAGE_TYPES.items():
        subdir = root / device_class
        if not subdir.is_dir():
            continue
        found_subdir = True
        images = _images_in(subdir)
        if images:
            plan[image_type] = images

    if not found_subdir:
        flat = _images_in(root)
        if flat:
            plan[DEVICE_CLASS_IMAGE_TYPES["phone"]] = flat
    return plan


def upload_screenshot_set(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    language: str,
    image_type: str,
    paths: tuple[Path, ...],
    max_workers: int,
    console: ConsoleProtocol,
) -> Result[int, GraphicsUploadFailed]:
    """Upload one device class concurrently; the first failure fails the set.

    Uploads already in flight when a failure is seen are not cancelled; their
    results are ignored. Uploads not yet started are dropped.
    """
    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(paths))),
        thread_name_prefix="hounds-upload",
    )
    try:
        futures: dict[Future[Result[StrDict, ApiError]], Path] = {
            executor.submit(api.upload_image, package, edit_id, language, image_type, path): path
            for path in paths
        }
        uploaded = 0
        for future in as_completed(futures):
            path = futures[future]
            result = future.result()
            if isinstance(result, Err):
                return Err(
                    GraphicsUploadFailed(image_type=image_type, path=path, reason=str(result.error))
                )
            uploaded += 1
            console.print(f"  {image_type} {uploaded}/{len(paths)}: {path.name}", Style.DIM)
        return Ok(uploaded)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _upload_single(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    language: str,
    image_type: str,
    path: Path | None,
    console: ConsoleProtocol,
) -> Result[StageWarning | None, GraphicsUploadFailed]:
    if path is None:
        return Ok(None)
    if not path.is_file():
        console.warning(f"{image_type} not found, skipped: {path}")
        return Ok(GraphicSkipped(image_type=image_type, path=path, reason="file not found"))

    result = api.upload_image(package, edit_id, language, image_type, path)
    if isinstance(result, Err):
        return Err(GraphicsUploadFailed(image_type=image_type, path=path, reason=str(result.error)))
    console.success(f"{image_type} uploaded: {path.name}")
    return Ok(None)


def apply_graphics(
    *,
    api: PublishingApi,
    package: str,
    edit_id: str,
    language: str,
    graphics: GraphicsConfig,
    console: ConsoleProtocol,
    max_workers: int = 4,
) -> Result[StageReport, PublishError]:
    console.header("Graphics")
    warnings: list[StageWarning] = []

    for image_type, path in (("icon", graphics.icon), ("featureGraphic", graphics.feature_graphic)):
        single = _upload_single(
            api=api,
            package=package,
            edit_id=edit_id,
            language=language,
            image_type=image_type,
            path=path,
            console=console,
        )
        if isinstance(single, Err):
            return single
        if single.value is not None:
            warnings.append(single.value)

    root = graphics.screenshots_dir
    if root is None:
        return Ok(StageReport(stage="graphics", warnings=tuple(warnings)))
    if not root.is_dir():
        console.warning(f"screenshots directory not found: {root}")
        warnings.append(
            GraphicSkipped(image_type="screenshots", path=root, reason="directory not found")
        )
        return Ok(StageReport(stage="graphics", warnings=tuple(warnings)))

    plan = discover_screenshots(root)
    if not plan:
        console.info(f"no screenshots found in {root}")

    for image_type, paths in plan.items():
        console.print(f"{image_type}: {len(paths)} image(s)", Style.INFO)
        cleared = api.delete_images(package, edit_id, language, image_type)
        if isinstance(cleared, Err):
            return Err(
                GraphicsUploadFailed(image_type=image_type, path=root, reason=str(cleared.error))
            )
        uploaded = upload_screenshot_set(
            api=api,
            package=package,
            edit_id=edit_id,
            language=language,
            image_type=image_type,
            paths=paths,
            max_workers=max_workers,
            console=console,
        )
        if isinstance(uploaded, Err):
            return uploaded
        console.success(f"{image_type}: {uploaded.value} uploaded")

    return Ok(StageReport(stage="graphics", warnings=tuple(warnings)))
