from __future__ import annotations

from pathlib import Path

from hounds.core.result import Err, Ok
from hounds.output.console import MockConsole
from hounds.publish.api import ApiError, MockPublishingApi
from hounds.publish.errors import InvalidArtifact, TargetNotProvisioned, UploadFailed
from hounds.publish.session_store import SessionStore
from hounds.publish.sessions import EditSessionManager
from hounds.publish.upload import artifact_kind, check_artifact, upload_artifact


def _err(status: int, message: str = "x") -> ApiError:
    return ApiError(url="mock", status=status, message=message)


class TestCheckArtifact:
    def test_kinds(self) -> None:
        assert artifact_kind(Path("app.AAB")) == "bundle"
        assert artifact_kind(Path("app.apk")) == "apk"
        assert artifact_kind(Path("app.zip")) is None

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "app.ipa"
        path.write_bytes(b"x")

        result = check_artifact(path)

        assert isinstance(result, Err)
        assert "unsupported" in result.error.reason

    def test_missing_file(self, tmp_path: Path) -> None:
        result = check_artifact(tmp_path / "app.aab")

        assert result == Err(InvalidArtifact(path=tmp_path / "app.aab", reason="file not found"))

    def test_ok(self, artifact: Path) -> None:
        assert check_artifact(artifact) == Ok("bundle")


class TestUpload:
    def test_into_existing_session(
        self,
        api: MockPublishingApi,
        sessions: EditSessionManager,
        console: MockConsole,
        artifact: Path,
        package: str,
    ) -> None:
        opened = sessions.resume_or_open(package)
        assert isinstance(opened, Ok)

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=opened.value,
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.artifact.version_code == 42
        assert result.value.artifact.kind == "bundle"
        assert result.value.session == opened.value
        assert ("upload_artifact", package, "edit-1", artifact.name, "bundle") in api.calls

    def test_opens_session_when_none(
        self,
        api: MockPublishingApi,
        sessions: EditSessionManager,
        console: MockConsole,
        artifact: Path,
        package: str,
    ) -> None:
        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
        )

        assert isinstance(result, Ok)
        assert result.value.session.edit_id == "edit-1"
        assert api.count("insert_edit") == 1

    def test_unprovisioned_target_uploads_then_reopens_once(
        self, store: SessionStore, console: MockConsole, artifact: Path, package: str
    ) -> None:
        api = MockPublishingApi(version_code=5, unprovisioned={package})
        sessions = EditSessionManager(api=api, store=store, console=console)

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
        )

        assert isinstance(result, Ok)
        assert api.operations == ["insert_edit", "upload_artifact", "insert_edit"]
        assert ("upload_artifact", package, "", artifact.name, "bundle") in api.calls
        assert result.value.artifact.version_code == 5
        assert store.load(package) == Ok(result.value.session)

    def test_open_already_attempted_skips_first_open(
        self, store: SessionStore, console: MockConsole, artifact: Path, package: str
    ) -> None:
        api = MockPublishingApi(unprovisioned={package})
        sessions = EditSessionManager(api=api, store=store, console=console)

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
            open_attempted=True,
        )

        assert isinstance(result, Ok)
        assert api.operations == ["upload_artifact", "insert_edit"]

    def test_implicit_creation_disabled(
        self, store: SessionStore, console: MockConsole, artifact: Path, package: str
    ) -> None:
        api = MockPublishingApi(unprovisioned={package})
        sessions = EditSessionManager(api=api, store=store, console=console)

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
            allow_implicit_target_creation=False,
        )

        assert result == Err(TargetNotProvisioned(package_name=package))
        assert api.count("upload_artifact") == 0

    def test_reopen_failure_after_upload_is_fatal(
        self, store: SessionStore, console: MockConsole, artifact: Path, package: str
    ) -> None:
        api = MockPublishingApi(unprovisioned={package})
        sessions = EditSessionManager(api=api, store=store, console=console)
        api.fail("insert_edit", _err(404), times=2)

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
        )

        assert result == Err(TargetNotProvisioned(package_name=package))
        assert api.count("insert_edit") == 2
        assert api.count("upload_artifact") == 1

    def test_rejected_binary(
        self,
        api: MockPublishingApi,
        sessions: EditSessionManager,
        console: MockConsole,
        artifact: Path,
        package: str,
    ) -> None:
        api.fail("upload_artifact", _err(400, "APK is not signed"))

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
        )

        assert result == Err(
            InvalidArtifact(path=artifact, reason="APK is not signed", rejected_by_platform=True)
        )

    def test_transport_failure_keeps_session(
        self,
        api: MockPublishingApi,
        sessions: EditSessionManager,
        store: SessionStore,
        console: MockConsole,
        artifact: Path,
        package: str,
    ) -> None:
        api.fail("upload_artifact", _err(0, "connection reset"))

        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=artifact,
            session=None,
            console=console,
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, UploadFailed)
        loaded = store.load(package)
        assert isinstance(loaded, Ok) and loaded.value is not None

    def test_invalid_artifact_makes_no_call(
        self,
        api: MockPublishingApi,
        sessions: EditSessionManager,
        console: MockConsole,
        tmp_path: Path,
        package: str,
    ) -> None:
        result = upload_artifact(
            api=api,
            sessions=sessions,
            package=package,
            path=tmp_path / "missing.apk",
            session=None,
            console=console,
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidArtifact)
        assert api.calls == []
