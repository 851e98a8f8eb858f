from __future__ import annotations

import io
from pathlib import Path

from relpipe.core.cancel import Context
from relpipe.core.config import ReleaseNotesSettings, ReleaseSettings
from relpipe.core.result import Err, Ok
from relpipe.services.release.client import (
    FakeClient,
    UsernameResolver,
    new_client,
)
from relpipe.services.release.github import GitHubClient
from relpipe.services.release.model import ReleaseInfo
from relpipe.services.release.timeouts import HTTP_TIMEOUT_SECONDS, UPLOAD_TIMEOUT_SECONDS
from relpipe.services.release.upload import create_release_with_retries
from relpipe.tools.http import HttpError, MockHttpClient, RealHttpClient

SETTINGS = ReleaseSettings(repository="hello", repository_owner="acme", draft=True)
INFO = ReleaseInfo(tag="v1.2.0", commitish="main", settings=SETTINGS)
RELEASES_URL = "https://api.github.com/repos/acme/hello/releases"
UPLOADS_URL = "https://uploads.github.com/repos/acme/hello/releases/"


def _client(http: MockHttpClient) -> GitHubClient:
    return GitHubClient(http, token="t0ken")


class TestRelease:
    def test_creates_release(self) -> None:
        http = MockHttpClient()
        http.queue("POST", RELEASES_URL, {"id": 1234})

        result = _client(http).release(Context(), INFO)

        assert result == Ok(1234)
        assert http.calls[0].url == RELEASES_URL
        assert http.calls[0].payload == {
            "tag_name": "v1.2.0",
            "target_commitish": "main",
            "name": "v1.2.0",
            "body": "",
            "draft": True,
            "prerelease": False,
        }

    def test_body_from_notes_file(self, tmp_path: Path) -> None:
        notes = tmp_path / "release-notes.md"
        notes.write_text("## Fixes\n", encoding="utf-8")
        http = MockHttpClient()
        http.queue("POST", RELEASES_URL, {"id": 1})

        assert _client(http).release(Context(), INFO.with_notes_file(notes)) == Ok(1)
        assert http.calls[0].payload is not None
        assert http.calls[0].payload["body"] == "## Fixes\n"

    def test_missing_notes_file(self, tmp_path: Path) -> None:
        http = MockHttpClient()
        result = _client(http).release(Context(), INFO.with_notes_file(tmp_path / "nope.md"))
        assert isinstance(result, Err)
        assert result.error.kind == "io_failed"
        assert http.calls == []

    def test_transient_http_error_is_marked(self) -> None:
        http = MockHttpClient()
        http.queue("POST", RELEASES_URL, HttpError(url=RELEASES_URL, status=503, message="unavailable"))

        result = _client(http).release(Context(), INFO)

        assert isinstance(result, Err)
        assert result.error.kind == "release_failed"
        assert result.error.transient is True
        assert "503" in (result.error.hint or "")

    def test_unparsable_response_is_not_retried(self) -> None:
        http = MockHttpClient()
        http.queue(
            "POST",
            RELEASES_URL,
            HttpError(url=RELEASES_URL, status=0, message="JSON parse error", permanent=True),
        )

        result = create_release_with_retries(Context(), _client(http), INFO, attempts=5, delay=0)

        assert isinstance(result, Err)
        assert result.error.transient is False
        assert len(http.calls) == 1

    def test_client_error_is_not_transient(self) -> None:
        http = MockHttpClient()
        http.queue("POST", RELEASES_URL, HttpError(url=RELEASES_URL, status=422, message="Validation Failed"))

        result = _client(http).release(Context(), INFO)

        assert isinstance(result, Err)
        assert result.error.transient is False

    def test_response_without_id(self) -> None:
        http = MockHttpClient()
        http.queue("POST", RELEASES_URL, {"message": "weird"})
        result = _client(http).release(Context(), INFO)
        assert isinstance(result, Err)
        assert "no id" in result.error.message


class TestUpload:
    def test_uploads_stream(self) -> None:
        http = MockHttpClient()
        http.queue("UPLOAD", UPLOADS_URL, {"id": 9})

        result = _client(http).upload_asset(Context(), INFO, 1234, "hello 1.2.0.tar.gz", io.BytesIO(b"archive"))

        assert result == Ok(None)
        call = http.calls[0]
        assert call.url == f"{UPLOADS_URL}1234/assets?name=hello+1.2.0.tar.gz"
        assert call.body == b"archive"

    def test_upload_failure(self) -> None:
        http = MockHttpClient()
        http.queue("UPLOAD", UPLOADS_URL, HttpError(url=UPLOADS_URL, status=0, message="connection reset"))

        result = _client(http).upload_asset(Context(), INFO, 1, "a.zip", io.BytesIO(b""))

        assert isinstance(result, Err)
        assert result.error.kind == "upload_failed"
        assert result.error.transient is True


class TestResolveUsername:
    def test_resolves_and_caches_per_author(self) -> None:
        http = MockHttpClient()
        http.queue("GET", "https://api.github.com/repos/acme/hello/commits/", {"author": {"login": "ada"}})
        client = _client(http)

        assert client.resolve_username(Context(), "abc", "ada@example.com", INFO) == Ok("ada")
        assert client.resolve_username(Context(), "def", "ada@example.com", INFO) == Ok("ada")
        assert len(http.calls) == 1
        assert http.calls[0].url.endswith("/commits/abc")

    def test_unknown_author(self) -> None:
        http = MockHttpClient()
        http.queue("GET", "https://api.github.com/repos/acme/hello/commits/", {"author": None})
        assert _client(http).resolve_username(Context(), "abc", "x@example.com", INFO) == Ok("")


class TestNewClient:
    def test_github_requires_token(self) -> None:
        result = new_client(SETTINGS, MockHttpClient(), env={})
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_config"
        assert "GITHUB_TOKEN" in result.error.message

    def test_github_requires_repository(self) -> None:
        result = new_client(ReleaseSettings(), MockHttpClient(), env={"GITHUB_TOKEN": "t"})
        assert isinstance(result, Err)
        assert "repository" in result.error.message

    def test_github_client(self) -> None:
        result = new_client(SETTINGS, MockHttpClient(), env={"GITHUB_TOKEN": "t"})
        assert isinstance(result, Ok)
        assert isinstance(result.value, GitHubClient)
        assert isinstance(result.value, UsernameResolver)

    def test_default_http_client_uses_upload_timeout(self) -> None:
        result = new_client(SETTINGS, env={"GITHUB_TOKEN": "t"})
        assert isinstance(result, Ok)
        http = result.value._http  # type: ignore[attr-defined]  # pyright: ignore[reportPrivateUsage]
        assert isinstance(http, RealHttpClient)
        assert http.timeout == HTTP_TIMEOUT_SECONDS
        assert http.upload_timeout == UPLOAD_TIMEOUT_SECONDS

    def test_unknown_type(self) -> None:
        result = new_client(ReleaseSettings(type="gitea"), MockHttpClient(), env={"GITHUB_TOKEN": "t"})
        assert isinstance(result, Err)


class TestFakeClient:
    def test_records_without_network(self) -> None:
        client = FakeClient()
        assert client.release(Context(), INFO) == Ok(0)
        assert client.upload_asset(Context(), INFO, 0, "a.zip", io.BytesIO(b"1234")) == Ok(None)
        assert client.releases == [INFO]
        assert [(u.name, u.size) for u in client.uploads] == [("a.zip", 4)]
        assert not isinstance(client, UsernameResolver)


def test_with_notes_file_keeps_other_settings(tmp_path: Path) -> None:
    info = ReleaseInfo(
        tag="v1",
        commitish="main",
        settings=ReleaseSettings(repository="r", notes=ReleaseNotesSettings(generate=True)),
    )
    updated = info.with_notes_file(tmp_path / "n.md")
    assert updated.settings.notes.filename == str(tmp_path / "n.md")
    assert updated.settings.notes.generate is True
    assert updated.settings.repository == "r"
    assert info.settings.notes.filename == ""
