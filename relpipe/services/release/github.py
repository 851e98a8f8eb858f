"""GitHub releases over the REST API.

Uses the injectable ``HttpClient`` so tests can script responses with
``MockHttpClient``.
"""

from __future__ import annotations

import mimetypes
import os
import threading
import urllib.parse
from pathlib import Path
from typing import BinaryIO

from relpipe.core.cancel import Context
from relpipe.core.errors import ErrorKind, PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.core.structured import get_str, get_table
from relpipe.services.release.model import ReleaseID, ReleaseInfo
from relpipe.tools.http import HttpClient, HttpError

API_URL = "https://api.github.com"
UPLOADS_URL = "https://uploads.github.com"
_API_VERSION = "2022-11-28"


def _asset_size(asset: BinaryIO) -> int:
    start = asset.tell()
    asset.seek(0, os.SEEK_END)
    size = asset.tell() - start
    asset.seek(start)
    return size


def _http_failed(kind: ErrorKind, message: str, e: HttpError) -> PipelineError:
    return PipelineError(kind=kind, message=message, hint=str(e), transient=e.is_transient)


class GitHubClient:
    """Release client for github.com (or a GitHub Enterprise API)."""

    def __init__(
        self,
        http: HttpClient,
        *,
        token: str,
        api_url: str = API_URL,
        uploads_url: str = UPLOADS_URL,
    ) -> None:
        self._http = http
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._uploads_url = uploads_url.rstrip("/")
        self._usernames: dict[str, str] = {}
        self._lock = threading.Lock()

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": _API_VERSION,
        }

    def release(self, ctx: Context, info: ReleaseInfo) -> Result[ReleaseID, PipelineError]:
        check = ctx.check()
        if isinstance(check, Err):
            return check

        body = ""
        notes_file = info.settings.notes.filename
        if notes_file:
            try:
                body = Path(notes_file).read_text(encoding="utf-8")
            except OSError as e:
                return Err(
                    PipelineError(
                        kind="io_failed",
                        message=f"github: failed to read release notes {notes_file!r}",
                        hint=str(e),
                    )
                )

        url = f"{self._api_url}/repos/{info.repository_slug}/releases"
        payload: dict[str, object] = {
            "tag_name": info.tag,
            "target_commitish": info.commitish,
            "name": info.settings.name or info.tag,
            "body": body,
            "draft": info.settings.draft,
            "prerelease": info.settings.prerelease,
        }
        result = self._http.post_json(url, payload, self._headers())
        if isinstance(result, Err):
            return Err(
                _http_failed(
                    "release_failed",
                    f"github: failed to create release {info.tag!r} in {info.repository_slug}",
                    result.error,
                )
            )

        release_id = result.value.get("id")
        if not isinstance(release_id, int):
            return Err(
                PipelineError(
                    kind="release_failed",
                    message=f"github: release response for {info.tag!r} has no id",
                )
            )
        return Ok(release_id)

    def upload_asset(
        self,
        ctx: Context,
        info: ReleaseInfo,
        release_id: ReleaseID,
        name: str,
        asset: BinaryIO,
    ) -> Result[None, PipelineError]:
        check = ctx.check()
        if isinstance(check, Err):
            return check

        query = urllib.parse.urlencode({"name": name})
        url = f"{self._uploads_url}/repos/{info.repository_slug}/releases/{release_id}/assets?{query}"
        content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        result = self._http.upload(
            url,
            asset,
            size=_asset_size(asset),
            content_type=content_type,
            headers=self._headers(),
        )
        if isinstance(result, Err):
            return Err(_http_failed("upload_failed", f"github: failed to upload {name!r}", result.error))
        return Ok(None)

    def resolve_username(
        self, ctx: Context, commit: str, author: str, info: ReleaseInfo
    ) -> Result[str, PipelineError]:
        """Map a commit author to a GitHub login via the commit API.

        Results are cached per author; an unknown author resolves to "".
        """
        with self._lock:
            cached = self._usernames.get(author)
        if cached is not None:
            return Ok(cached)

        check = ctx.check()
        if isinstance(check, Err):
            return check

        url = f"{self._api_url}/repos/{info.repository_slug}/commits/{commit}"
        result = self._http.get_json(url, self._headers())
        if isinstance(result, Err):
            return Err(
                _http_failed(
                    "release_failed",
                    f"github: failed to resolve author of commit {commit}",
                    result.error,
                )
            )

        login = ""
        author_obj = get_table(result.value, "author")
        if author_obj is not None:
            login = get_str(author_obj, "login") or ""
        with self._lock:
            self._usernames[author] = login
        return Ok(login)
