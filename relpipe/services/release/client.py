"""Release provider clients.

A client creates one release per target and uploads its assets. Clients
that can map a commit author to a provider username additionally satisfy
``UsernameResolver``; the release service checks for it at runtime.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import BinaryIO, Protocol, runtime_checkable

from relpipe.core.cancel import Context
from relpipe.core.config import ReleaseSettings
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.services.release.github import GitHubClient
from relpipe.services.release.model import ReleaseID, ReleaseInfo
from relpipe.services.release.timeouts import HTTP_TIMEOUT_SECONDS, UPLOAD_TIMEOUT_SECONDS
from relpipe.tools.http import HttpClient, RealHttpClient

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"


class ReleaseClient(Protocol):
    def release(self, ctx: Context, info: ReleaseInfo) -> Result[ReleaseID, PipelineError]: ...

    def upload_asset(
        self,
        ctx: Context,
        info: ReleaseInfo,
        release_id: ReleaseID,
        name: str,
        asset: BinaryIO,
    ) -> Result[None, PipelineError]:
        """Upload ``asset`` as ``name``; the caller opens and closes it."""
        ...


@runtime_checkable
class UsernameResolver(Protocol):
    def resolve_username(
        self, ctx: Context, commit: str, author: str, info: ReleaseInfo
    ) -> Result[str, PipelineError]: ...


@dataclass(frozen=True, slots=True)
class UploadedAsset:
    release_id: ReleaseID
    name: str
    size: int


@dataclass
class FakeClient:
    """Client used for dry runs: records calls, never touches the network."""

    releases: list[ReleaseInfo] = field(default_factory=list)
    uploads: list[UploadedAsset] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def release(self, ctx: Context, info: ReleaseInfo) -> Result[ReleaseID, PipelineError]:
        with self._lock:
            self.releases.append(info)
        return Ok(0)

    def upload_asset(
        self,
        ctx: Context,
        info: ReleaseInfo,
        release_id: ReleaseID,
        name: str,
        asset: BinaryIO,
    ) -> Result[None, PipelineError]:
        size = len(asset.read())
        with self._lock:
            self.uploads.append(UploadedAsset(release_id=release_id, name=name, size=size))
        return Ok(None)


def new_client(
    settings: ReleaseSettings,
    http: HttpClient | None = None,
    env: Mapping[str, str] | None = None,
) -> Result[ReleaseClient, PipelineError]:
    """Create the provider client for ``settings.type``."""
    environ = os.environ if env is None else env
    match settings.type:
        case "github":
            if not settings.repository or not settings.repository_owner:
                return Err(
                    PipelineError(
                        kind="invalid_config",
                        message="github: repository and repository_owner are required",
                    )
                )
            token = environ.get(GITHUB_TOKEN_ENV, "")
            if not token:
                return Err(
                    PipelineError(
                        kind="invalid_config",
                        message=f"github: {GITHUB_TOKEN_ENV} is not set",
                        hint=f"export {GITHUB_TOKEN_ENV}=<token> or run with --try",
                    )
                )
            if http is None:
                http = RealHttpClient(timeout=HTTP_TIMEOUT_SECONDS, upload_timeout=UPLOAD_TIMEOUT_SECONDS)
            return Ok(GitHubClient(http, token=token))
    return Err(
        PipelineError(
            kind="invalid_config",
            message=f"unsupported release type {settings.type!r}",
        )
    )
