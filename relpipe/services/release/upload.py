"""Retried release creation and asset upload.

Only errors marked transient are retried, with a linear backoff that is cut
short by cancellation. Uploads take a factory for the asset rather than a
handle: every attempt opens a fresh stream positioned at offset zero and
closes it before the next attempt starts.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import BinaryIO

from relpipe.core.cancel import Context
from relpipe.core.errors import PipelineError
from relpipe.core.result import Err, Ok, Result
from relpipe.services.release.client import ReleaseClient
from relpipe.services.release.model import ReleaseID, ReleaseInfo
from relpipe.services.release.timeouts import UPLOAD_RETRY_ATTEMPTS, UPLOAD_RETRY_DELAY_SECONDS

type Opener = Callable[[], BinaryIO]


def _with_retries[T](
    ctx: Context,
    attempt_once: Callable[[], Result[T, PipelineError]],
    *,
    what: str,
    attempts: int,
    delay: float,
) -> Result[T, PipelineError]:
    attempts = max(1, attempts)
    last: PipelineError | None = None
    for attempt in range(attempts):
        check = ctx.check()
        if isinstance(check, Err):
            return check

        result = attempt_once()
        if isinstance(result, Ok):
            return result

        last = result.error
        if not last.transient:
            return result
        if attempt < attempts - 1 and ctx.wait(delay * (attempt + 1)):
            return Err(PipelineError(kind="cancelled", message=f"{what}: {ctx.reason}"))

    return Err(
        PipelineError(
            kind=last.kind if last else "cancelled",
            message=f"{what}: giving up after {attempts} attempts",
            hint=last.pretty() if last else None,
        )
    )


def create_release_with_retries(
    ctx: Context,
    client: ReleaseClient,
    info: ReleaseInfo,
    *,
    attempts: int = UPLOAD_RETRY_ATTEMPTS,
    delay: float = UPLOAD_RETRY_DELAY_SECONDS,
) -> Result[ReleaseID, PipelineError]:
    return _with_retries(
        ctx,
        lambda: client.release(ctx, info),
        what=f"create release {info.tag!r}",
        attempts=attempts,
        delay=delay,
    )


def upload_asset_with_retries(
    ctx: Context,
    client: ReleaseClient,
    info: ReleaseInfo,
    release_id: ReleaseID,
    opener: Opener,
    *,
    name: str,
    attempts: int = UPLOAD_RETRY_ATTEMPTS,
    delay: float = UPLOAD_RETRY_DELAY_SECONDS,
) -> Result[None, PipelineError]:
    def attempt_once() -> Result[None, PipelineError]:
        try:
            asset = opener()
        except OSError as e:
            return Err(
                PipelineError(
                    kind="io_failed",
                    message=f"upload: failed to open {name!r}",
                    hint=str(e),
                )
            )
        try:
            return client.upload_asset(ctx, info, release_id, name, asset)
        finally:
            asset.close()

    return _with_retries(
        ctx,
        attempt_once,
        what=f"upload {name!r}",
        attempts=attempts,
        delay=delay,
    )
