"""Release stage: checksums, release notes, release creation and uploads.

Release groups are processed one after another. Within a group the release
is created once, strictly before its assets are uploaded in parallel on the
shared workforce.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from relpipe.core.cancel import Context
from relpipe.core.config import Config, ReleaseGroup
from relpipe.core.errors import PipelineError
from relpipe.core.naming import PathFilter
from relpipe.core.result import Err, Ok, Result
from relpipe.output.console import ConsoleProtocol
from relpipe.platform.files import recreate_dir
from relpipe.services.layout import CHECKSUM_FILENAME, RELEASE_NOTES_FILENAME, DistLayout
from relpipe.services.release.changelog import (
    CHANGELOG_REPO_ENV,
    ChangelogOptions,
    ResolveUsername,
    collect_changes,
    group_by_rules,
)
from relpipe.services.release.checksums import create_checksum_lines, write_checksum_file
from relpipe.services.release.client import FakeClient, ReleaseClient, UsernameResolver, new_client
from relpipe.services.release.model import ReleaseInfo
from relpipe.services.release.notes import write_release_notes
from relpipe.services.release.timeouts import UPLOAD_RETRY_ATTEMPTS, UPLOAD_RETRY_DELAY_SECONDS
from relpipe.services.release.upload import create_release_with_retries, upload_asset_with_retries
from relpipe.tools.http import HttpClient
from relpipe.workers import Workforce

COMMAND_NAME = "release"


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    dist_dir: Path
    project_dir: Path
    tag: str
    commitish: str
    paths: tuple[str, ...] = ("releases/**",)
    dry_run: bool = False
    retry_attempts: int = UPLOAD_RETRY_ATTEMPTS
    retry_delay: float = UPLOAD_RETRY_DELAY_SECONDS


class Releaser:
    """Publishes the archives of every matching release group.

    ``http`` and ``env`` are injectable for tests; by default the provider
    client talks to the network and reads credentials from ``os.environ``.
    """

    def __init__(
        self,
        *,
        config: Config,
        options: ReleaseOptions,
        workforce: Workforce,
        console: ConsoleProtocol,
        http: HttpClient | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config = config
        self._options = options
        self._workforce = workforce
        self._console = console
        self._http = http
        self._env = os.environ if env is None else env
        self._layout = DistLayout(dist_dir=options.dist_dir, project=config.project, tag=options.tag)
        # Last client used, exposed for dry-run inspection.
        self.client: ReleaseClient | None = None

    @property
    def layout(self) -> DistLayout:
        return self._layout

    def release(self, ctx: Context) -> Result[None, PipelineError]:
        if not self._options.commitish:
            return Err(
                PipelineError(
                    kind="invalid_config",
                    message=f"{COMMAND_NAME}: flag commitish is required",
                )
            )

        releases = self._config.find_releases(PathFilter(self._options.paths))
        if not releases:
            return Err(
                PipelineError(
                    kind="no_releases",
                    message=f"{COMMAND_NAME}: no releases found matching -paths {list(self._options.paths)}",
                )
            )

        for release in releases:
            notes = release.settings.notes
            if notes.generate and notes.filename:
                return Err(
                    PipelineError(
                        kind="invalid_config",
                        message=(
                            f"{COMMAND_NAME}: both generate and filename are set in the release notes "
                            f"settings of release {release.path!r}"
                        ),
                    )
                )

        for release in releases:
            result = self._release_one(ctx, release)
            if isinstance(result, Err):
                return result
        return Ok(None)

    def archive_files(self, release: ReleaseGroup) -> list[Path]:
        """Archive paths covered by ``release``, each listed once."""
        release_filter = release.filter
        files = (
            self._layout.archive_file(group.settings, arch_path)
            for group, arch_path in self._config.for_each_archive_arch()
            if release_filter.match(arch_path.archive_path)
        )
        return list(dict.fromkeys(files))

    def _release_one(self, ctx: Context, release: ReleaseGroup) -> Result[None, PipelineError]:
        release_dir = self._layout.release_dir(release)
        try:
            recreate_dir(release_dir)
        except OSError as e:
            return Err(
                PipelineError(
                    kind="io_failed",
                    message=f"{COMMAND_NAME}: failed to recreate release directory {str(release_dir)!r}",
                    hint=str(e),
                )
            )

        files = self.archive_files(release)
        if not files:
            return Err(
                PipelineError(
                    kind="no_archives",
                    message=f"{COMMAND_NAME}: no files found for release {release.path!r}",
                )
            )

        client_result = self._client_for(release)
        if isinstance(client_result, Err):
            return client_result
        client = client_result.value
        self.client = client

        info = ReleaseInfo(tag=self._options.tag, commitish=self._options.commitish, settings=release.settings)

        notes = release.settings.notes
        if notes.generate:
            notes_result = self._generate_notes(ctx, client, info, release_dir / RELEASE_NOTES_FILENAME)
            if isinstance(notes_result, Err):
                return notes_result
            info = info.with_notes_file(notes_result.value)
            files.append(notes_result.value)
        elif notes.filename:
            info = info.with_notes_file(self._options.project_dir / notes.filename)

        lines = create_checksum_lines(self._workforce, ctx, files)
        if isinstance(lines, Err):
            return lines
        checksum_file = release_dir / CHECKSUM_FILENAME
        written = write_checksum_file(checksum_file, lines.value)
        if isinstance(written, Err):
            return written
        self._console.success(f"Created checksum file {checksum_file}")
        files.append(checksum_file)

        release_id = create_release_with_retries(
            ctx,
            client,
            info,
            attempts=self._options.retry_attempts,
            delay=self._options.retry_delay,
        )
        if isinstance(release_id, Err):
            return release_id

        self._console.info(f"Uploading {len(files)} files to release {info.tag}")
        runner, task_ctx = self._workforce.start(ctx)
        for filename in files:
            runner.run(
                lambda filename=filename: upload_asset_with_retries(
                    task_ctx,
                    client,
                    info,
                    release_id.value,
                    partial(filename.open, "rb"),
                    name=filename.name,
                    attempts=self._options.retry_attempts,
                    delay=self._options.retry_delay,
                )
            )
        uploaded = runner.wait()
        if isinstance(uploaded, Err):
            return uploaded
        self._console.success(f"Released {release.path} ({len(files)} files)")
        return Ok(None)

    def _client_for(self, release: ReleaseGroup) -> Result[ReleaseClient, PipelineError]:
        if self._options.dry_run:
            return Ok(FakeClient())
        return new_client(release.settings, self._http, self._env)

    def _generate_notes(
        self, ctx: Context, client: ReleaseClient, info: ReleaseInfo, path: Path
    ) -> Result[Path, PipelineError]:
        resolve_username: ResolveUsername | None = None
        if isinstance(client, UsernameResolver):
            resolver = client
            resolve_username = lambda commit, author: resolver.resolve_username(ctx, commit, author, info)  # noqa: E731

        repo_path = Path(self._env.get(CHANGELOG_REPO_ENV) or self._options.project_dir)
        changes = collect_changes(
            ChangelogOptions(
                tag=info.tag,
                commitish=info.commitish,
                repo_path=repo_path,
                resolve_username=resolve_username,
            )
        )
        if isinstance(changes, Err):
            return changes

        groups = group_by_rules(changes.value, info.settings.notes.groups)
        written = write_release_notes(path, groups)
        if isinstance(written, Ok):
            self._console.success(f"Created release notes {path}")
        return written
