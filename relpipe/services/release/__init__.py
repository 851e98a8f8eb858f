"""Release stage: checksums, changelog, notes and provider clients."""

from relpipe.services.release.changelog import ChangelogOptions, collect_changes, group_by, group_by_rules
from relpipe.services.release.checksums import create_checksum_lines, sha256_file, write_checksum_file
from relpipe.services.release.client import (
    FakeClient,
    ReleaseClient,
    UsernameResolver,
    new_client,
)
from relpipe.services.release.github import GitHubClient
from relpipe.services.release.model import Change, ReleaseID, ReleaseInfo, TitleChanges
from relpipe.services.release.notes import render_release_notes, write_release_notes
from relpipe.services.release.service import ReleaseOptions, Releaser
from relpipe.services.release.upload import create_release_with_retries, upload_asset_with_retries

__all__ = [
    "Change",
    "ChangelogOptions",
    "FakeClient",
    "GitHubClient",
    "ReleaseClient",
    "ReleaseID",
    "ReleaseInfo",
    "ReleaseOptions",
    "Releaser",
    "TitleChanges",
    "UsernameResolver",
    "collect_changes",
    "create_checksum_lines",
    "create_release_with_retries",
    "group_by",
    "group_by_rules",
    "new_client",
    "render_release_notes",
    "sha256_file",
    "upload_asset_with_retries",
    "write_checksum_file",
    "write_release_notes",
]
