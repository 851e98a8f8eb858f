"""Archive stage: one archive per (archive group, build target).

For every matching target the archivist names the output, recreates the
target's archive directory, checks that the binary exists, and schedules the
archive construction on the shared workforce. Targets are independent: a
missing binary fails its own task while siblings still write their archives.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relpipe.archives import ArchiveFile, ArchiveRequest, build
from relpipe.core.cancel import Context
from relpipe.core.config import ArchiveGroup, ArchPath, Config
from relpipe.core.errors import PipelineError
from relpipe.core.naming import PathFilter
from relpipe.core.result import Err, Ok, Result
from relpipe.output.console import ConsoleProtocol
from relpipe.platform.files import recreate_dir
from relpipe.services.layout import DistLayout
from relpipe.workers import Workforce

__all__ = ["ArchiveOptions", "Archivist"]

COMMAND_NAME = "archive"


@dataclass(frozen=True, slots=True)
class ArchiveOptions:
    dist_dir: Path
    project_dir: Path
    tag: str
    paths: tuple[str, ...] = ("builds/**",)


class Archivist:
    def __init__(
        self,
        *,
        config: Config,
        options: ArchiveOptions,
        workforce: Workforce,
        console: ConsoleProtocol,
    ) -> None:
        self._config = config
        self._options = options
        self._workforce = workforce
        self._console = console
        self._layout = DistLayout(dist_dir=options.dist_dir, project=config.project, tag=options.tag)

    @property
    def layout(self) -> DistLayout:
        return self._layout

    def archive(self, ctx: Context) -> Result[None, PipelineError]:
        """Build every matching archive and wait for all of them."""
        targets = self._config.for_each_archive_arch(PathFilter(self._options.paths))
        if not targets:
            return Err(
                PipelineError(
                    kind="no_archives",
                    message=f"{COMMAND_NAME}: no builds found matching -paths {list(self._options.paths)}",
                )
            )

        requests = [(self.request_for(group, arch_path), arch_path) for group, arch_path in targets]

        # Identical groups compare equal, so they are told apart by identity.
        group_index = {id(group): i for i, group in enumerate(self._config.archives)}
        owners: dict[Path, int] = {}
        for (group, arch_path), (request, _) in zip(targets, requests, strict=True):
            index = group_index[id(group)]
            first = owners.setdefault(request.out_filename, index)
            if first != index:
                return Err(
                    PipelineError(
                        kind="invalid_config",
                        message=(
                            f"{COMMAND_NAME}: archive groups {first} and {index} both write "
                            f"{str(request.out_filename)!r}"
                        ),
                        hint=f"target {arch_path.path}; give one group a different name_template or format",
                    )
                )

        # Directories are recreated up front so two groups sharing a target
        # directory never race on it.
        dir_errors: dict[Path, PipelineError] = {}
        for out_dir in dict.fromkeys(request.out_filename.parent for request, _ in requests):
            try:
                recreate_dir(out_dir)
            except OSError as e:
                dir_errors[out_dir] = PipelineError(
                    kind="io_failed",
                    message=f"{COMMAND_NAME}: failed to recreate {out_dir}",
                    hint=str(e),
                )

        runner, task_ctx = self._workforce.start(ctx)
        for request, arch_path in requests:
            dir_error = dir_errors.get(request.out_filename.parent)
            if dir_error is not None:
                runner.run(lambda dir_error=dir_error: Err(dir_error))
                continue
            runner.run(lambda request=request, arch_path=arch_path: self._archive_one(task_ctx, request, arch_path))
        return runner.wait()

    def request_for(self, group: ArchiveGroup, arch_path: ArchPath) -> ArchiveRequest:
        settings = group.settings
        binary_target = "/".join(p for p in (settings.binary_dir, arch_path.binary) if p)
        files = [ArchiveFile(source_path_abs=self._layout.binary_file(arch_path), target_path=binary_target)]
        for extra in settings.extra_files:
            files.append(
                ArchiveFile(
                    source_path_abs=(self._options.project_dir / extra.source_path).resolve(),
                    target_path=extra.target_path,
                )
            )
        return ArchiveRequest(
            settings=settings,
            out_filename=self._layout.archive_file(settings, arch_path),
            files=tuple(files),
        )

    def _archive_one(
        self, ctx: Context, request: ArchiveRequest, arch_path: ArchPath
    ) -> Result[None, PipelineError]:
        binary = request.files[0].source_path_abs
        if not binary.is_file():
            return Err(
                PipelineError(
                    kind="binary_missing",
                    message=f"{COMMAND_NAME}: binary file not found: {str(binary)!r}",
                    hint=f"target {arch_path.path}",
                )
            )

        self._console.info(f"Archive {request.out_filename}")
        result = build(request, ctx)
        if isinstance(result, Ok):
            self._console.success(str(request.out_filename))
        return result
