# This file is part of Relstack, a tool for orchestrating multi-project .NET releases.
#
# Copyright 2025 Canonical Ltd.
#
# SPDX-License-Identifier: GPL-3.0-only
#
# Relstack is free software: you can redistribute it and/or modify it under
# the terms of the GNU General Public License version 3, as published by the
# Free Software Foundation.
#
# Relstack is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranties of MERCHANTABILITY,
# SATISFACTORY QUALITY, or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License along with
# Relstack. If not, see <http://www.gnu.org/licenses/>.

"""Project graph loading.

Loading runs in the following phases, each one completing before the next
starts:

1. Discovery: expand solutions, deduplicate project paths.
2. Restore (optional): restore each solution, or each direct project.
3. Target frameworks: one extraction per project, run concurrently.
4. Package info: one extraction per project, run concurrently, pinned to the
   last declared framework for multi-targeting projects.
5. Ordering: group records per solution and sort each group in build order.

Extraction errors accumulate on the shared Diagnostics collector and are
only checked once every unit of a phase has finished. Any recorded error
aborts the load with ProjectLoadError; nothing partial is returned.
"""

from __future__ import annotations

import concurrent.futures
import contextlib
import logging
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from relstack.core.diagnostics import DiagnosticKind, Diagnostics
from relstack.core.exceptions import ProjectLoadError
from relstack.core.run import activity
from relstack.core.spinner import PhaseProgress
from relstack.msbuild import extractor as facts
from relstack.msbuild.extractor import FactSet, MetadataExtractor, QueryKind
from relstack.msbuild.solution import parse_solution
from relstack.planning.discovery import DIRECT_PROJECTS, discover_projects
from relstack.planning.model import (
    OutputKind,
    ProjectCollection,
    ProjectDescriptor,
    ProjectRecord,
    SolutionGrouping,
    TargetFrameworkInfo,
    normalize_project_path,
)
from relstack.planning.ordering import order_projects, sort_by_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description found"
DEFAULT_LICENSE = "No license found"

# net8.0, netstandard2.0, net472, net8.0-windows10.0.19041.0, uap10.0...
_TARGET_FRAMEWORK_RE = re.compile(r"^[A-Za-z]+\d+(\.\d+)*(-[A-Za-z0-9.]+)?$")


@dataclass
class LoadedProjects:
    """Result of a successful load."""

    collections: list[ProjectCollection] = field(default_factory=list)
    grouping: SolutionGrouping = field(default_factory=SolutionGrouping)

    def all_projects(self) -> list[ProjectRecord]:
        return [p for c in self.collections for p in c.projects]


def parse_target_frameworks(
    project: Path,
    fact_set: FactSet,
    diagnostics: Diagnostics,
) -> TargetFrameworkInfo | None:
    """Build TargetFrameworkInfo from a framework query result.

    `TargetFrameworks` (semicolon separated) wins over `TargetFramework`
    and marks the project as multi-targeting.
    """
    is_multi_targeting = True
    raw = (fact_set.first(facts.TARGET_FRAMEWORKS) or "").strip()
    if not raw:
        raw = (fact_set.first(facts.TARGET_FRAMEWORK) or "").strip()
        is_multi_targeting = False

    frameworks = [f.strip() for f in raw.split(";") if f.strip()]
    if not frameworks:
        diagnostics.error(
            DiagnosticKind.EXTRACTION_FAILURE,
            f"The project `{project}` doesn't have a <TargetFramework> or <TargetFrameworks> defined",
            project=str(project),
        )
        return None

    for framework in frameworks:
        if not _TARGET_FRAMEWORK_RE.match(framework):
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"Error while parsing TargetFramework `{raw}` of `{project}`. Reason: invalid moniker `{framework}`",
                project=str(project),
            )
            return None

    return TargetFrameworkInfo(is_multi_targeting=is_multi_targeting, target_frameworks=tuple(frameworks))


def build_project_record(
    project: Path,
    fact_set: FactSet,
    framework_info: TargetFrameworkInfo,
    diagnostics: Diagnostics,
    default_project_url: str = "",
) -> ProjectRecord | None:
    """Build a ProjectRecord from a package info query result."""
    package_id = fact_set.first(facts.PACKAGE_ID)
    assembly_name = fact_set.first(facts.ASSEMBLY_NAME)
    if not package_id or not assembly_name:
        missing = facts.PACKAGE_ID if not package_id else facts.ASSEMBLY_NAME
        diagnostics.error(
            DiagnosticKind.EXTRACTION_FAILURE,
            f"Unexpected error while reading package info of `{project}`: missing `{missing}`. "
            f"Facts: {', '.join(name for name, _ in fact_set.facts)}",
            project=str(project),
        )
        return None

    output_type = (fact_set.first(facts.PACKAGE_OUTPUT_TYPE) or "").strip()
    output_kind = OutputKind.parse(output_type)
    if output_kind is None:
        diagnostics.error(
            DiagnosticKind.UNSUPPORTED_OUTPUT_KIND,
            f"Unsupported project type `{output_type}` found for project `{project}`",
            project=str(project),
        )
        return None

    project_dir = project.parent
    references = tuple(
        normalize_project_path(project_dir / Path(ref.replace("\\", os.sep)))
        for ref in fact_set.all(facts.PROJECT_REFERENCE)
    )

    return ProjectRecord(
        path=project,
        package_id=package_id,
        assembly_name=assembly_name,
        output_kind=output_kind,
        version=fact_set.first(facts.PACKAGE_VERSION),
        description=fact_set.first(facts.PACKAGE_DESCRIPTION) or DEFAULT_DESCRIPTION,
        license=fact_set.first(facts.PACKAGE_LICENSE_EXPRESSION) or DEFAULT_LICENSE,
        project_url=fact_set.first(facts.PACKAGE_PROJECT_URL) or default_project_url,
        is_packable=fact_set.flag(facts.IS_PACKABLE),
        is_test_project=fact_set.flag(facts.IS_TEST_PROJECT),
        project_references=references,
        target_framework_info=framework_info,
        is_web_app=output_kind is not OutputKind.LIBRARY and fact_set.flag(facts.USING_WEB_SDK),
    )


class ProjectGraphLoader:
    """Discovers, loads and orders the projects of a release."""

    def __init__(
        self,
        extractor: MetadataExtractor,
        *,
        workers: int = 1,
        restore: bool = True,
        default_project_url: str = "",
        diagnostics: Diagnostics | None = None,
        solution_parser: Callable[[Path], list[Path]] = parse_solution,
        progress: PhaseProgress | None = None,
    ) -> None:
        self.extractor = extractor
        self.workers = max(1, workers)
        self.restore = restore
        self.default_project_url = default_project_url
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.solution_parser = solution_parser
        self.progress = progress

    def _abort_on_errors(self, phase: str) -> None:
        if self.diagnostics.has_errors:
            errors = self.diagnostics.errors
            raise ProjectLoadError(
                message=f"{len(errors)} error(s) while {phase}",
                diagnostics=errors,
            )

    def _discover(self, inputs: Sequence[Path]) -> SolutionGrouping:
        return discover_projects(inputs, self.diagnostics, self.solution_parser)

    @contextlib.contextmanager
    def _phase(self, name: str, description: str, total: int) -> Iterator[Callable[[str], None]]:
        if self.progress is None:
            yield lambda _label: None
            return
        with self.progress.phase(name, description, total) as advance:
            yield advance

    def _restore(self, grouping: SolutionGrouping) -> None:
        targets: list[Path] = []
        for solution, descriptors in grouping.groups.items():
            if solution == DIRECT_PROJECTS:
                targets.extend(d.path for d in descriptors)
            else:
                targets.append(Path(solution))

        with self._phase("restore", "Restoring packages", len(targets)) as advance:
            for target in targets:
                logger.debug("Restoring %s", target)
                if not self.extractor.restore(target, self.diagnostics):
                    self._abort_on_errors("restoring projects")
                    # A failed restore without a recorded diagnostic is still fatal.
                    raise ProjectLoadError(message=f"Restore failed for {target}")
                advance(target.name)

    def _run_concurrently(
        self,
        phase: tuple[str, str],
        items: list[tuple[str, ProjectDescriptor]],
        work: Callable[[str, ProjectDescriptor], None],
    ) -> None:
        """Run `work` for every item and wait for all of them.

        A failing unit never cancels its siblings; unexpected exceptions are
        recorded as extraction failures once the unit has finished. `phase`
        is the (name, description) pair shown by the progress reporter.
        """
        name, description = phase
        with self._phase(name, description, len(items)) as advance, concurrent.futures.ThreadPoolExecutor(
            max_workers=self.workers
        ) as executor:
            futures = {executor.submit(work, solution, d): d for solution, d in items}
            for future in concurrent.futures.as_completed(futures):
                descriptor = futures[future]
                try:
                    future.result()
                except Exception as e:
                    self.diagnostics.error(
                        DiagnosticKind.EXTRACTION_FAILURE,
                        f"Unexpected error while loading `{descriptor}`. Reason: {e}",
                        project=str(descriptor),
                    )
                advance(descriptor.path.name)

    def _load_target_frameworks(self, grouping: SolutionGrouping) -> dict[str, TargetFrameworkInfo]:
        frameworks: dict[str, TargetFrameworkInfo] = {}
        lock = threading.Lock()

        def work(_solution: str, descriptor: ProjectDescriptor) -> None:
            fact_set = self.extractor.extract(descriptor.path, QueryKind.TARGET_FRAMEWORKS, self.diagnostics)
            if fact_set is None:
                return
            info = parse_target_frameworks(descriptor.path, fact_set, self.diagnostics)
            if info is None:
                return
            with lock:
                frameworks[descriptor.key] = info

        self._run_concurrently(("frameworks", "Reading target frameworks"), grouping.items(), work)
        return frameworks

    def _load_package_infos(
        self,
        grouping: SolutionGrouping,
        frameworks: dict[str, TargetFrameworkInfo],
    ) -> list[tuple[str, ProjectRecord | None]]:
        results: list[tuple[str, ProjectRecord | None]] = []
        lock = threading.Lock()

        def work(solution: str, descriptor: ProjectDescriptor) -> None:
            info = frameworks[descriptor.key]
            properties: dict[str, str] = {}
            if info.is_multi_targeting:
                # Take the last TargetFramework declared
                properties[facts.TARGET_FRAMEWORK] = info.last_framework

            record: ProjectRecord | None = None
            fact_set = self.extractor.extract(
                descriptor.path, QueryKind.PACKAGE_INFO, self.diagnostics, properties or None
            )
            if fact_set is not None:
                record = build_project_record(
                    descriptor.path, fact_set, info, self.diagnostics, self.default_project_url
                )
            with lock:
                results.append((solution, record))

        self._run_concurrently(("package info", "Reading package information"), grouping.items(), work)
        return results

    def _assemble(
        self,
        grouping: SolutionGrouping,
        results: list[tuple[str, ProjectRecord | None]],
    ) -> list[ProjectCollection]:
        buckets: dict[str, list[ProjectRecord]] = {solution: [] for solution in grouping.groups}
        for solution, record in results:
            if record is not None:
                buckets[solution].append(record)

        collections: list[ProjectCollection] = []
        for solution, records in buckets.items():
            if not records:
                continue
            ordered = order_projects(sort_by_path(records), lambda key: key in grouping.known)
            collections.append(ProjectCollection(solution=solution, projects=tuple(ordered)))
        return collections

    def load(self, inputs: Sequence[Path]) -> LoadedProjects:
        """Load and order every project reachable from `inputs`.

        Raises:
            ProjectLoadError: If discovery or extraction recorded errors.
            UnresolvedDependencyError: If a collection cannot be ordered.
        """
        grouping = self._discover(inputs)
        self._abort_on_errors("discovering projects")

        activity("load", f"Loading {len(grouping)} projects")

        if self.restore:
            self._restore(grouping)

        frameworks = self._load_target_frameworks(grouping)
        self._abort_on_errors("reading target frameworks")

        results = self._load_package_infos(grouping, frameworks)
        self._abort_on_errors("reading package information")

        collections = self._assemble(grouping, results)
        logger.info(
            "Loaded %d projects in %d collection(s)",
            sum(len(c.projects) for c in collections),
            len(collections),
        )
        return LoadedProjects(collections=collections, grouping=grouping)
