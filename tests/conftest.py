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

"""Pytest fixtures and configuration for Relstack tests."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Generator, Mapping
from pathlib import Path
from typing import Any
from unittest import mock

import git
import pytest

from relstack.core.diagnostics import DiagnosticKind, Diagnostics
from relstack.msbuild import extractor as facts
from relstack.msbuild.extractor import FactSet, QueryKind
from relstack.planning.model import OutputKind, ProjectRecord, TargetFrameworkInfo, normalize_project_path


class FakeExtractor:
    """In-memory MetadataExtractor.

    `projects` maps a project path to its declared metadata:
    frameworks (str, ";"-separated for multi-targeting), multi (bool),
    assembly, package_id, version, packable, test, output, web, license,
    description, url, refs (list of relative reference paths).
    """

    def __init__(
        self,
        projects: Mapping[Path, dict[str, Any]],
        delay: Callable[[Path], float] | None = None,
        fail_restore: set[Path] | None = None,
    ) -> None:
        self.projects = {normalize_project_path(p): meta for p, meta in projects.items()}
        self.delay = delay
        self.fail_restore = {normalize_project_path(p) for p in (fail_restore or set())}
        self.restored: list[Path] = []
        self.calls: list[tuple[Path, QueryKind, dict[str, str] | None]] = []
        self._lock = threading.Lock()

    def restore(self, path: Path, diagnostics: Diagnostics) -> bool:
        path = normalize_project_path(path)
        self.restored.append(path)
        if path in self.fail_restore:
            diagnostics.error(DiagnosticKind.EXTRACTION_FAILURE, f"Restore failed for `{path}`", project=str(path))
            return False
        return True

    def extract(
        self,
        project: Path,
        query: QueryKind,
        diagnostics: Diagnostics,
        properties: Mapping[str, str] | None = None,
    ) -> FactSet | None:
        project = normalize_project_path(project)
        with self._lock:
            self.calls.append((project, query, dict(properties) if properties else None))
        if self.delay is not None:
            time.sleep(self.delay(project))

        meta = self.projects.get(project)
        if meta is None or meta.get("fail") == query:
            diagnostics.error(
                DiagnosticKind.EXTRACTION_FAILURE,
                f"MSBuild failed for `{project}`",
                project=str(project),
            )
            return None

        if query is QueryKind.TARGET_FRAMEWORKS:
            name = facts.TARGET_FRAMEWORKS if meta.get("multi") else facts.TARGET_FRAMEWORK
            return FactSet.of((name, meta.get("frameworks", "net8.0")))

        assembly = meta.get("assembly", project.stem)
        entries = [
            (facts.PACKAGE_ID, meta.get("package_id", assembly)),
            (facts.ASSEMBLY_NAME, assembly),
            (facts.PACKAGE_VERSION, meta.get("version", "1.0.0")),
            (facts.PACKAGE_DESCRIPTION, meta.get("description", "")),
            (facts.PACKAGE_LICENSE_EXPRESSION, meta.get("license", "MIT")),
            (facts.PACKAGE_OUTPUT_TYPE, meta.get("output", "Library")),
            (facts.PACKAGE_PROJECT_URL, meta.get("url", "")),
            (facts.USING_WEB_SDK, "true" if meta.get("web") else ""),
            (facts.IS_PACKABLE, "true" if meta.get("packable", True) else "false"),
            (facts.IS_TEST_PROJECT, "true" if meta.get("test") else ""),
        ]
        entries.extend((facts.PROJECT_REFERENCE, ref) for ref in meta.get("refs", []))
        return FactSet.of(*entries)


@pytest.fixture
def fake_extractor() -> type[FakeExtractor]:
    """Return the FakeExtractor class."""
    return FakeExtractor


@pytest.fixture
def make_record(tmp_path: Path) -> Callable[..., ProjectRecord]:
    """Return a factory creating ProjectRecords under tmp_path."""

    def _make(
        name: str,
        refs: tuple[str, ...] = (),
        version: str | None = "1.0.0",
        packable: bool = True,
        output_kind: OutputKind = OutputKind.LIBRARY,
        web: bool = False,
        folder: str = "",
    ) -> ProjectRecord:
        base = tmp_path / folder if folder else tmp_path
        return ProjectRecord(
            path=normalize_project_path(base / name / f"{name}.csproj"),
            package_id=name,
            assembly_name=name,
            output_kind=output_kind,
            version=version,
            description="A project",
            license="MIT",
            project_url="",
            is_packable=packable,
            is_test_project=False,
            project_references=tuple(normalize_project_path(base / r / f"{r}.csproj") for r in refs),
            target_framework_info=TargetFrameworkInfo(False, ("net8.0",)),
            is_web_app=web,
        )

    return _make


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing a relstack.yaml into tmp_path."""

    def _write(content: str, name: str = "relstack.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[git.Repo, None, None]:
    """Create a git repository on branch `main` with one commit."""
    repo = git.Repo.init(tmp_path, initial_branch="main")
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Relstack Tests")
        cw.set_value("user", "email", "tests@example.com")
    readme = tmp_path / "README.md"
    readme.write_text("test\n")
    repo.index.add([str(readme)])
    repo.index.commit("Initial commit")
    yield repo
    repo.close()


@pytest.fixture
def non_tty_stdout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Simulate a non-TTY stdout."""
    mock_stdout = mock.MagicMock()
    mock_stdout.isatty.return_value = False
    monkeypatch.setattr("sys.__stdout__", mock_stdout)


@pytest.fixture
def tty_stdout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Simulate a TTY stdout."""
    mock_stdout = mock.MagicMock()
    mock_stdout.isatty.return_value = True
    monkeypatch.setattr("sys.__stdout__", mock_stdout)


@pytest.fixture(autouse=True)
def no_github_actions(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of the GitHub Actions environment they may run in."""
    for name in ("GITHUB_ACTIONS", "GITHUB_EVENT_NAME", "GITHUB_REF_TYPE", "GITHUB_REF_NAME", "GITHUB_TOKEN", "NUGET_TOKEN"):
        monkeypatch.delenv(name, raising=False)
