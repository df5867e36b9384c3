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

"""Build order of the projects in a collection.

Ordering is a greedy topological sort: among the records not yet placed,
the first one in path order whose in-set references are all placed goes
next. The path-order tie-break makes the result independent of the order in
which metadata extraction finished. References to projects outside the
discovered set never constrain the order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from relstack.core.exceptions import UnresolvedDependencyError
from relstack.planning.model import ProjectRecord, path_key

logger = logging.getLogger(__name__)


def sort_by_path(records: Iterable[ProjectRecord]) -> list[ProjectRecord]:
    """Return records sorted by project path."""
    return sorted(records, key=lambda r: str(r.path))


def _in_set_references(record: ProjectRecord, is_known: Callable[[str], bool]) -> list[str]:
    return [key for key in (path_key(ref) for ref in record.project_references) if is_known(key)]


def find_reference_cycles(
    records: Sequence[ProjectRecord],
    is_known: Callable[[str], bool],
) -> list[list[str]]:
    """Detect reference cycles among `records` using DFS.

    Returns:
        List of cycles as assembly names, the first name repeated at the end.
    """
    by_key = {r.key: r for r in records}
    WHITE, GRAY, BLACK = 0, 1, 2
    color: dict[str, int] = dict.fromkeys(by_key, WHITE)
    parent: dict[str, str | None] = dict.fromkeys(by_key)
    cycles: list[list[str]] = []

    def dfs(node: str) -> None:
        color[node] = GRAY
        for neighbor in _in_set_references(by_key[node], is_known):
            if neighbor not in by_key:
                continue
            if color[neighbor] == GRAY:
                # Back edge found - reconstruct cycle
                cycle = [neighbor]
                current: str | None = node
                while current is not None and current != neighbor:
                    cycle.append(current)
                    current = parent.get(current)
                cycle.append(neighbor)
                cycle.reverse()
                cycles.append([by_key[k].assembly_name for k in cycle])
            elif color[neighbor] == WHITE:
                parent[neighbor] = node
                dfs(neighbor)
        color[node] = BLACK

    for record in sort_by_path(records):
        if color[record.key] == WHITE:
            dfs(record.key)

    return cycles


def order_projects(
    records: Iterable[ProjectRecord],
    is_known: Callable[[str], bool],
) -> list[ProjectRecord]:
    """Return `records` in build order.

    Args:
        records: Records of one collection, in any order.
        is_known: Predicate on a path key telling whether the referenced
            project belongs to the discovered project set.

    Raises:
        UnresolvedDependencyError: If no remaining record can be placed.
    """
    remaining = sort_by_path(records)
    placed: set[str] = set()
    ordered: list[ProjectRecord] = []

    while remaining:
        ready = next(
            (r for r in remaining if all(ref in placed for ref in _in_set_references(r, is_known))),
            None,
        )
        if ready is None:
            names = [r.assembly_name for r in remaining]
            cycles = find_reference_cycles(remaining, is_known)
            message = f"Cannot resolve dependencies of remaining projects [{', '.join(names)}]. Aborting."
            if cycles:
                message += " Cycle: " + " -> ".join(cycles[0])
            logger.error(message)
            raise UnresolvedDependencyError(message=message, remaining=names)

        placed.add(ready.key)
        ordered.append(ready)
        remaining.remove(ready)

    return ordered
