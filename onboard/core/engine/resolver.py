"""
Dependency resolver (pure).

Turns a requested set of tool ids into a deduplicated, dependency-ordered
install plan.  No I/O, no subprocess.

Ordering rule: request order, depth-first.  For each requested tool, its
prerequisites are resolved recursively (in their declared order) right
before the tool itself is appended.  A tool is placed exactly once, at
the position of its first visit.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from onboard.core.data.catalog import DEFAULT_REQUEST, EXTENDED_REQUEST, TOOL_CATALOG
from onboard.core.errors import CatalogError, UnknownToolError
from onboard.core.models.tool import ToolSpec


def resolve(
    requested: Iterable[str],
    catalog: Mapping[str, ToolSpec] = TOOL_CATALOG,
) -> list[str]:
    """Resolve *requested* into a topologically ordered plan.

    Args:
        requested: Tool ids, in request order. Duplicates and missing
            prerequisites are fine.
        catalog: Tool id → spec mapping. Must be acyclic
            (see ``validate_catalog``).

    Returns:
        Every requested tool plus its transitive prerequisites, each
        exactly once, prerequisites first.

    Raises:
        UnknownToolError: If a requested id (or a prerequisite) is not
            in the catalog.
    """
    visited: set[str] = set()
    order: list[str] = []

    def visit(tool_id: str) -> None:
        if tool_id in visited:
            return
        spec = catalog.get(tool_id)
        if spec is None:
            raise UnknownToolError(tool_id)
        visited.add(tool_id)
        for dep in spec.requires:
            visit(dep)
        order.append(tool_id)

    for tool_id in requested:
        visit(str(tool_id))
    return order


def validate_catalog(catalog: Mapping[str, ToolSpec] = TOOL_CATALOG) -> list[str]:
    """Validate the catalog's dependency graph.

    Checks for:
    - Keys that disagree with the spec's own id
    - References to unknown tool ids
    - Cycles (Kahn's algorithm)

    Returns:
        List of error strings (empty = valid).
    """
    errors: list[str] = []

    for key, spec in catalog.items():
        if key != spec.id:
            errors.append(f"Catalog key '{key}' holds spec for '{spec.id}'")

    for key, spec in catalog.items():
        for dep in spec.requires:
            if dep not in catalog:
                errors.append(f"Tool '{key}' depends on unknown tool '{dep}'")

    if errors:
        return errors

    in_degree: dict[str, int] = {key: len(spec.requires) for key, spec in catalog.items()}
    # dep → tools that depend on it
    dependents: dict[str, list[str]] = {key: [] for key in catalog}
    for key, spec in catalog.items():
        for dep in spec.requires:
            dependents[dep].append(key)

    queue = [key for key, deg in in_degree.items() if deg == 0]
    processed = 0
    while queue:
        node = queue.pop(0)
        processed += 1
        for successor in dependents[node]:
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    if processed < len(catalog):
        stuck = sorted(key for key, deg in in_degree.items() if deg > 0)
        errors.append(f"Dependency cycle detected among: {', '.join(stuck)}")

    return errors


def ensure_valid_catalog(catalog: Mapping[str, ToolSpec] = TOOL_CATALOG) -> None:
    """Raise ``CatalogError`` if the catalog fails validation."""
    errors = validate_catalog(catalog)
    if errors:
        raise CatalogError("; ".join(errors))


def parse_tool_ids(
    raw: str,
    catalog: Mapping[str, ToolSpec] = TOOL_CATALOG,
) -> tuple[list[str], list[str]]:
    """Split a comma-separated ``--only`` value into known and unknown ids.

    Blank items are ignored; order is preserved in both lists.
    """
    known: list[str] = []
    unknown: list[str] = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if item in catalog:
            known.append(item)
        else:
            unknown.append(item)
    return known, unknown


def default_tools(catalog: Mapping[str, ToolSpec] = TOOL_CATALOG) -> list[str]:
    """The resolved default selection."""
    return resolve(DEFAULT_REQUEST, catalog)


def extended_tools(catalog: Mapping[str, ToolSpec] = TOOL_CATALOG) -> list[str]:
    """The resolved extended (``--gnoc``) selection."""
    return resolve(EXTENDED_REQUEST, catalog)
