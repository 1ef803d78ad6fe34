"""
Form Analyzer: Early diagnostics and inventory of form definitions.

This module provides lightweight analysis of FormDefinition objects:
    - Condition usage inventory (defined, referenced, unused)
    - Field references made by conditions
    - Page graph reachability, stale links and cycles
    - Storage key collisions
    - Warning flags for definition risk

IMPORTANT: This does NOT modify the definition and does NOT need a
FormModel. A definition that fails to load into a FormModel can still
be analyzed to find out why.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from formengine.expressions import ConditionDef
from formengine.model import Engine, FormDefinition, PageDef, normalise_path

COMPOSITE_SUFFIXES = {
    "DatePartsField": ("day", "month", "year"),
    "MonthYearField": ("month", "year"),
    "UkAddressField": ("addressLine1", "addressLine2", "town", "postcode"),
}

CONTENT_TYPES = {"Html", "Para", "InsetText", "Details", "Markdown"}


def storage_keys(page: PageDef) -> List[str]:
    keys = []
    for component in page.components:
        if component.type in CONTENT_TYPES:
            continue
        suffixes = COMPOSITE_SUFFIXES.get(component.type)
        if suffixes:
            keys.extend(f"{component.name}__{suffix}" for suffix in suffixes)
        else:
            keys.append(component.name)
    return keys


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class FormReport:
    """Analysis report for a form definition."""

    form_name: str
    total_pages: int = 0
    total_links: int = 0
    total_conditions: int = 0
    total_components: int = 0
    total_lists: int = 0

    # Conditions
    condition_usage: Dict[str, int] = field(default_factory=dict)
    undefined_conditions: Set[str] = field(default_factory=set)
    unused_conditions: Set[str] = field(default_factory=set)
    undefined_fields: Set[str] = field(default_factory=set)

    # Components
    undefined_lists: Set[str] = field(default_factory=set)
    duplicate_keys: Set[str] = field(default_factory=set)

    # Graph properties
    start_page: Optional[str] = None
    exit_points: List[str] = field(default_factory=list)
    stale_links: List[Tuple[str, str]] = field(default_factory=list)
    unreachable_pages: Set[str] = field(default_factory=set)
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def is_clean(self) -> bool:
        return not self.warnings


def _condition_references(definition: FormDefinition) -> List[str]:
    """Every place a condition name is used, one entry per use."""
    references: List[str] = []
    for page in definition.pages:
        if page.condition:
            references.append(page.condition)
        references.extend(link.condition for link in page.next if link.condition)
        for component in page.components:
            if component.options.get("condition"):
                references.append(component.options["condition"])
    for list_def in definition.lists:
        references.extend(item.condition for item in list_def.items if item.condition)
    for condition in definition.conditions:
        references.extend(condition.condition_references())
    return references


def _field_names(definition: FormDefinition) -> Set[str]:
    names: Set[str] = set()
    for page in definition.pages:
        for component in page.components:
            names.add(component.name)
            if page.section:
                names.add(f"{page.section}.{component.name}")
    return names


def _undefined_fields(conditions: List[ConditionDef], names: Set[str]) -> Set[str]:
    return {
        reference
        for condition in conditions
        for reference in condition.field_references()
        if reference not in names
    }


def analyze_form(definition: FormDefinition) -> FormReport:
    """
    Perform analysis of a FormDefinition.

    Checks for:
    - Condition definitions and usage
    - Fields, lists and storage keys referenced by components and conditions
    - Graph structure (stale links, reachability, cycles)

    Returns a FormReport with findings and warnings.
    """
    report = FormReport(form_name=definition.name)

    report.total_pages = len(definition.pages)
    report.total_links = sum(len(p.next) for p in definition.pages)
    report.total_conditions = len(definition.conditions)
    report.total_components = sum(len(p.components) for p in definition.pages)
    report.total_lists = len(definition.lists)

    page_by_path = {normalise_path(p.path): p for p in definition.pages}

    # =========================================================================
    # 1. CONDITION ANALYSIS
    # =========================================================================

    declared = {c.name for c in definition.conditions}
    references = _condition_references(definition)

    usage: Dict[str, int] = defaultdict(int)
    for name in declared:
        usage[name] = 0
    for name in references:
        usage[name] += 1
    report.condition_usage = dict(usage)

    report.undefined_conditions = set(references) - declared
    report.unused_conditions = {name for name in declared if usage[name] == 0}
    report.undefined_fields = _undefined_fields(definition.conditions, _field_names(definition))

    # =========================================================================
    # 2. COMPONENTS
    # =========================================================================

    list_names = {l.name for l in definition.lists} | {"__yesNo"}
    for page in definition.pages:
        for component in page.components:
            if component.list and component.list not in list_names:
                report.undefined_lists.add(component.list)

    seen_keys: Dict[Tuple[Optional[str], str], int] = defaultdict(int)
    for page in definition.pages:
        for key in storage_keys(page):
            seen_keys[(page.section, key)] += 1
    report.duplicate_keys = {key for (_, key), count in seen_keys.items() if count > 1}

    # =========================================================================
    # 3. GRAPH STRUCTURE ANALYSIS
    # =========================================================================

    outgoing: Dict[str, List[str]] = defaultdict(list)
    if definition.engine is Engine.V2:
        ordered = [normalise_path(p.path) for p in definition.pages]
        for current, following in zip(ordered, ordered[1:]):
            outgoing[current].append(following)
    else:
        for page in definition.pages:
            source = normalise_path(page.path)
            for link in page.next:
                target = normalise_path(link.path)
                if target not in page_by_path:
                    report.stale_links.append((page.path, link.path))
                    continue
                outgoing[source].append(target)

    for page in definition.pages:
        if not outgoing.get(normalise_path(page.path)):
            report.exit_points.append(page.path)

    start = definition.start_path
    report.start_page = start
    reachable: Set[str] = set()
    stack = [normalise_path(start)] if start else []
    while stack:
        node = stack.pop()
        if node in reachable:
            continue
        reachable.add(node)
        for neighbor in outgoing.get(node, []):
            if neighbor not in reachable:
                stack.append(neighbor)

    for page in definition.pages:
        if normalise_path(page.path) not in reachable:
            report.unreachable_pages.add(page.path)

    visited: Set[str] = set()
    for node in list(outgoing.keys()):
        if node not in visited:
            cycle = _find_cycles_dfs(outgoing, node, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if start and normalise_path(start) not in page_by_path:
        report.add_warning(f"Start page does not exist: {start}")

    if report.undefined_conditions:
        report.add_warning(
            f"Undefined condition references: {', '.join(sorted(report.undefined_conditions))}"
        )

    if report.unused_conditions:
        report.add_warning(
            f"Unused conditions: {', '.join(sorted(report.unused_conditions))}"
        )

    if report.undefined_fields:
        report.add_warning(
            f"Conditions reference unknown fields: {', '.join(sorted(report.undefined_fields))}"
        )

    if report.undefined_lists:
        report.add_warning(
            f"Components reference unknown lists: {', '.join(sorted(report.undefined_lists))}"
        )

    if report.duplicate_keys:
        report.add_warning(
            f"Duplicate storage keys: {', '.join(sorted(report.duplicate_keys))}"
        )

    if report.stale_links:
        report.add_warning(
            "Links to missing pages: " + ", ".join(f"{a} -> {b}" for a, b in report.stale_links)
        )

    if report.unreachable_pages:
        report.add_warning(
            f"Unreachable pages: {', '.join(sorted(report.unreachable_pages))}"
        )

    if report.has_cycles:
        report.add_warning(
            f"Cycle detected: {' -> '.join(report.cycle_example)}"
        )

    return report
