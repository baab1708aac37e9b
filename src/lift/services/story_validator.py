"""Static story validation utilities."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, MutableMapping

from lift.domain.defs import (
    Conditional,
    ContentSeq,
    Error,
    For,
    Goto,
    Import,
    JumpAction,
    Link,
    NormalAction,
    While,
)
from lift.domain.story import Story

Severity = str


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str]


@dataclass(frozen=True, slots=True)
class Reference:
    kind: str
    target: str
    path: str


@dataclass(slots=True)
class PageInfo:
    title: str
    references: list[Reference] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    errors: list[tuple[str, str]] = field(default_factory=list)


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def validate_story(story: Story, *, error_on_import_cycle: bool = False) -> list[Issue]:
    """Check literal page references, reachability and import cycles.

    References built from interpolated templates are only known at runtime and
    are not checked.
    """
    issues: list[Issue] = []
    page_infos = {title: _build_page_info(title, story) for title in story.pages}
    titles = set(page_infos)

    if story.first_page not in titles:
        issues.append(
            Issue(
                severity="ERROR",
                code="MISSING_ENTRY_PAGE",
                message="Story has no entry page.",
                context={"referenced_page": story.first_page},
            )
        )

    for page_info in page_infos.values():
        _validate_page_references(page_info, titles, issues)
        for path, message in page_info.errors:
            issues.append(
                Issue(
                    severity="WARN",
                    code="ERROR_NODE",
                    message=f"Page shows an error when rendered: {message}",
                    context={"page": page_info.title, "field_path": path},
                )
            )

    _validate_reachability(page_infos, story.first_page, issues)
    _validate_import_cycles(page_infos, issues, error_on_import_cycle=error_on_import_cycle)
    return issues


def _build_page_info(title: str, story: Story) -> PageInfo:
    page = story.pages[title]
    info = PageInfo(title=title)
    _collect(page.content, "content", info)
    for index, action in enumerate(page.actions):
        _collect(action, f"actions[{index}]", info)
    return info


def _collect(content: ContentSeq, path: str, info: PageInfo) -> None:
    for index, node in enumerate(content):
        node_path = f"{path}[{index}]"
        if isinstance(node, Link):
            action = node.action
            if isinstance(action, (NormalAction, JumpAction)):
                _add_reference(info, "link", action.destination.literal, node_path)
        elif isinstance(node, Goto):
            _add_reference(info, "goto", node.destination.literal, node_path)
        elif isinstance(node, Import):
            target = node.page.literal
            _add_reference(info, "import", target, node_path)
            if target is not None:
                info.imports.append(target)
        elif isinstance(node, Conditional):
            for branch_index, branch in enumerate(node.branches):
                _collect(branch.body, f"{node_path}.branches[{branch_index}]", info)
            if node.else_body is not None:
                _collect(node.else_body, f"{node_path}.else", info)
        elif isinstance(node, (For, While)):
            _collect(node.body, f"{node_path}.body", info)
        elif isinstance(node, Error):
            info.errors.append((node_path, node.message))


def _add_reference(info: PageInfo, kind: str, target: str | None, path: str) -> None:
    if target is not None:
        info.references.append(Reference(kind=kind, target=target, path=path))


def _validate_page_references(page_info: PageInfo, titles: set[str], issues: list[Issue]) -> None:
    for reference in page_info.references:
        if reference.target in titles:
            continue
        # Imports of missing pages are silently skipped at runtime.
        severity = "WARN" if reference.kind == "import" else "ERROR"
        issues.append(
            Issue(
                severity=severity,
                code="MISSING_PAGE_REF",
                message=f"{reference.kind.capitalize()} references a missing page.",
                context={
                    "page": page_info.title,
                    "field_path": reference.path,
                    "referenced_page": reference.target,
                },
            )
        )


def _validate_reachability(
    page_infos: Mapping[str, PageInfo], first_page: str, issues: list[Issue]
) -> None:
    reachable: set[str] = set()
    stack = [first_page] if first_page in page_infos else []
    while stack:
        title = stack.pop()
        if title in reachable:
            continue
        reachable.add(title)
        for reference in page_infos[title].references:
            if reference.target in page_infos:
                stack.append(reference.target)
    for title in sorted(set(page_infos) - reachable):
        issues.append(
            Issue(
                severity="WARN",
                code="UNREACHABLE_PAGE",
                message="Page is unreachable from the entry page.",
                context={"page": title},
            )
        )


def _validate_import_cycles(
    page_infos: Mapping[str, PageInfo],
    issues: list[Issue],
    *,
    error_on_import_cycle: bool,
) -> None:
    adjacency: MutableMapping[str, list[str]] = {
        title: [target for target in info.imports if target in page_infos]
        for title, info in page_infos.items()
    }
    visited: set[str] = set()
    stack: list[str] = []
    stack_set: set[str] = set()
    cycles: list[list[str]] = []

    def dfs(current: str) -> None:
        visited.add(current)
        stack.append(current)
        stack_set.add(current)
        for next_page in adjacency[current]:
            if next_page not in visited:
                dfs(next_page)
            elif next_page in stack_set:
                cycles.append(stack[stack.index(next_page) :])
        stack.pop()
        stack_set.remove(current)

    for title in sorted(adjacency):
        if title not in visited:
            dfs(title)

    severity = "ERROR" if error_on_import_cycle else "WARN"
    for cycle in cycles:
        cycle_path = " -> ".join(cycle + [cycle[0]])
        issues.append(
            Issue(
                severity=severity,
                code="IMPORT_CYCLE",
                message="Pages import each other in a cycle.",
                context={"cycle": cycle_path},
            )
        )
