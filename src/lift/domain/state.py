"""Session state: active page, scoped variables and the rendered output."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from lift.core.value import Value
from lift.domain.elements import Element

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Mutable narrative state owned by a single interpreter."""

    current_page: str
    global_vars: Dict[str, Value] = field(default_factory=dict)
    local_vars: Dict[str, Dict[str, Value]] = field(default_factory=dict)
    output: List[Element] = field(default_factory=list)

    def read(self, page: str, variable: str) -> Value | None:
        """Resolve ``variable`` through the page-local scope, then the global one."""
        scope = self.local_vars.get(page)
        if scope is not None and variable in scope:
            return scope[variable]
        return self.global_vars.get(variable)

    def get(self, variable: str) -> Value | None:
        return self.read(self.current_page, variable)

    def write_global(self, variable: str, value: Value) -> None:
        self.global_vars[variable] = value.copy()

    def write_global_indexed(self, variable: str, indices: Sequence[Value], value: Value) -> None:
        if not indices:
            self.write_global(variable, value)
            return
        self._write_indexed(self.global_vars.get(variable), variable, indices, value)

    def write_local(self, variable: str, value: Value) -> None:
        scope = self.local_vars.setdefault(self.current_page, {})
        scope[variable] = value.copy()

    def write_local_indexed(self, variable: str, indices: Sequence[Value], value: Value) -> None:
        if not indices:
            self.write_local(variable, value)
            return
        scope = self.local_vars.get(self.current_page, {})
        self._write_indexed(scope.get(variable), variable, indices, value)

    @staticmethod
    def _write_indexed(
        target: Value | None, variable: str, indices: Sequence[Value], value: Value
    ) -> None:
        slot = target.resolve_path(indices) if target is not None else None
        if slot is None:
            logger.debug("Dropped indexed write to '%s': target path does not resolve", variable)
            return
        slot.set(value.copy())
