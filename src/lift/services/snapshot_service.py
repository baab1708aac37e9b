"""Serialization helpers for session snapshots."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping

from lift.core.value import Value, values_to_json
from lift.domain.elements import Element, element_from_payload, element_to_payload
from lift.domain.state import SessionState
from lift.services.errors import SnapshotError

logger = logging.getLogger(__name__)

SnapshotPayload = Dict[str, Any]


class SnapshotService:
    """Converts session state to/from a validated, versioned JSON document."""

    SNAPSHOT_VERSION = 1

    def serialize(self, state: SessionState) -> SnapshotPayload:
        """Return a JSON-serializable payload for the given state."""
        return {
            "snapshot_version": self.SNAPSHOT_VERSION,
            "current_page": state.current_page,
            "global": values_to_json(state.global_vars),
            "local": {page: values_to_json(scope) for page, scope in state.local_vars.items()},
            "output": [element_to_payload(element) for element in state.output],
        }

    def dumps(self, state: SessionState) -> str | None:
        """Encode the state as JSON text, or None when it cannot be encoded."""
        try:
            return json.dumps(self.serialize(state), allow_nan=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Unable to serialize session state: %s", exc)
            return None

    def loads(self, data: str) -> SessionState:
        """Decode JSON text into a brand-new SessionState."""
        try:
            payload = json.loads(data)
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
        except RecursionError as exc:
            raise SnapshotError("Snapshot is nested too deeply.") from exc
        return self.deserialize(payload)

    def deserialize(self, payload: Mapping[str, Any]) -> SessionState:
        """Rebuild a SessionState from a payload, validating every field."""
        if not isinstance(payload, Mapping):
            raise SnapshotError("Snapshot must be a JSON object.")
        version = payload.get("snapshot_version")
        is_int = isinstance(version, int) and not isinstance(version, bool)
        if not is_int or version != self.SNAPSHOT_VERSION:
            raise SnapshotError(f"Unsupported snapshot version: {version!r}")
        current_page = payload.get("current_page")
        if not isinstance(current_page, str):
            raise SnapshotError("current_page must be a string.")
        global_vars = self._coerce_scope(payload.get("global"), "global")
        raw_local = payload.get("local")
        if not isinstance(raw_local, dict):
            raise SnapshotError("local must be an object.")
        local_vars = {
            page: self._coerce_scope(scope, f"local.{page}") for page, scope in raw_local.items()
        }
        output = self._coerce_output(payload.get("output"))
        return SessionState(
            current_page=current_page,
            global_vars=global_vars,
            local_vars=local_vars,
            output=output,
        )

    @staticmethod
    def _coerce_scope(value: object, context: str) -> Dict[str, Value]:
        if not isinstance(value, dict):
            raise SnapshotError(f"{context} must be an object.")
        try:
            return {name: Value.from_json(raw) for name, raw in value.items()}
        except ValueError as exc:
            raise SnapshotError(f"{context} holds an invalid value: {exc}") from exc
        except RecursionError as exc:
            raise SnapshotError(f"{context} is nested too deeply.") from exc

    @staticmethod
    def _coerce_output(value: object) -> List[Element]:
        if not isinstance(value, list):
            raise SnapshotError("output must be a list.")
        elements: List[Element] = []
        for index, raw in enumerate(value):
            try:
                elements.append(element_from_payload(raw))
            except ValueError as exc:
                raise SnapshotError(f"output[{index}] is invalid: {exc}") from exc
        return elements
