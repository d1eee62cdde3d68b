"""JSON codec for archived workflow bodies."""

from __future__ import annotations

import json

from wfarchive.contracts.errors import EncodingError
from wfarchive.contracts.workflow import Workflow


class JsonWorkflowCodec:
    """Serializes workflows as compact JSON in the Kubernetes resource layout.

    Keys are sorted so identical workflows produce identical bodies.
    """

    def encode(self, workflow: Workflow) -> bytes:
        try:
            return json.dumps(workflow.to_dict(), sort_keys=True, separators=(",", ":"), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(f"cannot serialize workflow {workflow.uid!r}: {e}") from e

    def decode(self, data: bytes | str) -> Workflow:
        try:
            raw = json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise EncodingError(f"archived workflow body is not valid JSON: {e}") from e
        if type(raw) is not dict:
            raise EncodingError(f"archived workflow body must decode to an object, got {type(raw).__name__}")
        try:
            return Workflow.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise EncodingError(f"archived workflow body is not a valid workflow: {e!r}") from e
