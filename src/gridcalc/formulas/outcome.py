"""Result record for one formula evaluation."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict


class EvaluationOutcome(BaseModel):
    """Numeric result plus error kind (empty string means no error).

    ``result`` is always present.  When ``error`` is set the result is
    advisory only: ``inf`` for a division by zero, otherwise whatever
    partial or fallback value the evaluator could offer for display.
    """

    # Non-finite results serialize as "Infinity" / "NaN" strings in JSON.
    model_config = ConfigDict(frozen=True, ser_json_inf_nan="strings")

    result: float = 0.0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.error == ""

    def to_json_dict(self) -> dict[str, Any]:
        """Plain dict that ``json.dumps(..., allow_nan=False)`` accepts."""
        return json.loads(self.model_dump_json())
