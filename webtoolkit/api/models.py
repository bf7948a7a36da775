from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, model_validator


class JSONResponse(BaseModel):
    """Standard response envelope: {"error", "message", "data"?}.

    `data` is omitted from the wire when absent. Error envelopes never carry data.
    """

    error: bool = False
    message: str = ""
    data: Optional[Any] = None

    @model_validator(mode="after")
    def _error_has_no_data(self) -> "JSONResponse":
        if self.error and self.data is not None:
            raise ValueError("error envelopes must not carry data")
        return self

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out
