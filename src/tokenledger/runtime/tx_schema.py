from __future__ import annotations

"""Transaction payload schemas.

Admission validates every payload against the model registered for its
tx_type before the transition runs. Models are strict: unknown keys and
type coercion are rejected, so every node decodes the same payload the same
way.
"""

from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Json = Dict[str, Any]


class _StrictModel(BaseModel):
    """Strict model: reject unknown keys, no implicit coercion."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)


class CreateTokenPayload(_StrictModel):
    symbol: str = Field(..., description="Unique token symbol, e.g. BTC")


Schema = Type[BaseModel]


def decode_payload(schema: Schema, payload: Any) -> Tuple[Optional[BaseModel], str, Optional[Json]]:
    """Decode a raw payload dict into its model.

    Returns: (model | None, reason, details)
    """
    if not isinstance(payload, dict):
        return None, "payload_must_be_object", None
    try:
        return schema.model_validate(payload), "", None
    except ValidationError as ve:
        return None, "payload_schema_mismatch", {"errors": ve.errors(include_url=False, include_context=False, include_input=False)}
