"""Base model and coercion helpers shared by pypeerloc models.

Every model inherits from :class:`PeerLocBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase keys of the persisted
  document (``updatedAt``) map to snake_case fields.
* ``populate_by_name=True`` so models can be built from Python code
  with the snake_case names.
* Immutability, so snapshots handed to consumers cannot be mutated
  behind the store's back.
* ``ser_json_inf_nan="constants"`` so a non-finite coordinate survives
  a round trip through the persisted document instead of becoming
  ``null``.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


EpochMillis = Annotated[int | None, BeforeValidator(safe_int)]
"""Annotated type that coerces numeric epoch values (int, float, str) to integer milliseconds."""

OptionalFloat = Annotated[float | None, BeforeValidator(safe_float)]
"""Annotated type for optional sensor readings; unparseable values become ``None``."""


class PeerLocBaseModel(BaseModel):
    """Base for pypeerloc data models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        ser_json_inf_nan="constants",
    )
