"""Shared Pydantic types and helpers."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ValidationError

from realstupid.core.errors import ValidationFailed

Mode = Literal["real", "stupid"]
VoteType = Literal["up", "down"]

COMMUNITY_NAME_PATTERN = r"^[A-Za-z0-9_]{3,21}$"

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_model(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Return ``data`` as an instance of ``model``.

    Raises:
        ValidationFailed: If a mapping does not satisfy the schema.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ValidationFailed.from_pydantic(exc) from exc


def blank_to_none(data: object, fields: tuple[str, ...]) -> object:
    """Treat empty or whitespace-only strings in ``fields`` as absent."""
    if not isinstance(data, dict):
        return data
    cleaned = dict(data)
    for field_name in fields:
        value = cleaned.get(field_name)
        if isinstance(value, str) and not value.strip():
            cleaned[field_name] = None
    return cleaned
