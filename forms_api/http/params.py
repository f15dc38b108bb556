"""Request body extraction with a resource-key whitelist.

Bodies may wrap attributes in the resource key (``{"page": {...}}``) or send
them bare. Attributes outside the params model are dropped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Type

from fastapi import Request
from pydantic import BaseModel, ValidationError as PydanticValidationError

from forms_api.logic.errors import MissingParameterError, RecordInvalid


async def require_params(request: Request, key: str, model: Type[BaseModel]) -> Dict[str, Any]:
    """Return the attributes the client actually sent, validated by ``model``.

    Raises MissingParameterError when the body is absent, not an object, or
    empty; RecordInvalid when an attribute has the wrong type.
    """
    try:
        payload: Any = await request.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get(key), dict):
        payload = payload[key]
    if not isinstance(payload, dict) or not payload:
        raise MissingParameterError(key)
    try:
        parsed = model.model_validate(payload)
    except PydanticValidationError as exc:
        errors: Dict[str, List[str]] = {}
        for err in exc.errors():
            loc = err.get("loc") or ("base",)
            errors.setdefault(str(loc[0]), []).append(str(err.get("msg", "is invalid")))
        raise RecordInvalid(errors) from exc
    return parsed.model_dump(exclude_unset=True)


__all__ = ["require_params"]
