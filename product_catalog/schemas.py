# product_catalog/schemas.py

"""
Pydantic rule sets for the product forms.
Each rule set validates a raw form submission and yields either the cleaned
fields or one message per failing field, ready to show next to the inputs.
"""

from typing import Any, Dict, Mapping, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError

NAME_MAX_LENGTH = 255


class ProductStoreRequest(BaseModel):
    # Form values are trimmed first, so "   " fails the same way "" does.
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    detail: str = Field(..., min_length=1)


# Kept as its own declaration so update rules can diverge from store rules.
# Updates replace both fields, so both stay required.
class ProductUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    detail: str = Field(..., min_length=1)


def _message_for(field: str, error: Dict[str, Any]) -> str:
    error_type = error["type"]
    if error_type in ("missing", "string_too_short") or error.get("input") is None:
        return f"The {field} field is required."
    if error_type == "string_too_long":
        limit = error.get("ctx", {}).get("max_length", NAME_MAX_LENGTH)
        return f"The {field} field must not be greater than {limit} characters."
    if error_type == "string_type":
        return f"The {field} field must be a string."
    return f"The {field} field is invalid."


def validate_fields(
    rules: Type[BaseModel], raw: Mapping[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    Run `rules` against a raw field map.

    Returns `(data, errors)`. On success `data` holds exactly the declared
    fields and `errors` is empty; on failure `data` is empty and `errors`
    maps each failing field to its first message.
    """
    try:
        validated = rules.model_validate(dict(raw))
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else "__root__"
            errors.setdefault(field, _message_for(field, error))
        return {}, errors
    return validated.model_dump(), {}
