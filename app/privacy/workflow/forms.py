"""
Form registry, filtering and validation.
"""
from __future__ import annotations

import logging
from typing import Type

from pydantic import BaseModel, ValidationError

from app.privacy.errors import FormLoadError
from app.privacy.schemas.request import RequestForm

logger = logging.getLogger(__name__)

FORMS: dict[str, Type[BaseModel]] = {
    "privacy.request": RequestForm,
}


def register_form(name: str, form: Type[BaseModel]) -> None:
    FORMS[name] = form


def load_form(name: str) -> Type[BaseModel]:
    try:
        return FORMS[name]
    except KeyError:
        logger.error("Form not found: %s", name)
        raise FormLoadError(f"Failed to load form: {name}") from None


def _field_title(form: Type[BaseModel], loc: tuple) -> str:
    if not loc:
        return "Form"
    name = str(loc[0])
    field = form.model_fields.get(name)
    if field is not None and field.title:
        return field.title
    return name


def validate_form(form: Type[BaseModel], data: dict) -> tuple[dict | None, list[str]]:
    """Filter and validate ``data`` against ``form``.

    Returns ``(filtered_data, [])`` on success or ``(None, messages)`` with one
    message per failing field.
    """
    try:
        instance = form.model_validate(data)
    except ValidationError as exc:
        messages = [
            f"Invalid field: {_field_title(form, err['loc'])}. {err['msg']}"
            for err in exc.errors()
        ]
        logger.info("Form validation failed with %d error(s)", len(messages))
        return None, messages
    return instance.model_dump(mode="json"), []
