"""
FDC3 Bus Argument Validation
============================

Checks run by every public operation before any remote call.
Context helpers accept either a Context or a plain mapping and return
the coerced Context.
"""

from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import Context


def validate_context(context: Any) -> Optional[Context]:
    """Validate an optional context. Returns None when no context was given."""
    if context is None:
        return None
    if isinstance(context, Context):
        return context
    if not isinstance(context, Mapping):
        raise ValidationError('Context must be of type "object"')
    if not context.get("type"):
        raise ValidationError("Context type is mandatory parameter")
    if not isinstance(context["type"], str):
        raise ValidationError('Context type must be of type "string"')
    if context.get("name") is not None and not isinstance(context["name"], str):
        raise ValidationError('Context name must be of type "string"')

    try:
        return Context.model_validate(dict(context))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid context: {e.errors()[0]['msg']}") from e


def validate_required_context(context: Any) -> Context:
    if context is None:
        raise ValidationError("Context is mandatory parameter")
    return validate_context(context)


def validate_open_params(app: Any, context: Any = None) -> Optional[Context]:
    if not app:
        raise ValidationError("App is mandatory parameter")
    if not isinstance(app, str):
        raise ValidationError('App must be of type "string"')
    return validate_context(context)


def validate_intent(intent: Any) -> None:
    if not intent:
        raise ValidationError("Intent is mandatory parameter")
    if not isinstance(intent, str):
        raise ValidationError('Intent must be of type "string"')


def validate_intent_and_context(intent: Any, context: Any = None) -> Optional[Context]:
    validate_intent(intent)
    return validate_context(context)


def validate_raise_intent(intent: Any, context: Any, target: Any = None) -> Context:
    validate_intent(intent)
    coerced = validate_required_context(context)
    if target is not None and not isinstance(target, str):
        raise ValidationError('Target must be of type "string"')
    return coerced


def validate_handler(handler: Any) -> None:
    if handler is None:
        raise ValidationError("Handler is mandatory parameter")
    if not callable(handler):
        raise ValidationError('Handler must be of type "function"')


def validate_add_intent_listener(intent: Any, handler: Any) -> None:
    validate_intent(intent)
    validate_handler(handler)
