"""
One-step construction of model records.

``build`` replaces the build-empty-then-fill pattern: it checks that the
input bundle carries every field of the requested record, then creates the
frozen record in a single call.  Values are copied through unchanged.
"""
from typing import Any, Mapping, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from src.tickerpicker.errors import ConstructionError

M = TypeVar("M", bound=BaseModel)


def build(modeltype: Type[M], data: Mapping[str, Any]) -> M:
    """Build a *modeltype* record from a field-keyed bundle.

    Args:
        modeltype: One of ``WorldModel``, ``BanditModel`` or
                   ``InvestorContextModel``.
        data: Mapping (or NamedTuple) holding every field of *modeltype*.
              Extra keys are ignored.

    Returns:
        The fully-initialised, frozen record.

    Raises:
        ConstructionError: If a required field is absent or a value does
                           not fit the field's type.
    """
    if hasattr(data, "_asdict"):
        data = data._asdict()

    fields = list(modeltype.model_fields)
    missing = [name for name in fields if name not in data]
    if missing:
        logger.error(f"{modeltype.__name__} bundle is missing fields: {missing}")
        raise ConstructionError(
            f"Cannot build {modeltype.__name__}: missing required field(s) {missing}"
        )

    try:
        record = modeltype(**{name: data[name] for name in fields})
    except ValidationError as e:
        logger.error(f"{modeltype.__name__} bundle has invalid values: {e}")
        raise ConstructionError(
            f"Cannot build {modeltype.__name__}: {e.error_count()} invalid field(s)"
        ) from e

    logger.debug(f"Built {modeltype.__name__} with {len(fields)} fields")
    return record
