"""Decode and validate the structured arguments returned by the model."""

from __future__ import annotations

import json
import logging
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from jsonschema import Draft202012Validator
from jsonschema.exceptions import best_match
from pydantic import BaseModel, ValidationError

from promptcast.core.descriptors import ArrayType, ObjectType, TypeDescriptor
from promptcast.core.errors import CardinalityError, DecodeError, ResponseValidationError
from promptcast.core.safety import mask_pii
from promptcast.core.translate import ENVELOPE_FIELD, FunctionSchema, build_function_schema

_logger = logging.getLogger(__name__)

_ACTUAL_PREVIEW_LENGTH = 120
M = TypeVar("M", bound=BaseModel)

_ENVELOPE_SHAPE = {"type": "object", "required": [ENVELOPE_FIELD]}


def parse_arguments(raw_response: str) -> Any:
    """Parse the raw argument blob as JSON, raising :class:`DecodeError` on failure."""
    try:
        return json.loads(raw_response)
    except json.JSONDecodeError as exc:
        message = f"LLM response is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})"
        raise DecodeError(message, raw_response=mask_pii(raw_response)) from exc


def format_path(path: Iterable[str | int]) -> str:
    """Render a JSON location such as ``$.value[2].name``."""
    rendered = "$"
    for part in path:
        rendered += f"[{part}]" if isinstance(part, int) else f".{part}"
    return rendered


def _preview(value: Any) -> str:
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = repr(value)
    return mask_pii(text, max_length=_ACTUAL_PREVIEW_LENGTH)


def validate_instance(instance: Any, schema: typing.Mapping[str, Any], *, raw_response: str | None = None) -> None:
    """Validate *instance* against *schema* and report the most relevant violation."""
    validator = Draft202012Validator(schema)
    error = best_match(validator.iter_errors(instance))
    if error is None:
        return

    path = format_path(error.absolute_path)
    expected = f"{error.validator} {_preview(error.validator_value)}"
    actual = _preview(error.instance)
    message = f"LLM response failed schema validation at {path}: expected {expected}, got {actual}"
    raise ResponseValidationError(
        message,
        path=path,
        expected=expected,
        actual=actual,
        raw_response=mask_pii(raw_response) if raw_response is not None else None,
    )


def project(value: Any, descriptor: TypeDescriptor) -> Any:
    """Drop object keys that *descriptor* does not declare, recursively."""
    match descriptor:
        case ObjectType(properties=properties) if isinstance(value, dict):
            mapping = typing.cast("dict[str, Any]", value)
            return {name: project(mapping[name], child) for name, child in properties.items() if name in mapping}
        case ArrayType(items=items) if isinstance(value, list):
            sequence = typing.cast("list[Any]", value)
            return [project(item, items) for item in sequence]
        case _:
            return value


@dataclass(frozen=True)
class Cardinality:
    """Bounds applied to a validated list: too few values fail, too many are truncated."""

    min_values: int
    max_values: int

    def apply(self, values: list[Any]) -> list[Any]:
        if len(values) < self.min_values:
            message = f"You must provide at least {self.min_values} values"
            raise CardinalityError(
                message,
                path=format_path([ENVELOPE_FIELD]),
                expected=f"at least {self.min_values} items",
                actual=f"{len(values)} items",
            )
        if len(values) > self.max_values:
            _logger.debug(
                "Truncating list answer",
                extra={"received": len(values), "max_values": self.max_values},
            )
            return values[: self.max_values]
        return values


class ResponseDecoder:
    """Turn raw function-call arguments into a validated, unwrapped value.

    The envelope decision is recomputed from the same descriptor used to
    build the request, so unwrapping always mirrors wrapping. When a
    :class:`Cardinality` is supplied the descriptor must be an array; its
    length bounds are then enforced by the cardinality policy instead of
    schema validation.
    """

    def __init__(
        self,
        descriptor: TypeDescriptor | type[BaseModel],
        *,
        cardinality: Cardinality | None = None,
    ) -> None:
        if cardinality is not None:
            if not isinstance(descriptor, ArrayType):
                message = "cardinality can only be applied to array descriptors"
                raise TypeError(message)
            descriptor = descriptor.unbounded()
        self._descriptor = descriptor
        self._cardinality = cardinality
        self._function_schema: FunctionSchema = build_function_schema(descriptor)

    @property
    def wrapped(self) -> bool:
        return self._function_schema.wrapped

    def decode(self, raw_response: str) -> Any:
        """Parse, validate and unwrap *raw_response*."""
        payload = parse_arguments(raw_response)
        return self.validate(payload, raw_response=raw_response)

    def validate(self, payload: Any, *, raw_response: str | None = None) -> Any:
        """Validate a parsed payload (including its envelope, if any) and unwrap it."""
        if isinstance(self._descriptor, type):
            if not self.wrapped:
                return _validate_model(self._descriptor, payload, raw_response=raw_response)
            validate_instance(payload, _ENVELOPE_SHAPE, raw_response=raw_response)
            return _validate_model(
                self._descriptor, payload[ENVELOPE_FIELD], raw_response=raw_response, prefix=(ENVELOPE_FIELD,),
            )

        validate_instance(payload, self._function_schema.parameters, raw_response=raw_response)
        value = payload[ENVELOPE_FIELD] if self.wrapped else payload
        value = project(value, self._descriptor)
        if self._cardinality is not None:
            value = self._cardinality.apply(value)
        return value

    def validate_value(self, value: Any) -> Any:
        """Validate a bare value as if the model had answered with it."""
        if self.wrapped:
            return self.validate({ENVELOPE_FIELD: value})
        return self.validate(value)


def _validate_model(
    model: type[M],
    payload: Any,
    *,
    raw_response: str | None,
    prefix: tuple[str, ...] = (),
) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        first_error = exc.errors()[0]
        path = format_path((*prefix, *first_error["loc"]))
        actual = _preview(first_error.get("input"))
        message = f"LLM response failed schema validation at {path}: {first_error['msg']}"
        raise ResponseValidationError(
            message,
            path=path,
            expected=first_error["msg"],
            actual=actual,
            raw_response=mask_pii(raw_response) if raw_response is not None else None,
        ) from exc


__all__ = [
    "Cardinality",
    "ResponseDecoder",
    "format_path",
    "parse_arguments",
    "project",
    "validate_instance",
]
