"""
Structural descriptor: strict decoding of generated text into a model.

The descriptor captures the field layout of a pydantic model once, at
construction time, and decodes output text into new instances of it:

- Exactly one JSON value must be present; anything but whitespace after it
  is rejected (no smuggled content after a well-formed prefix).
- The value must be a JSON object and match the field types (pydantic
  strict validation, so "1" is not an int).
- In strict mode (the default) any key the layout does not declare is
  rejected, at every nesting level the layout can resolve.

Malformed syntax, trailing content, unknown fields and type mismatches all
raise StructuralFailure.
"""

import json
import types
from collections.abc import Mapping as AbcMapping
from collections.abc import Sequence as AbcSequence
from types import MappingProxyType
from typing import Annotated, Any, Generic, Mapping, Optional, TypeVar, Union, get_args, get_origin

import structlog
from pydantic import AliasChoices, AliasPath, BaseModel, RootModel
from pydantic import ValidationError as PydanticValidationError
from pydantic.fields import FieldInfo

from railguard.exceptions import ConfigurationError, StructuralFailure

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# JSON insignificant whitespace (RFC 8259), narrower than str.strip()
_JSON_WHITESPACE = " \t\n\r"
_DECODER = json.JSONDecoder()


class _ModelShape:
    """Accepted keys of one model, plus shapes of nested fields."""

    __slots__ = ("model", "keys", "children")

    def __init__(self, model: type[BaseModel]):
        self.model = model
        self.keys: frozenset[str] = frozenset()
        self.children: dict[str, "_Shape"] = {}


class _SequenceShape:
    """List/tuple/set of items; ``items`` is positional unless variadic."""

    __slots__ = ("items", "variadic")

    def __init__(self, items: tuple[Optional["_Shape"], ...], variadic: bool):
        self.items = items
        self.variadic = variadic

    def item_at(self, index: int) -> Optional["_Shape"]:
        if self.variadic:
            return self.items[0]
        return self.items[index] if index < len(self.items) else None


class _MappingShape:
    """dict[str, T] where T carries a nested layout."""

    __slots__ = ("value",)

    def __init__(self, value: "_Shape"):
        self.value = value


_Shape = Union[_ModelShape, _SequenceShape, _MappingShape]


def _accepted_keys(model: type[BaseModel], name: str, field: FieldInfo) -> set[str]:
    alias = field.validation_alias if field.validation_alias is not None else field.alias
    if alias is None:
        return {name}

    keys: set[str] = set()
    choices = alias.choices if isinstance(alias, AliasChoices) else [alias]
    for choice in choices:
        if isinstance(choice, str):
            keys.add(choice)
        elif isinstance(choice, AliasPath) and isinstance(choice.path[0], str):
            keys.add(choice.path[0])

    config = model.model_config
    if config.get("populate_by_name") or config.get("validate_by_name"):
        keys.add(name)
    return keys


def _capture_annotation(annotation: Any, memo: dict[type, _ModelShape]) -> Optional[_Shape]:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return _capture_model(annotation, memo)

    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin is None or not args:
        return None

    if origin is Annotated:
        return _capture_annotation(args[0], memo)

    if origin is Union or origin is types.UnionType:
        # Optional[Model] resolves; a union of several models is ambiguous
        shapes = [s for s in (_capture_annotation(arg, memo) for arg in args) if s is not None]
        return shapes[0] if len(shapes) == 1 else None

    if isinstance(origin, type) and issubclass(origin, AbcMapping):
        value = _capture_annotation(args[-1], memo)
        return _MappingShape(value) if value is not None else None

    if isinstance(origin, type) and issubclass(origin, (AbcSequence, set, frozenset)):
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            items = tuple(_capture_annotation(arg, memo) for arg in args)
            variadic = False
        else:
            items = (_capture_annotation(args[0], memo),)
            variadic = True
        if all(item is None for item in items):
            return None
        return _SequenceShape(items, variadic)

    return None


def _capture_model(model: type[BaseModel], memo: dict[type, _ModelShape]) -> _ModelShape:
    if model in memo:
        return memo[model]

    # Registered before recursing so self-referencing models terminate
    shape = _ModelShape(model)
    memo[model] = shape

    keys: set[str] = set()
    for name, field in model.model_fields.items():
        accepted = _accepted_keys(model, name, field)
        child = _capture_annotation(field.annotation, memo)
        keys.update(accepted)
        if child is not None:
            for key in accepted:
                shape.children[key] = child
    shape.keys = frozenset(keys)
    return shape


def _collect_unknown(shape: _Shape, value: Any, path: str, found: list[str]) -> None:
    if isinstance(shape, _ModelShape):
        if not isinstance(value, dict):
            return
        for key, item in value.items():
            location = f"{path}.{key}" if path else key
            if key not in shape.keys:
                found.append(location)
                continue
            child = shape.children.get(key)
            if child is not None:
                _collect_unknown(child, item, location, found)

    elif isinstance(shape, _SequenceShape):
        if not isinstance(value, list):
            return
        for index, item in enumerate(value):
            child = shape.item_at(index)
            if child is not None:
                _collect_unknown(child, item, f"{path}[{index}]", found)

    elif isinstance(shape, _MappingShape):
        if not isinstance(value, dict):
            return
        for key, item in value.items():
            _collect_unknown(shape.value, item, f"{path}.{key}", found)


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


class StructuralDescriptor(Generic[ModelT]):
    """
    Expected output shape, captured once from a pydantic model template.

    The template may be the model class or any instance of it. The captured
    layout is read-only; only the strictness flag can change, and only until
    the descriptor is frozen (a RunConfiguration always holds a frozen copy).

    Example:
        >>> class Answer(BaseModel):
        ...     name: str
        >>> descriptor = StructuralDescriptor(Answer)
        >>> descriptor.decode('{"name": "x"}')
        Answer(name='x')
    """

    def __init__(self, template: type[ModelT] | ModelT, strict: bool = True):
        """
        Capture the field layout of ``template``.

        Args:
            template: Pydantic model class or instance
            strict: Reject fields the layout does not declare

        Raises:
            ConfigurationError: If the template is not a pydantic model with named fields
        """
        model = template if isinstance(template, type) else type(template)
        if not issubclass(model, BaseModel):
            raise ConfigurationError(
                f"schema template must be a pydantic model class or instance, got {model.__name__}",
                details={"template_type": model.__name__},
            )
        if issubclass(model, RootModel):
            raise ConfigurationError(
                f"schema template must declare named fields, got root model {model.__name__}",
                details={"template_type": model.__name__},
            )

        self._model: type[ModelT] = model
        self._shape = _capture_model(model, {})
        self._strict = strict
        self._frozen = False

    @classmethod
    def _from_shape(cls, other: "StructuralDescriptor[ModelT]", strict: bool) -> "StructuralDescriptor[ModelT]":
        clone = cls.__new__(cls)
        clone._model = other._model
        clone._shape = other._shape
        clone._strict = strict
        clone._frozen = False
        return clone

    @property
    def model(self) -> type[ModelT]:
        return self._model

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def fields(self) -> Mapping[str, Any]:
        """Top-level field name -> annotated type."""
        return MappingProxyType(
            {name: field.annotation for name, field in self._model.model_fields.items()}
        )

    def set_strict(self, strict: bool) -> "StructuralDescriptor[ModelT]":
        """
        Toggle strict mode for subsequent decodes.

        Raises:
            ConfigurationError: If the descriptor is frozen
        """
        if self._frozen:
            raise ConfigurationError(
                "schema strictness cannot change after the descriptor is frozen",
                details={"model": self._model.__name__},
            )
        self._strict = strict
        return self

    def with_strict(self, strict: bool) -> "StructuralDescriptor[ModelT]":
        """Unfrozen copy sharing the captured layout, with the given strictness."""
        return self._from_shape(self, strict)

    def freeze(self) -> "StructuralDescriptor[ModelT]":
        """Make the descriptor read-only. Idempotent."""
        self._frozen = True
        return self

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema of the model, e.g. for backends with constrained decoding."""
        return self._model.model_json_schema()

    def decode(self, text: str | bytes) -> ModelT:
        """
        Decode ``text`` into a new instance of the captured model.

        Raises:
            StructuralFailure: Malformed JSON, trailing data, non-object value,
                unknown fields (strict mode) or field validation errors
        """
        if isinstance(text, (bytes, bytearray)):
            try:
                text = bytes(text).decode("utf-8")
            except UnicodeDecodeError as e:
                raise StructuralFailure("output is not valid UTF-8", cause=e) from e

        start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
        if start == len(text):
            raise StructuralFailure("empty output is not a JSON value", raw_content=text)

        try:
            value, end = _DECODER.raw_decode(text, start)
        except json.JSONDecodeError as e:
            raise StructuralFailure(
                f"failed to parse JSON: {e.msg} at line {e.lineno} col {e.colno}",
                cause=e,
                raw_content=text,
            ) from e

        if text[end:].strip(_JSON_WHITESPACE):
            raise StructuralFailure("trailing data after JSON value", raw_content=text)

        if not isinstance(value, dict):
            raise StructuralFailure(
                f"expected a JSON object, got {_json_type_name(value)}",
                raw_content=text,
            )

        if self._strict:
            unknown: list[str] = []
            _collect_unknown(self._shape, value, "", unknown)
            if unknown:
                raise StructuralFailure(
                    f"unknown field(s) for {self._model.__name__}: {', '.join(unknown)}",
                    raw_content=text,
                    unknown_fields=unknown,
                )

        try:
            return self._model.model_validate_json(text[start:end], strict=True)
        except PydanticValidationError as e:
            error_messages = [
                f"{'.'.join(str(loc) for loc in err['loc']) or 'root'}: {err['msg']}"
                for err in e.errors()
            ]
            raise StructuralFailure(
                f"output does not match {self._model.__name__}: {e.error_count()} error(s)",
                cause=e,
                raw_content=text,
                validation_errors=error_messages,
            ) from e

    def decode_into(self, text: str | bytes, target: ModelT) -> ModelT:
        """
        Decode ``text`` and copy the field values onto ``target``.

        ``target`` must be an instance of exactly the captured model; a value
        of another layout, even a lookalike or subclass, is refused.

        ``target`` is either fully updated or left untouched: assignments are
        rehearsed on a copy first, so a validate_assignment validator that
        rejects a value cannot leave it half-written.

        Raises:
            TypeError: If target is not an instance of the captured model,
                or the model or any of its fields is frozen
            StructuralFailure: As for decode(), or if an assignment
                validator rejects a decoded value
        """
        if type(target) is not self._model:
            raise TypeError(
                f"destination type mismatch: got {type(target).__name__}, "
                f"want {self._model.__name__}"
            )
        if self._model.model_config.get("frozen"):
            raise TypeError(f"cannot decode into frozen model {self._model.__name__}")
        frozen_fields = [name for name, field in self._model.model_fields.items() if field.frozen]
        if frozen_fields:
            raise TypeError(
                f"cannot decode into {self._model.__name__}: "
                f"frozen field(s) {', '.join(frozen_fields)}"
            )

        decoded = self.decode(text)
        staged = target.model_copy()
        try:
            for name in self._model.model_fields:
                setattr(staged, name, getattr(decoded, name))
        except PydanticValidationError as e:
            raise StructuralFailure(
                f"decoded value rejected on assignment to {self._model.__name__}",
                cause=e,
                raw_content=text if isinstance(text, str) else None,
            ) from e

        # Staged values are already validated; copy them without re-running validators
        target.__dict__.update({name: staged.__dict__[name] for name in self._model.model_fields})
        target.__pydantic_fields_set__.update(self._model.model_fields)
        return target

    def validate(self, text: str | bytes) -> None:
        """
        Check that ``text`` decodes, discarding the value.

        Raises:
            StructuralFailure: As for decode()
        """
        self.decode(text)

    def is_valid(self, text: str | bytes) -> bool:
        try:
            self.decode(text)
        except StructuralFailure as e:
            logger.debug("Structural validation failed", reason=e.message, model=self._model.__name__)
            return False
        return True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model={self._model.__name__}, "
            f"strict={self._strict}, "
            f"frozen={self._frozen})"
        )
