"""
Tool definitions for AgentKit.

A tool is a named callable plus a parameter schema.  The schema is a mapping from parameter name
to a *tagged* entry:

* :class:`TypedValidator` wraps a Python type (validated through pydantic) and knows how to render
  itself as a JSON-Schema fragment.
* :class:`RawFragment` holds a JSON-Schema fragment that is already provider-compatible and is
  passed through verbatim.

The :func:`tool` factory normalizes plain dictionaries and bare types into those tags, so the
schema adapter only has to dispatch on the tag:

    @tool(name="add", description="Add two integers", schema={"a": int, "b": int})
    def add(a: int, b: int) -> int:
        return a + b
"""

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Type,
    Union,
)

from pydantic import (
    BaseModel,
    PydanticInvalidForJsonSchema,
    PydanticSchemaGenerationError,
    PydanticUserError,
    TypeAdapter,
)

from agentkit.errors import SchemaConversionError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tagged schema entries
# ---------------------------------------------------------------------------
class TypedValidator:
    """A parameter backed by a Python type annotation.

    A parameter is required unless it is created with ``optional=True``; an annotation such as
    ``int | None`` only allows ``null`` as a value and does not make the parameter optional.
    """

    def __init__(self, annotation: Any, *, optional: bool = False, description: str | None = None):
        self.annotation = annotation
        self.optional = optional
        self.description = description
        try:
            self._adapter: TypeAdapter = TypeAdapter(annotation)
        except (PydanticSchemaGenerationError, PydanticUserError, TypeError) as exc:
            raise SchemaConversionError(
                f"Cannot build a validator for {annotation!r}: {exc}"
            ) from exc

    def validate(self, value: Any) -> Any:
        """Validate and coerce *value*; raises :class:`pydantic.ValidationError`."""
        return self._adapter.validate_python(value)

    def json_schema(self) -> Dict[str, Any]:
        """Render the annotation as a self-contained JSON-Schema fragment."""
        try:
            fragment = _inline_refs(self._adapter.json_schema())
        except (PydanticInvalidForJsonSchema, PydanticUserError) as exc:
            raise SchemaConversionError(
                f"Cannot convert {self.annotation!r} to JSON Schema: {exc}"
            ) from exc
        fragment.pop("$schema", None)
        fragment.pop("title", None)
        if self.description:
            fragment["description"] = self.description
        return fragment

    def __repr__(self) -> str:
        return f"TypedValidator({self.annotation!r}, optional={self.optional})"


class RawFragment:
    """A JSON-Schema fragment used exactly as given."""

    def __init__(self, value: Mapping[str, Any]):
        self.value = dict(value)

    def __repr__(self) -> str:
        return f"RawFragment({self.value!r})"


SchemaEntry = Union[TypedValidator, RawFragment]
ToolSchema = Union[Mapping[str, SchemaEntry], RawFragment, Type[BaseModel]]


def param(annotation: Any, *, optional: bool = False, description: str | None = None) -> TypedValidator:
    """Shorthand for declaring a typed parameter."""
    return TypedValidator(annotation, optional=optional, description=description)


def optional(annotation: Any, *, description: str | None = None) -> TypedValidator:
    """Declare a parameter the model may leave out."""
    return TypedValidator(annotation, optional=True, description=description)


def _inline_refs(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Replace local ``$ref`` pointers with the referenced definitions."""
    defs = schema.pop("$defs", {})

    def resolve(node: Any, active: frozenset) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if isinstance(ref, str) and ref.startswith("#/$defs/"):
                name = ref[len("#/$defs/") :]
                if name in active:
                    raise SchemaConversionError(f"Recursive schema '{name}' cannot be inlined")
                target = dict(defs[name])
                target.pop("title", None)
                siblings = {k: v for k, v in node.items() if k != "$ref"}
                return resolve({**target, **siblings}, active | {name})
            return {key: resolve(value, active) for key, value in node.items()}
        if isinstance(node, list):
            return [resolve(item, active) for item in node]
        return node

    return resolve(schema, frozenset())


# ---------------------------------------------------------------------------
# Schema adapter
# ---------------------------------------------------------------------------
def convert_schema_to_json_schema(schema: ToolSchema) -> Dict[str, Any]:
    """
    Convert a tool schema into the ``parameters`` object of a function declaration.

    Parameters
    ----------
    schema:
        A mapping of parameter name to :class:`TypedValidator` / :class:`RawFragment`, a whole
        :class:`RawFragment`, or a pydantic model class describing every parameter.

    Returns
    -------
    dict
        ``{"type": "object", "properties": {...}, "required": [...]}``.  ``required`` is left out
        when no parameter is required.  An empty mapping is returned unchanged.

    Raises
    ------
    SchemaConversionError
        If a typed parameter cannot be rendered as JSON Schema.
    """
    if isinstance(schema, RawFragment):
        return dict(schema.value)
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        try:
            model_schema = _inline_refs(schema.model_json_schema())
        except (PydanticInvalidForJsonSchema, PydanticUserError) as exc:
            raise SchemaConversionError(f"Cannot convert {schema.__name__}: {exc}") from exc
        model_schema.pop("title", None)
        return model_schema

    if len(schema) == 0:
        return schema  # type: ignore[return-value]

    properties: Dict[str, Any] = {}
    required: List[str] = []
    for key, entry in schema.items():
        if isinstance(entry, TypedValidator):
            properties[key] = entry.json_schema()
            if not entry.optional:
                required.append(key)
        elif isinstance(entry, RawFragment):
            properties[key] = entry.value
        else:
            raise SchemaConversionError(
                f"Parameter '{key}' has an untagged schema entry: {entry!r}"
            )

    result: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        result["required"] = required
    return result


def _normalize_entry(key: str, entry: Any) -> SchemaEntry:
    if isinstance(entry, (TypedValidator, RawFragment)):
        return entry
    if isinstance(entry, Mapping):
        return RawFragment(entry)
    logger.debug("Treating parameter '%s' as a typed validator for %r", key, entry)
    return TypedValidator(entry)


def _normalize_schema(schema: Any) -> ToolSchema:
    if schema is None:
        return {}
    if isinstance(schema, RawFragment):
        return schema
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema
    if not isinstance(schema, Mapping):
        raise SchemaConversionError(f"Unsupported tool schema: {schema!r}")
    return {key: _normalize_entry(key, entry) for key, entry in schema.items()}


# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Tool:
    """A named, schema-described callable.  Build instances with :func:`tool`."""

    name: str
    description: str
    schema: ToolSchema
    execute: Callable[..., Any]

    def parameters(self) -> Dict[str, Any]:
        """JSON Schema of the parameters, as sent to the provider."""
        return convert_schema_to_json_schema(self.schema)

    def parse_arguments(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate decoded arguments against the typed parameters.

        Raises ``ValueError`` (``pydantic.ValidationError`` is one) on a missing required parameter
        or a value that fails validation.  Raw fragments are not validated.
        """
        if isinstance(self.schema, type) and issubclass(self.schema, BaseModel):
            return dict(self.schema.model_validate(args))
        if isinstance(self.schema, RawFragment):
            return args

        parsed = dict(args)
        for key, entry in self.schema.items():
            if not isinstance(entry, TypedValidator):
                continue
            if key not in args:
                if not entry.optional:
                    raise ValueError(f"missing required parameter '{key}'")
                continue
            parsed[key] = entry.validate(args[key])
        return parsed


def to_openai_tool(t: Tool) -> Dict[str, Any]:
    """Convert a tool to the OpenAI ``tools`` entry format."""
    return {
        "type": "function",
        "function": {
            "name": t.name,
            "description": t.description,
            "parameters": t.parameters(),
        },
    }


def tool(
    name: str | None = None,
    description: str | None = None,
    schema: Any = None,
    execute: Callable[..., Any] | None = None,
) -> Any:
    """
    Create a :class:`Tool`.

    Can be called directly with *execute*, or used as a decorator, in which case the function name
    and docstring fill in a missing *name* / *description*.

    Raises
    ------
    SchemaConversionError
        If the schema is malformed.  The conversion runs here so a bad schema fails at
        construction instead of mid-conversation.
    """
    normalized = _normalize_schema(schema)

    def build(fn: Callable[..., Any]) -> Tool:
        built = Tool(
            name=name or fn.__name__,
            description=description or (fn.__doc__ or "").strip(),
            schema=normalized,
            execute=fn,
        )
        built.parameters()
        return built

    if execute is not None:
        return build(execute)
    return build


__all__ = [
    "RawFragment",
    "SchemaEntry",
    "Tool",
    "ToolSchema",
    "TypedValidator",
    "convert_schema_to_json_schema",
    "optional",
    "param",
    "to_openai_tool",
    "tool",
]
