"""Response formats: free text or schema-constrained JSON.

A JSON response format carries a schema source. Typed sources derive a JSON
Schema from a Python type on demand; raw sources hold a pre-rendered schema
string. Rendering never raises: a schema that cannot be derived degrades to
``"{}"`` so a bad schema never blocks the call itself.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, TypeAdapter

logger = logging.getLogger(__name__)

EMPTY_SCHEMA = "{}"


@dataclass(frozen=True)
class TypedSchema:
    """Schema derived from a Python type (pydantic model, dataclass, TypedDict, ...)."""

    type_: Any

    def render_schema(self) -> str:
        """Return the type's JSON Schema, or ``"{}"`` when it cannot be derived."""
        try:
            if isinstance(self.type_, type) and issubclass(self.type_, BaseModel):
                schema = self.type_.model_json_schema()
            else:
                schema = TypeAdapter(self.type_).json_schema()
            return json.dumps(schema, sort_keys=True, separators=(",", ":"))
        except Exception as exc:
            logger.debug("Schema for %r could not be rendered: %s", self.type_, exc)
            return EMPTY_SCHEMA


@dataclass(frozen=True)
class RawSchema:
    """A pre-rendered schema string, used verbatim."""

    text: str

    def render_schema(self) -> str:
        return self.text


SchemaSource = TypedSchema | RawSchema


@dataclass(frozen=True)
class TextFormat:
    """Plain text output."""

    type: Literal["text"] = "text"


@dataclass(frozen=True)
class JsonFormat:
    """JSON output constrained by a schema."""

    schema: SchemaSource
    #: Used by some providers for additional guidance.
    name: str | None = None
    #: Used by some providers for additional guidance.
    description: str | None = None
    type: Literal["json"] = "json"

    def render_schema(self) -> str:
        return render_schema(self.schema)


ResponseFormat = TextFormat | JsonFormat


def to_schema_source(schema: Any) -> SchemaSource:
    """Coerce a type, schema string, or schema dict into a ``SchemaSource``."""
    if isinstance(schema, (TypedSchema, RawSchema)):
        return schema
    if isinstance(schema, str):
        return RawSchema(schema)
    if isinstance(schema, dict):
        try:
            return RawSchema(json.dumps(schema, sort_keys=True, separators=(",", ":")))
        except (TypeError, ValueError) as exc:
            logger.debug("Schema dict could not be serialized: %s", exc)
            return RawSchema(EMPTY_SCHEMA)
    return TypedSchema(schema)


def render_schema(schema: Any) -> str:
    """Render any accepted schema input to a JSON Schema string.

    Never raises; anything that cannot be rendered yields ``"{}"``.
    """
    try:
        return to_schema_source(schema).render_schema()
    except Exception as exc:
        logger.debug("Schema input %r could not be rendered: %s", schema, exc)
        return EMPTY_SCHEMA


def text() -> TextFormat:
    """Return the plain-text response format."""
    return TextFormat()


def json_format(
    schema: Any,
    *,
    name: str | None = None,
    description: str | None = None,
) -> JsonFormat:
    """Build a JSON response format from a type, schema string, or schema dict.

    Example:
        class Answer(BaseModel):
            value: int

        fmt = json_format(Answer, name="answer")
        fmt.render_schema()
    """
    return JsonFormat(to_schema_source(schema), name=name, description=description)
