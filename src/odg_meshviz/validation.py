"""Schema validation report for registry records.

The engine treats validation as a black box behind ``SchemaValidator``; the
default implementation checks records against the bundled JSON Schemas with
``jsonschema``. Invalid records are still visualised, they only show up in
the report.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from importlib.resources import files
from typing import Any, Protocol

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as JsonSchemaError

from odg_meshviz.classifier import record_label
from odg_meshviz.enums import EntityKind
from odg_meshviz.loader import LineIndex
from odg_meshviz.models import ClassifiedRecord, ValidationIssue

logger = logging.getLogger(__name__)

SCHEMA_FILES = {
    EntityKind.DATA_PRODUCT: "data_product.schema.json",
    EntityKind.DATA_CONTRACT: "data_contract.schema.json",
    EntityKind.DATA_USAGE_AGREEMENT: "data_usage_agreement.schema.json",
}


@dataclass(frozen=True)
class SchemaError:
    instance_path: str
    message: str
    keyword: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ValidationOutcome:
    valid: bool
    errors: list[SchemaError] = field(default_factory=list)


class SchemaValidator(Protocol):
    """Validates one classified record against the schema of its kind."""

    def validate(self, record: Any, kind: EntityKind) -> ValidationOutcome: ...


def to_pointer(path: Iterable[Any]) -> str:
    """JSON pointer of an instance path (``""`` for the root)."""
    parts = [str(part).replace("~", "~0").replace("/", "~1") for part in path]
    return "".join(f"/{part}" for part in parts)


def from_pointer(pointer: str) -> list[str]:
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer.split("/") if part]


def _params(error: JsonSchemaError) -> dict[str, Any]:
    if error.validator == "additionalProperties" and isinstance(error.instance, dict):
        known = set(error.schema.get("properties", {}))
        extra = sorted(key for key in error.instance if key not in known)
        return {"additionalProperty": extra[0]} if extra else {}
    if error.validator == "required" and isinstance(error.instance, dict):
        return {"missingProperties": [key for key in error.validator_value if key not in error.instance]}
    return {str(error.validator): error.validator_value}


class JsonSchemaValidator:
    """Draft 7 validator over the bundled DataProduct/DataContract/DUA schemas."""

    def __init__(self, schemas: dict[EntityKind, dict[str, Any]] | None = None):
        if schemas is None:
            schemas = {kind: load_bundled_schema(kind) for kind in SCHEMA_FILES}
        self._validators = {
            kind: Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
            for kind, schema in schemas.items()
        }

    def validate(self, record: Any, kind: EntityKind) -> ValidationOutcome:
        validator = self._validators.get(kind)
        if validator is None:
            return ValidationOutcome(valid=True)

        raw_errors = sorted(
            validator.iter_errors(record),
            key=lambda e: ([str(p) for p in e.absolute_path], str(e.validator), e.message),
        )
        errors = [
            SchemaError(
                instance_path=to_pointer(error.absolute_path),
                message=error.message,
                keyword=str(error.validator),
                params=_params(error),
            )
            for error in raw_errors
        ]
        return ValidationOutcome(valid=not errors, errors=errors)


def load_bundled_schema(kind: EntityKind) -> dict[str, Any]:
    """Load the JSON Schema shipped with the package for ``kind``."""
    resource = files("odg_meshviz").joinpath("schemas", SCHEMA_FILES[kind])
    return json.loads(resource.read_text(encoding="utf-8"))


_default_validator: JsonSchemaValidator | None = None


def get_default_validator() -> JsonSchemaValidator:
    """Get or create the validator over the bundled schemas.

    Returns:
        JsonSchemaValidator instance
    """
    global _default_validator
    if _default_validator is None:
        _default_validator = JsonSchemaValidator()
    return _default_validator


def validate_registry(
    classified: Iterable[ClassifiedRecord],
    raw_text: str | None = None,
    validator: SchemaValidator | None = None,
) -> list[ValidationIssue]:
    """Validate classified records and build the validation report.

    Args:
        classified: Known records (Unknown ones are skipped by the classifier).
        raw_text: Original document text; enables 1-based line numbers.
        validator: Schema validator; defaults to the bundled JSON Schemas.

    Returns:
        One issue per schema error, in registry order.
    """
    validator = validator or get_default_validator()
    lines = LineIndex.from_text(raw_text)
    issues: list[ValidationIssue] = []

    for item in classified:
        if item.kind is EntityKind.UNKNOWN:
            continue
        outcome = validator.validate(item.record, item.kind)
        if outcome.valid:
            continue

        label = record_label(item.record, item.index)
        for error in outcome.errors:
            message = error.message
            if error.keyword == "additionalProperties" and error.params.get("additionalProperty"):
                message += f": '{error.params['additionalProperty']}'"
            issues.append(
                ValidationIssue(
                    index=item.index,
                    id=label,
                    type=item.kind,
                    path=error.instance_path,
                    message=message,
                    params=error.params,
                    line=lines.line_for(item.index, from_pointer(error.instance_path)),
                )
            )

    if issues:
        logger.info(f"Registry validation found {len(issues)} issue(s)")
    return issues
