from __future__ import annotations

from typing import Any

import jsonschema

from templet.errors import make_error


def validate_context(*, instance: Any, schema: dict[str, Any]) -> None:
    try:
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as exc:
        raise make_error(
            error_code="TPL_006",
            error_type="ContextSchemaError",
            message="Data context schema validation failed.",
            details={
                "validator": exc.validator,
                "path": list(exc.absolute_path),
                "schema_path": list(exc.absolute_schema_path),
                "reason": exc.message,
            },
            received_payload=instance,
            recovery_hint="Supply data that matches the schema given with --schema.",
        )
