"""Pure validation helpers for agent parameter maps."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from personal_ai.core.models import ParameterDefinition


def missing_required(
    definitions: Sequence[ParameterDefinition],
    supplied: Mapping[str, Any],
) -> List[str]:
    """Names of required parameters for which no value was supplied."""
    return [d.name for d in definitions if d.required and d.name not in supplied]


def type_violations(
    definitions: Sequence[ParameterDefinition],
    supplied: Mapping[str, Any],
) -> List[str]:
    """Messages for every supplied value whose runtime type differs from its declaration.

    Values for undeclared names are passed through unchecked.
    """
    violations = []
    for definition in definitions:
        if definition.name not in supplied:
            continue
        if not definition.type.accepts(supplied[definition.name]):
            violations.append(
                f"Parameter '{definition.name}' must be of type {definition.type.value}."
            )
    return violations


def validate_parameters(
    definitions: Sequence[ParameterDefinition],
    supplied: Mapping[str, Any],
) -> List[str]:
    """All violations: missing required parameters first, then type mismatches."""
    violations = [
        f"Parameter '{name}' is required." for name in missing_required(definitions, supplied)
    ]
    violations.extend(type_violations(definitions, supplied))
    return violations


def apply_defaults(
    definitions: Sequence[ParameterDefinition],
    supplied: Mapping[str, Any],
) -> Dict[str, Any]:
    """Copy of ``supplied`` with declared defaults filled in for absent optional parameters."""
    params = dict(supplied)
    for definition in definitions:
        if definition.name not in params and definition.default is not None:
            params[definition.name] = definition.default
    return params


def schema_violations(definitions: Sequence[ParameterDefinition]) -> List[str]:
    """Problems with a declared schema: repeated names and defaults of the wrong type."""
    violations = []
    seen = set()
    for definition in definitions:
        if definition.name in seen:
            violations.append(f"Parameter '{definition.name}' is declared more than once.")
        seen.add(definition.name)
        if definition.default is not None and not definition.type.accepts(definition.default):
            violations.append(
                f"Default for parameter '{definition.name}' must be of type {definition.type.value}."
            )
    return violations
