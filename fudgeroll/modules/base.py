"""
Shared definitions for Fudge Roll modules.

- SchemaDefinition: JSON Schema backed validation for incoming JSON
  (character sheets, fudge requests)
- RollTypeDefinition: a roll kind the system knows how to produce
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import jsonschema


class SchemaDefinition(ABC):
    """
    A named JSON document type with validation.

    Subclasses provide the schema; ``validate`` raises
    ``jsonschema.ValidationError`` on bad data, ``validation_errors`` collects
    readable messages instead.

    Attributes:
        type: Unique name for this document type
        description: Human-readable description
        schema_version: Version of the schema (semver)
    """

    type: str
    description: str
    schema_version: str = "1.0.0"

    @abstractmethod
    def get_schema(self) -> Dict[str, Any]:
        """Return JSON Schema for validation."""
        pass

    def validate(self, data: Dict[str, Any]) -> bool:
        """
        Validate data against the schema.

        Raises:
            jsonschema.ValidationError: If validation fails
        """
        jsonschema.validate(data, self.get_schema())
        return True

    def validation_errors(self, data: Any) -> list:
        """Return every validation problem as ``"path: message"`` strings."""
        validator = jsonschema.Draft7Validator(self.get_schema())
        errors = []
        for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
            path = '.'.join(str(p) for p in error.absolute_path) or '<root>'
            errors.append(f"{path}: {error.message}")
        return errors


class RollTypeDefinition:
    """
    Defines a valid roll type.

    Attributes:
        type: Unique identifier for this roll type (e.g., 'attack', 'skill_check')
        description: Human-readable description
        module: Which module provides this type
        category: Optional grouping (e.g., 'combat', 'skill', 'saving_throw')
        selection: Request field naming what is rolled ('skill', 'ability', 'item_id')

    Examples:
        RollTypeDefinition('attack', 'Attack roll to hit a target', 'rng', 'combat', 'item_id')
    """

    def __init__(self, type: str, description: str, module: str,
                 category: Optional[str] = None, selection: Optional[str] = None):
        self.type = type
        self.description = description
        self.module = module
        self.category = category or 'general'
        self.selection = selection

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'description': self.description,
            'module': self.module,
            'category': self.category,
            'selection': self.selection,
        }

    def __repr__(self) -> str:
        return f"RollTypeDefinition({self.type!r}, category={self.category!r})"
