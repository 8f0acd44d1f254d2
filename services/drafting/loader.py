"""
System Template Loader

Loads, validates, and caches the system templates shipped as YAML files in
seed_templates/. Validates every file on startup and fails fast if any is
invalid, so a broken seed never reaches the template library.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import jsonschema
import yaml

from .exceptions import ConfigurationError, ValidationError
from .substitution import PlaceholderEngine, SYSTEM_VARIABLES, DYNAMIC_SIGNATORY_TOKEN
from .types import CustomField, DocCategory, TemplateRecord, new_id

logger = logging.getLogger(__name__)

# Paths
SEED_DIR = Path(__file__).parent.parent.parent / 'seed_templates'
SCHEMA_DIR = SEED_DIR / 'schema'


def check_labels(name: str, labels: List[str]) -> None:
    """
    Reject duplicate field labels on a template.

    Labels double as placeholder names, so two fields with one label would
    silently share a value.
    """
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        raise ValidationError(f"Duplicate field labels: {duplicates}", template_name=name)


class SystemTemplateLoader:
    """
    Loader for system template definitions.

    Usage:
        # On app startup
        SystemTemplateLoader.load_all()

        # When seeding the database
        for template in SystemTemplateLoader.all():
            ...
    """

    _templates: Dict[str, TemplateRecord] = {}
    _schemas: Dict[str, dict] = {}
    _validated: bool = False

    @classmethod
    def load_all(cls, directory: Optional[Path] = None) -> None:
        """
        Load and validate all seed templates.

        Raises ConfigurationError listing every problem found.
        """
        directory = Path(directory) if directory else SEED_DIR
        cls._templates.clear()
        errors = []

        cls._load_schemas(directory / 'schema')

        if not directory.exists():
            logger.warning(f"Seed template directory not found: {directory}")
            return

        yaml_files = sorted(list(directory.glob('*.yml')) + list(directory.glob('*.yaml')))
        if not yaml_files:
            logger.warning(f"No seed templates found in {directory}")
            return

        for yaml_file in yaml_files:
            try:
                template = cls._load_and_validate(yaml_file)

                if template.name in cls._templates:
                    errors.append(f"{yaml_file.name}: Duplicate template name '{template.name}'")
                    continue

                cls._templates[template.name] = template
                logger.debug(f"Loaded seed template: {template.name}")

            except (ValidationError, yaml.YAMLError) as e:
                errors.append(f"{yaml_file.name}: {e}")

        if errors:
            error_msg = "Seed template errors:\n" + "\n".join(f"  - {e}" for e in errors)
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        cls._validated = True
        logger.info(f"Loaded {len(cls._templates)} seed template(s)")

    @classmethod
    def _load_schemas(cls, schema_dir: Path) -> None:
        cls._schemas.clear()

        if not schema_dir.exists():
            raise ConfigurationError(f"Schema directory not found: {schema_dir}")

        for schema_file in schema_dir.glob('v*.json'):
            cls._schemas[schema_file.stem] = json.loads(schema_file.read_text(encoding='utf-8'))
            logger.debug(f"Loaded schema: {schema_file.stem}")

    @classmethod
    def _load_and_validate(cls, path: Path) -> TemplateRecord:
        raw = yaml.safe_load(path.read_text(encoding='utf-8'))
        if not raw:
            raise ValidationError("Empty template definition")

        cls.validate(raw)
        return cls.to_record(raw)

    @classmethod
    def validate(cls, raw: dict) -> None:
        """Schema validation followed by label and placeholder checks."""
        version = f"v{raw.get('schema_version', '1.0')}"
        schema = cls._schemas.get(version)
        if schema is None:
            raise ValidationError(f"Unknown schema version: {version}")

        try:
            jsonschema.validate(raw, schema)
        except jsonschema.ValidationError as e:
            raise ValidationError(f"Schema validation failed: {e.message}", template_name=raw.get('name'))

        labels = [f['label'] for f in raw.get('fields', [])]
        check_labels(raw['name'], labels)

        # Every placeholder must be a field, a system variable or the signatory boxes
        known = set(labels) | set(SYSTEM_VARIABLES) | {DYNAMIC_SIGNATORY_TOKEN}
        unknown = [t for t in PlaceholderEngine.extract_placeholders(raw['draft_text']) if t not in known]
        if unknown:
            raise ValidationError(f"Unknown placeholders: {unknown}", template_name=raw['name'])

    @staticmethod
    def to_record(raw: dict) -> TemplateRecord:
        return TemplateRecord(
            id=new_id(),
            name=raw['name'],
            category=DocCategory(raw['category']),
            draft_text=raw['draft_text'].strip(),
            fields=[CustomField.from_dict(f) for f in raw.get('fields', [])],
            user_id=None,
            is_system_template=True,
            is_active=raw.get('is_active', True),
        )

    @classmethod
    def get(cls, name: str) -> Optional[TemplateRecord]:
        return cls._templates.get(name)

    @classmethod
    def all(cls) -> List[TemplateRecord]:
        return list(cls._templates.values())

    @classmethod
    def is_loaded(cls) -> bool:
        return cls._validated

    @classmethod
    def clear(cls) -> None:
        """Clear all cached templates. Mainly for testing."""
        cls._templates.clear()
        cls._validated = False
