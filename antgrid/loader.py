"""
YAML config loader with schema validation.

Loads grid configuration from a data pack and validates it against
JSON schemas when they are available.
"""

import yaml
import json
from pathlib import Path
from typing import Optional
import jsonschema

from .data_types import GridConfig


class ConfigLoadError(Exception):
    """Raised when config loading or validation fails"""
    pass


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"YAML parse error in {file_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Expected a mapping at top level of {file_path}")
    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        # Schema validation optional
        return

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise ConfigLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON schema {schema_path}: {e}")


def load_grid_config(file_path: Path, schema_dir: Optional[Path] = None) -> GridConfig:
    """Load grid configuration from YAML"""
    file_path = Path(file_path)
    data = load_yaml(file_path)

    # Validate if schema available
    if schema_dir:
        schema_path = Path(schema_dir) / "grid.schema.json"
        validate_against_schema(data, schema_path, file_path)

    return parse_grid_config(data, file_path)


def parse_grid_config(data: dict, source: Path) -> GridConfig:
    """Flatten the grid and lifecycle sections into a GridConfig"""
    if 'grid' not in data:
        raise ConfigLoadError(f"Missing 'grid' section in {source}")

    if not isinstance(data['grid'], dict):
        raise ConfigLoadError(f"'grid' must be a mapping in {source}")
    lifecycle = data.get('lifecycle') or {}
    if not isinstance(lifecycle, dict):
        raise ConfigLoadError(f"'lifecycle' must be a mapping in {source}")

    grid_data = dict(data['grid'])
    grid_data.update(lifecycle)

    try:
        return GridConfig(**grid_data)
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"Invalid grid config in {source}: {e}")


def load_all_data(data_root: Path, schema_dir: Optional[Path] = None) -> dict:
    """Load all simulation data from data directory

    Returns dict with keys: grid, name
    """
    data_root = Path(data_root)
    if schema_dir is None and (data_root / "schemas").exists():
        schema_dir = data_root / "schemas"

    grid_file = data_root / "grid" / "default.yaml"
    data = load_yaml(grid_file)
    if schema_dir:
        validate_against_schema(data, Path(schema_dir) / "grid.schema.json", grid_file)

    return {
        'grid': parse_grid_config(data, grid_file),
        'name': data.get('name', grid_file.stem)
    }
