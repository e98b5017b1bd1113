from pathlib import Path

import yaml
from pydantic import ValidationError

from service_manual.rules.models import Rules


def load_rules(path: Path) -> Rules:
    """
    Load ``rules.yaml`` into validated Rules.

    Raises FileNotFoundError if the file is missing and ValueError if it is
    not a YAML mapping or does not match the schema.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Rules file must hold a mapping of sections, got {type(data).__name__}")

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e
