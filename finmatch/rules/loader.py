"""YAML rule definition loader.

A file holds either a single rule mapping or a list of them::

    - name: Coffee shops
      order_index: 0
      labels_to_apply: [label-coffee]
      conditions:
        - {field: description, operator: contains, value: coffee}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .models import Rule


def parse_rules(content: Any) -> list[Rule]:
    """Validate parsed YAML content into rules."""
    if content is None:
        return []
    items = content if isinstance(content, list) else [content]
    return [Rule.model_validate(item) for item in items]


def load_rules_file(path: str | Path) -> list[Rule]:
    """Load rules from a single YAML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rule file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f)

    return parse_rules(content)
