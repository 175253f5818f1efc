"""
Seed data loader.

Reads an optional YAML or JSON file mapping collection names to document lists:

    categories:
      - {id: c1, name: Books}
    products:
      - {id: p1, name: Dune, price: 12.5, category: c1}
    users:
      - {id: u1, role: admin}

The app reads it at startup when CATALOG_SEED_FILE is set (see catalog_api.config).
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from catalog_api.core.errors import ConfigurationError

_log = logging.getLogger("catalog.store")

SeedData = Dict[str, List[Dict[str, Any]]]


def load_seed_file(path: Path) -> SeedData:
    """
    Load seed documents from a JSON or YAML file.

    A missing or malformed file is a ConfigurationError.
    """
    p = Path(path)
    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read seed file {p}: {exc}") from exc

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Seed file {p} is neither JSON nor YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Seed file {p} must be a mapping, got {type(data).__name__}")

    out: SeedData = {}
    for name, docs in data.items():
        if not isinstance(docs, list) or not all(isinstance(d, dict) for d in docs):
            raise ConfigurationError(f"Seed collection '{name}' must be a list of objects")
        out[str(name)] = docs

    _log.info("Loaded seed file %s collections=%s", p, sorted(out.keys()))
    return out
