"""
JSON-safe conversion for engine outputs.

Dates become ISO-8601 strings, enums their values, and indicator points
carry their ``kind`` tag so a consumer can tell the variants apart.
"""
import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd


def to_dict(value: Any) -> Any:
    """Recursively convert a dataclass / container into plain JSON-safe Python."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out = {}
        kind = getattr(type(value), "kind", None)
        if isinstance(kind, str):
            out["kind"] = kind
        for f in dataclasses.fields(value):
            out[f.name] = to_dict(getattr(value, f.name))
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dict(v) for v in value]
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def to_json(value: Any, indent: int = None) -> str:
    return json.dumps(to_dict(value), indent=indent, sort_keys=True)
