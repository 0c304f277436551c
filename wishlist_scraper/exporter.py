"""
Record export to JSON / CSV files.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

logger = logging.getLogger(__name__)

_LIST_SEPARATOR = " | "


def to_flat_dict(record: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten list fields for CSV export."""
    flat = {}
    for key, value in record.items():
        if isinstance(value, (list, tuple)):
            flat[key] = _LIST_SEPARATOR.join(str(v) for v in value)
        elif value is None:
            flat[key] = ""
        else:
            flat[key] = value
    return flat


def _fieldnames(rows: Sequence[Dict[str, Any]]) -> List[str]:
    # Enriched rows may carry different keys; keep first-seen order
    names: List[str] = []
    for row in rows:
        for key in row:
            if key not in names:
                names.append(key)
    return names


def export_json(records: Sequence[Dict[str, Any]], filepath: str) -> str:
    """Export records to a JSON file."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump({"records": list(records)}, f, ensure_ascii=False, indent=2)
    logger.info(f"Exported {len(records)} records to {path}")
    return str(path.absolute())


def export_csv(records: Sequence[Dict[str, Any]], filepath: str) -> str:
    """Export records to CSV."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = [to_flat_dict(r) for r in records]
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=_fieldnames(rows), restval="")
        writer.writeheader()
        writer.writerows(rows)
    logger.info(f"Exported {len(rows)} records to {path}")
    return str(path.absolute())
