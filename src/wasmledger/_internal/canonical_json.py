"""Canonical JSON output for written validation reports.

Two runs over the same registry and chain state write byte-identical
reports apart from ``generated_at``.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

REPORT_FILENAME = "validation_report.json"


def canonical_dumps(obj: Any) -> str:
    """
    Serialize with sorted keys, compact separators and raw UTF-8.

    List order is preserved: discrepancies and recommendations are already
    in report order.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def write_report(model: BaseModel, output_dir: Path) -> Path:
    """Write ``model`` as canonical JSON into ``output_dir`` and return the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / REPORT_FILENAME
    target.write_text(canonical_dumps(model.model_dump(mode="json")) + "\n", encoding="utf-8")
    return target
