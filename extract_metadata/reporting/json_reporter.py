# extract_metadata/reporting/json_reporter.py
"""
JSON reporting utilities (optional).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable

from extract_metadata.analysis.base import FileResult
from extract_metadata.observability import to_dict


def to_json_dict(results: Iterable[FileResult]) -> Dict[str, Any]:
    """Convert results to a JSON-serializable dict with summary counts."""
    files = [to_dict(r) for r in results]
    failed = sum(1 for f in files if f["error_kind"] is not None)
    return {
        "summary": {"total": len(files), "succeeded": len(files) - failed, "failed": failed},
        "files": files,
    }


def write_json(results: Iterable[FileResult], path: str) -> None:
    """Write results to a file as pretty JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_json_dict(results), f, indent=2)
