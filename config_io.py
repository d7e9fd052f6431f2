from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = (
            f"\nERROR: Your config is not valid JSON.\n"
            f"File: {path}\n"
            f"Line {e.lineno}, Col {e.colno}\n"
            f"{e.msg}\n"
        )
        raise SystemExit(msg)


def load_json_config(path: Path) -> Dict[str, Any]:
    """Load a generator config file or raise a helpful error.

    ``"parts"`` may be a path to a separate JSON catalog (relative to the
    config file) holding either a list of parts or ``{"parts": [...]}``.

    Args:
        path: Path to the JSON configuration file.

    Returns:
        Parsed config with the part catalog inlined.

    Raises:
        FileNotFoundError: If the config or a referenced catalog does not exist.
        SystemExit: If JSON is invalid or the root is not an object.
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise SystemExit(f"\nERROR: Config root must be an object.\nFile: {path}\n")

    parts_ref = data.get("parts")
    if isinstance(parts_ref, str):
        catalog_path = (path.parent / parts_ref).resolve()
        catalog = _read_json(catalog_path)
        if isinstance(catalog, dict):
            catalog = catalog.get("parts", [])
        logger.debug("loaded part catalog %s", catalog_path)
        data = dict(data, parts=catalog)
    return data
