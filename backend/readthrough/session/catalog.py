from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .models import Script, ScriptLine

logger = logging.getLogger(__name__)

TIMING_KEYS = ("karaokeStep", "baseDelay", "punctuationDelay")


class ScriptCatalog:
    """Read-only index of the scripts available to rooms."""

    def __init__(self, scripts: Iterable[Script] = ()) -> None:
        self._scripts: dict[str, Script] = {}
        for script in scripts:
            if script.id in self._scripts:
                logger.warning("Duplicate script id %r, keeping the first one", script.id)
                continue
            self._scripts[script.id] = script

    def __len__(self) -> int:
        return len(self._scripts)

    def list_all(self) -> list[Script]:
        return list(self._scripts.values())

    def find(self, script_id: str) -> Script | None:
        if not script_id:
            return None
        script = self._scripts.get(script_id)
        if script is not None:
            return script
        for s in self._scripts.values():
            if s.name == script_id:
                return s
        return None

    def to_payload(self) -> list[dict]:
        return [s.to_payload() for s in self._scripts.values()]


def _valid_timing(key: str, value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if key == "karaokeStep":
        return isinstance(value, int) and value >= 1
    return value >= 0


def parse_script(raw: Any, group_type: str = "") -> Script:
    if not isinstance(raw, dict):
        raise ValueError("script entry must be an object")

    name = str(raw.get("name") or "").strip()
    script_id = str(raw.get("id") or name).strip()
    if not script_id:
        raise ValueError("script entry needs an id or a name")

    characters_raw = raw.get("characters") or []
    if not isinstance(characters_raw, list) or not all(isinstance(c, str) for c in characters_raw):
        raise ValueError(f"script {script_id!r}: characters must be a list of strings")
    # Keep order, drop duplicates.
    characters = tuple(dict.fromkeys(characters_raw))

    lines_raw = raw.get("lines") or []
    if not isinstance(lines_raw, list):
        raise ValueError(f"script {script_id!r}: lines must be a list")

    lines = []
    for item in lines_raw:
        if not isinstance(item, dict) or not isinstance(item.get("text", ""), str):
            raise ValueError(f"script {script_id!r}: malformed line {item!r}")
        lines.append(ScriptLine(character=str(item.get("character", "")), text=item.get("text", "")))

    overrides = {}
    for key in TIMING_KEYS:
        if key not in raw:
            continue
        if _valid_timing(key, raw[key]):
            overrides[key] = raw[key]
        else:
            logger.warning("Script %r: ignoring invalid %s %r", script_id, key, raw[key])

    return Script(
        id=script_id,
        name=name or script_id,
        type=str(raw.get("type") or group_type or ""),
        characters=characters,
        lines=tuple(lines),
        timing_overrides=overrides,
    )


def load_catalog(directory: str | Path) -> ScriptCatalog:
    scripts_dir = Path(directory)
    if not scripts_dir.is_dir():
        logger.warning("Scripts directory %s does not exist, catalog is empty", scripts_dir)
        return ScriptCatalog()

    scripts: list[Script] = []
    for path in sorted(scripts_dir.glob("*.json")):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable script file %s: %s", path.name, exc)
            continue

        if not isinstance(data, dict) or not isinstance(data.get("scripts"), list):
            logger.warning("Skipping script file %s: no 'scripts' list", path.name)
            continue

        group_type = str(data.get("type") or "")
        for entry in data["scripts"]:
            try:
                scripts.append(parse_script(entry, group_type=group_type))
            except ValueError as exc:
                logger.warning("Skipping script in %s: %s", path.name, exc)

    catalog = ScriptCatalog(scripts)
    logger.info("Loaded %d scripts from %s", len(catalog), scripts_dir)
    return catalog
