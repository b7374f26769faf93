from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from claw_round.errors import ConfigurationError

PRESET_KEYS = ("seed", "machine", "balls", "round", "inventory")


@dataclass(frozen=True)
class LoadedPreset:
    preset_path: Path
    resolved: Dict[str, Any]
    loaded_files: Tuple[Path, ...]  # every include (depth-first) + preset itself

    @property
    def name(self) -> str:
        return self.preset_path.stem


def _deep_merge(base: Any, override: Any) -> Any:
    """
    Layer `override` on top of `base`.

    Mappings merge key by key; any other value (lists included) replaces
    what was there, so a round preset can swap out a whole spawn pool.
    """
    if not (isinstance(base, dict) and isinstance(override, dict)):
        return list(override) if isinstance(override, list) else override
    out = dict(base)
    for key, value in override.items():
        out[key] = _deep_merge(out[key], value) if key in out else value
    return out


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ConfigurationError(f"Preset file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"YAML root must be a mapping: {path}")
    return data


def _include_paths(data: Dict[str, Any], path: Path) -> List[Path]:
    includes = data.get("include") or []
    if not isinstance(includes, list):
        raise ConfigurationError(f"'include' must be a list in {path}")
    paths = []
    for rel in includes:
        if not isinstance(rel, str):
            raise ConfigurationError(f"include entries must be strings, got {type(rel).__name__} in {path}")
        paths.append((path.parent / rel).expanduser().resolve())
    return paths


def _resolve(path: Path, stack: Tuple[Path, ...], loaded: List[Path]) -> Dict[str, Any]:
    if path in stack:
        chain = " -> ".join(p.name for p in stack + (path,))
        raise ConfigurationError(f"Include cycle: {chain}")
    data = _load_yaml(path)

    merged: Dict[str, Any] = {}
    for inc_path in _include_paths(data, path):
        merged = _deep_merge(merged, _resolve(inc_path, stack + (path,), loaded))

    own = dict(data)
    own.pop("include", None)
    loaded.append(path)
    return _deep_merge(merged, own)


def load_preset(preset_path: str | Path) -> LoadedPreset:
    """
    Load a round preset YAML. Any file may pull in others first:

      include:
        - machines/cabinet.yaml
        - balls/basic.yaml

    Includes are resolved relative to the including file, recursively, and
    merged in order; the including file's own keys go on top.
    """
    preset_path = Path(preset_path).expanduser().resolve()
    loaded: List[Path] = []
    resolved = _resolve(preset_path, (), loaded)

    unknown = sorted(set(resolved) - set(PRESET_KEYS))
    if unknown:
        raise ConfigurationError(f"Unknown preset sections {unknown} in {preset_path}")

    return LoadedPreset(preset_path=preset_path, resolved=resolved, loaded_files=tuple(loaded))
