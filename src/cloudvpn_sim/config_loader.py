from __future__ import annotations

import hashlib
import json
import os
import re
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from . import schema
from .config_template import DEFAULT_SETTINGS_FILENAME, render_template


@dataclass
class DescriptorFile:
    path: Path
    records: t.List[dict] = field(default_factory=list)

    def summary(self) -> str:
        h = hashlib.sha256(self.path.read_bytes()).hexdigest()[:12]
        ids = ", ".join(r.get("VpnConnectionId") or r.get("vpn_connection_id") or "?" for r in self.records)
        return f"{self.path.name} sha={h} connections: {ids}"


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z0-9_]+)\}")


def _expand_env_value(val: str, missing: t.Set[str]) -> str:
    """Expand ${VAR} placeholders in a single string.

    Multiple placeholders per string are supported. A missing or empty
    variable is added to ``missing`` and its placeholder is left in place.
    """
    def repl(match: re.Match[str]) -> str:
        name = match.group(1)
        env_val = os.environ.get(name)
        if env_val is None or env_val == "":
            missing.add(name)
            return match.group(0)
        return env_val

    return _ENV_PATTERN.sub(repl, val)


def _expand_env(obj: t.Any, missing: t.Set[str]) -> t.Any:
    """Recursively expand ${VAR} placeholders in a loaded YAML structure."""
    if isinstance(obj, dict):
        return {k: _expand_env(v, missing) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env(v, missing) for v in obj]
    if isinstance(obj, str):
        return _expand_env_value(obj, missing)
    return obj


def _format_validation_error(e: ValidationError) -> t.List[str]:
    errors = []
    for err in e.errors():
        loc = " -> ".join(str(x) for x in err["loc"])
        errors.append(f"  • {loc}: {err['msg']}")
    return errors


def load_settings(path: t.Optional[Path]) -> schema.SimulatorSettings:
    """Load simulator settings; ``None`` means built-in defaults.

    Raises:
        ValueError: missing environment variables or schema violations
    """
    if path is None:
        return schema.SimulatorSettings()
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings file {path} must contain a YAML mapping")

    missing: t.Set[str] = set()
    expanded = _expand_env(raw, missing)
    if missing:
        # Surface all missing vars at once to help the user export them.
        raise ValueError(
            "Missing environment variables for placeholders: "
            + ", ".join(sorted(missing))
        )

    try:
        return schema.validate_settings(expanded)
    except ValidationError as e:
        raise ValueError(
            "Settings validation failed:\n" + "\n".join(_format_validation_error(e))
        )


def write_settings_template(directory: Path, overwrite: bool = False) -> Path:
    """Write the commented settings template; refuses to clobber an existing file."""
    target = directory / DEFAULT_SETTINGS_FILENAME
    if target.exists() and not overwrite:
        raise FileExistsError(f"Settings file already exists: {target}")
    target.write_text(render_template(), encoding="utf-8")
    return target


def load_descriptor_file(path: Path) -> DescriptorFile:
    """Read provider VPN connection records from JSON or YAML.

    Accepts ``{"VpnConnections": [...]}`` as printed by
    ``aws ec2 describe-vpn-connections``, a bare list of records, or a single
    record mapping. Records are returned unvalidated.
    """
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f) if path.suffix.lower() == ".json" else yaml.safe_load(f)
    if isinstance(raw, dict) and "VpnConnections" in raw:
        raw = raw["VpnConnections"]
    elif isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list) or not all(isinstance(r, dict) for r in raw):
        raise ValueError(f"{path}: expected VPN connection record(s)")
    return DescriptorFile(path=path, records=list(raw))
