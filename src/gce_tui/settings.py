from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path("gce-tui.yaml")
PROJECT_ENV_VAR = "GCP_PROJECT_ID"


@dataclass(slots=True, frozen=True)
class Settings:
    project: str | None = None
    tunnel_through_iap: bool = False
    internal_ip: bool = False
    extra_args: tuple[str, ...] = ()

    def ssh_args(self) -> tuple[str, ...]:
        args: list[str] = []
        if self.tunnel_through_iap:
            args.append("--tunnel-through-iap")
        if self.internal_ip:
            args.append("--internal-ip")
        args.extend(self.extra_args)
        return tuple(args)


DEFAULT_SETTINGS = Settings()


def load_settings(config_path: str | Path | None = None) -> Settings:
    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH
    if not path.is_file():
        return DEFAULT_SETTINGS

    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}

    ssh = _safe_mapping_get(loaded, "ssh", {})
    return Settings(
        project=_coerce_str(_safe_mapping_get(loaded, "project")),
        tunnel_through_iap=_coerce_bool(
            _safe_mapping_get(ssh, "tunnel_through_iap"),
            fallback=DEFAULT_SETTINGS.tunnel_through_iap,
        ),
        internal_ip=_coerce_bool(
            _safe_mapping_get(ssh, "internal_ip"),
            fallback=DEFAULT_SETTINGS.internal_ip,
        ),
        extra_args=_parse_args_list(_safe_mapping_get(ssh, "extra_args")),
    )


def resolve_project_id(
    cli_value: str | None,
    settings: Settings,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    environ = os.environ if environ is None else environ
    for candidate in (cli_value, environ.get(PROJECT_ENV_VAR), settings.project):
        value = _coerce_str(candidate)
        if value:
            return value
    return None


def _parse_args_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    try:
        iterator = iter(value)
    except TypeError:
        return ()
    return tuple(str(item).strip() for item in iterator if item is not None and str(item).strip())


def _coerce_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "on", "1"}:
            return True
        if lowered in {"false", "no", "off", "0"}:
            return False
    return fallback


def _safe_mapping_get(mapping: Any, key: str, fallback: Any = None) -> Any:
    try:
        return mapping[key]
    except (KeyError, TypeError):
        return fallback
