"""Helpers for loading reader configuration documents."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import BackendError, ErrorCode
from .models import ConfigDocument, ReaderSettings

ALLOWED_ERROR_POLICIES = {"fail-fast", "strict", "replace"}
ALLOWED_COMPRESSION = {"auto", "gzip", "none"}


def load_reader_settings(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReaderSettings:
    """Load configuration JSON (or defaults), validate it, and apply overrides."""

    return load_config_document(config_path=config_path, overrides=overrides).reader


def load_config_document(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ConfigDocument:
    if config_path is None:
        raw: Dict[str, Any] = {"version": 1, "reader": {}}
        source = "<defaults>"
    else:
        raw = _read_config_json(config_path)
        source = str(config_path)

    version = _require_positive_int(raw.get("version"), "version", source)
    reader_section = raw.get("reader", {})
    if not isinstance(reader_section, Mapping):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'reader' section must be an object in {source}")

    overrides = {key: value for key, value in (overrides or {}).items() if value is not None}
    merged = {**reader_section, **overrides}
    return ConfigDocument(
        version=version,
        reader=_build_reader_settings(merged, source),
        source=source,
    )


def error_mode_from_policy(policy: str) -> str:
    """Translate human-friendly error policy into Python's encoding error handler."""

    return "strict" if policy.lower() in {"fail-fast", "strict"} else "replace"


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' must contain an object")
    return payload


def _build_reader_settings(data: Mapping[str, Any], source: str) -> ReaderSettings:
    defaults = ReaderSettings()
    encoding = _optional_string(data.get("encoding", defaults.encoding), "reader.encoding", source)
    error_policy = _normalize_error_policy(data.get("error_policy", defaults.error_policy), source)
    compression = _require_string(data.get("compression", defaults.compression), "reader.compression", source).lower()
    if compression not in ALLOWED_COMPRESSION:
        allowed = ", ".join(sorted(ALLOWED_COMPRESSION))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported compression '{compression}' in {source}. Allowed: {allowed}",
        )
    chunk_lines = _require_positive_int(data.get("chunk_lines", defaults.chunk_lines), "reader.chunk_lines", source)
    return ReaderSettings(
        encoding=encoding,
        error_policy=error_policy,
        compression=compression,  # type: ignore[arg-type]
        chunk_lines=chunk_lines,
    )


def _normalize_error_policy(value: Any, source: str) -> str:
    policy = _require_string(value, "reader.error_policy", source).lower()
    if policy not in ALLOWED_ERROR_POLICIES:
        allowed = ", ".join(sorted(ALLOWED_ERROR_POLICIES))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported error_policy '{value}' in {source}. Allowed: {allowed}",
        )
    return "fail-fast" if policy in {"fail-fast", "strict"} else "replace"


def _require_string(value: Any, field: str, source: str) -> str:
    if not isinstance(value, str):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be non-empty in {source}")
    return text


def _optional_string(value: Any, field: str, source: str) -> Optional[str]:
    if value is None:
        return None
    return _require_string(value, field, source)


def _require_positive_int(value: Any, field: str, source: str) -> int:
    if isinstance(value, bool):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be an integer in {source}")
    try:
        num = int(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc
    if num <= 0:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be greater than zero in {source}",
        )
    return num
