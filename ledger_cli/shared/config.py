"""Configuration loading utilities for ledger-cli."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml

from . import paths
from .exceptions import ConfigurationError

DEFAULT_ENCODING = "latin-1"
EXPORT_FORMATS = ("table", "lines", "json", "preview")


@dataclass(frozen=True, slots=True)
class ExclusionSettings:
    """One configured exclusion rule; an empty account matches anything."""

    debit: str
    credit: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class ConversionSettings:
    """Engine behaviour for parsing and regrouping ledger exports."""

    encoding: str = DEFAULT_ENCODING
    normalize_alternate_prefixes: bool = True
    balance_tolerance: Decimal = Decimal("0.01")
    exclusions: tuple[ExclusionSettings, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportSettings:
    """Output rendering configuration."""

    company_code: str
    default_format: str
    issue_limit: int


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Top-level application configuration."""

    source_path: Path
    conversion: ConversionSettings
    export: ExportSettings

    def with_encoding(self, encoding: str) -> AppConfig:
        """Return a copy decoding input with ``encoding``."""
        _validate_encoding(encoding)
        return replace(self, conversion=replace(self.conversion, encoding=encoding))

    def with_company_code(self, company_code: str) -> AppConfig:
        """Return a copy exporting ``company_code`` in the tabular output."""
        return replace(self, export=replace(self.export, company_code=company_code.strip()))


def _default_config() -> dict[str, Any]:
    return {
        "conversion": {
            "encoding": DEFAULT_ENCODING,
            "normalize_alternate_prefixes": True,
            "balance_tolerance": "0.01",
        },
        "export": {
            "company_code": "",
            "default_format": "table",
            "issue_limit": 20,
        },
        "exclusions": [],
    }


ENV_OVERRIDE_SPEC: dict[str, tuple[str, type]] = {
    "conversion.encoding": ("LEDGERCLI_ENCODING", str),
    "conversion.normalize_alternate_prefixes": ("LEDGERCLI_NORMALIZE_PREFIXES", bool),
    "conversion.balance_tolerance": ("LEDGERCLI_BALANCE_TOLERANCE", Decimal),
    "export.company_code": ("LEDGERCLI_COMPANY_CODE", str),
    "export.default_format": ("LEDGERCLI_EXPORT_FORMAT", str),
    "export.issue_limit": ("LEDGERCLI_ISSUE_LIMIT", int),
}


def load_config(
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load configuration from defaults, YAML file, and env overrides."""
    env = dict(os.environ if env is None else env)
    resolved_config_path = _resolve_config_path(config_path, env)
    file_data = _load_yaml(resolved_config_path)
    merged: dict[str, Any] = _deep_merge(_default_config(), file_data)
    merged = _apply_env_overrides(merged, env)
    return _build_config(merged, resolved_config_path)


def _resolve_config_path(config_path: str | Path | None, env: Mapping[str, str]) -> Path:
    if config_path:
        return paths.resolve_path(config_path)
    return paths.default_config_path(env=env)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Config file at {path} is not valid YAML: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigurationError(f"Config file at {path} must define a mapping root object.")
        return dict(data)


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    config_copy = _deep_merge(config, {})
    for dotted_key, (env_key, expected_type) in ENV_OVERRIDE_SPEC.items():
        if env_key not in env:
            continue
        raw_value = env[env_key]
        try:
            value = _coerce_env_value(raw_value, expected_type)
        except ValueError as exc:
            raise ConfigurationError(
                f"Environment override {env_key} has invalid value '{raw_value}': {exc}"
            ) from exc
        _assign_nested(config_copy, dotted_key.split("."), value)
    return config_copy


def _coerce_env_value(raw: str, expected_type: type) -> Any:
    cleaned = raw.strip()
    if expected_type is bool:
        lowered = cleaned.lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
        raise ValueError("expected boolean (true/false)")
    if expected_type is int:
        return int(cleaned)
    if expected_type is Decimal:
        return _to_decimal(cleaned)
    return cleaned


def _assign_nested(target: MutableMapping[str, Any], keys: list[str], value: Any) -> None:
    current = target
    for key in keys[:-1]:
        if key not in current or not isinstance(current[key], MutableMapping):
            current[key] = {}
        current = current[key]  # type: ignore[assignment]
    current[keys[-1]] = value


def _to_decimal(value: Any) -> Decimal:
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"expected a decimal number, got '{value}'") from exc
    if not result.is_finite() or result < 0:
        raise ValueError(f"expected a non-negative decimal number, got '{value}'")
    return result


def _validate_encoding(encoding: str) -> None:
    try:
        codec = codecs.lookup(encoding)
    except LookupError as exc:
        raise ConfigurationError(f"Unknown encoding '{encoding}'.") from exc
    # Fixed-width columns are counted in characters; every byte must decode to exactly one.
    try:
        decoded = bytes(range(256)).decode(codec.name, "replace")
    except LookupError as exc:
        raise ConfigurationError(f"Encoding '{encoding}' is not a text encoding.") from exc
    if codec.name.startswith("utf") or len(decoded) != 256:
        raise ConfigurationError(
            f"Encoding '{encoding}' is not a single-byte encoding; use latin-1 or cp1252."
        )


def _build_exclusions(raw: Any) -> tuple[ExclusionSettings, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("'exclusions' must be a list of {debit, credit} mappings.")
    rules: list[ExclusionSettings] = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, Mapping):
            raise ConfigurationError(f"Exclusion #{index} must be a mapping.")
        debit = str(item.get("debit") or "").strip()
        credit = str(item.get("credit") or "").strip()
        if not debit and not credit:
            raise ConfigurationError(
                f"Exclusion #{index} must name a debit account, a credit account, or both."
            )
        rules.append(
            ExclusionSettings(
                debit=debit,
                credit=credit,
                description=str(item.get("description") or "").strip(),
            )
        )
    return tuple(rules)


def _build_config(data: Mapping[str, Any], source_path: Path) -> AppConfig:
    try:
        conv_cfg = data["conversion"]
        encoding = str(conv_cfg["encoding"])
        conversion = ConversionSettings(
            encoding=encoding,
            normalize_alternate_prefixes=bool(conv_cfg["normalize_alternate_prefixes"]),
            balance_tolerance=_to_decimal(conv_cfg["balance_tolerance"]),
            exclusions=_build_exclusions(data.get("exclusions")),
        )
        export_cfg = data["export"]
        export = ExportSettings(
            company_code=str(export_cfg["company_code"] or "").strip(),
            default_format=str(export_cfg["default_format"]),
            issue_limit=int(export_cfg["issue_limit"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration structure: {exc}") from exc

    _validate_encoding(encoding)
    if export.default_format not in EXPORT_FORMATS:
        raise ConfigurationError(
            f"Unsupported export format '{export.default_format}'; "
            f"expected one of {', '.join(EXPORT_FORMATS)}."
        )

    return AppConfig(source_path=source_path, conversion=conversion, export=export)
