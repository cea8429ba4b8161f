"""Layered configuration loader and CLI for the Verity ingestion pipeline.

Values are resolved from four layers, later layers winning:

1. defaults declared in :mod:`verity.config_schema`
2. ``config.toml`` (or the file passed with ``--config``)
3. a ``.env`` file next to the config file
4. the process environment

Override keys use the ``VERITY__SECTION__FIELD`` form. Every leaf value
remembers which layer set it so that ``explain`` and validation errors can
point operators at the right place.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, MutableMapping, Optional, Sequence

import tomli_w
from dotenv import dotenv_values
from pydantic import ValidationError

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python 3.10
    import tomli as tomllib  # type: ignore[no-redef]

from verity.config_schema import Config, DEFAULT_CONFIG, iter_field_docs

DEFAULT_ENV_PREFIX = "VERITY"
DEFAULT_CONFIG_FILENAME = "config.toml"
DEFAULT_ENV_FILENAME = ".env"
MASK = "***masked***"
SECRET_MARKERS = ("password", "secret", "token")
PROJECT_ROOT = Path(__file__).resolve().parents[1]


class ConfigError(RuntimeError):
    """Raised when configuration loading or validation fails."""


@dataclass(frozen=True)
class ConfigValueOrigin:
    """Layer, file and variable that produced one configuration value."""

    layer: str
    source: str
    env_var: str | None = None

    def render(self) -> str:
        details = ", ".join(item for item in (self.env_var, self.source) if item)
        return f"{self.layer} ({details})" if details else self.layer


@dataclass
class ConfigMetadata:
    """Where the loaded configuration came from."""

    config_path: Path
    env_path: Optional[Path]
    env_prefix: str
    provenance: Dict[str, ConfigValueOrigin] = field(default_factory=dict)

    def describe_sources(self) -> list[str]:
        env_line = f".env file: {self.env_path}" if self.env_path else ".env file: not found"
        return [
            "defaults: built into verity.config_schema",
            f"config file: {self.config_path}",
            env_line,
            f"environment prefix: {self.env_prefix}__*",
        ]


def _is_secret(path: str) -> bool:
    lowered = path.lower()
    return any(marker in lowered for marker in SECRET_MARKERS)


def _parse_scalar(raw: str) -> Any:
    """Turn an environment string into the closest TOML-like scalar."""

    text = raw.strip()
    if not text:
        return ""
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("null", "none"):
        return None
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return float(text)
    except ValueError:
        pass
    if text[0] in "[{" and text[-1] in "]}":
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text


class LayerStack:
    """Accumulates configuration layers into one nested mapping."""

    def __init__(self, env_prefix: str = DEFAULT_ENV_PREFIX) -> None:
        self.env_prefix = env_prefix
        self.values: Dict[str, Any] = {}
        self.provenance: Dict[str, ConfigValueOrigin] = {}

    def _slot(self, dotted: str) -> tuple[MutableMapping[str, Any], str]:
        *parents, leaf = dotted.split(".")
        node: MutableMapping[str, Any] = self.values
        for name in parents:
            child = node.get(name)
            if not isinstance(child, MutableMapping):
                child = node[name] = {}
            node = child
        return node, leaf

    def set(self, dotted: str, value: Any, origin: ConfigValueOrigin) -> None:
        node, leaf = self._slot(dotted)
        node[leaf] = value
        self.provenance[dotted] = origin

    def push_mapping(self, data: Mapping[str, Any], origin: ConfigValueOrigin) -> None:
        for dotted, value in _walk_leaves(data):
            self.set(dotted, value, origin)

    def push_environment(self, variables: Mapping[str, str], *, layer: str, source: str) -> None:
        marker = f"{self.env_prefix}__"
        for name, raw in variables.items():
            if not name.startswith(marker):
                continue
            segments = [part.lower() for part in name[len(marker):].split("__") if part]
            if not segments:
                raise ConfigError(f"Environment override '{name}' is missing key segments")
            origin = ConfigValueOrigin(layer=layer, source=source, env_var=name)
            self.set(".".join(segments), _parse_scalar(raw), origin)

    def build(self) -> Config:
        try:
            return Config.model_validate(self.values)
        except ValidationError as exc:
            raise self._explain_failure(exc) from exc

    def _explain_failure(self, error: ValidationError) -> ConfigError:
        lines: list[str] = []
        for record in error.errors():
            location = ".".join(str(part) for part in record.get("loc", ()))
            message = record.get("msg", "invalid value")
            received = record.get("input")
            if received is not None and not _is_secret(location):
                message += f" (received={received!r})"
            origin = self.provenance.get(location)
            if origin is not None:
                message += f" [{origin.render()}]"
            lines.append(f"{location or '<root>'}: {message}")
        return ConfigError("Configuration validation failed:\n - " + "\n - ".join(lines))


def _walk_leaves(data: Mapping[str, Any], prefix: str = "") -> Iterable[tuple[str, Any]]:
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            yield from _walk_leaves(value, dotted)
        else:
            yield dotted, value


def _read_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}
    except (tomllib.TOMLDecodeError, OSError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _locate_env_file(config_path: Path) -> Optional[Path]:
    for candidate in (config_path.parent / DEFAULT_ENV_FILENAME, PROJECT_ROOT / DEFAULT_ENV_FILENAME):
        if candidate.exists():
            return candidate
    return None


def load_config(
    path: Path | None = None,
    *,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration by merging defaults, file, .env and environment layers."""

    config_path = path or PROJECT_ROOT / DEFAULT_CONFIG_FILENAME
    env_path = _locate_env_file(config_path)

    stack = LayerStack(env_prefix)
    stack.push_mapping(
        DEFAULT_CONFIG.model_dump(mode="python"),
        ConfigValueOrigin(layer="defaults", source="verity.config_schema"),
    )
    stack.push_mapping(_read_toml(config_path), ConfigValueOrigin(layer="file", source=str(config_path)))
    if env_path is not None:
        file_env = {key: value for key, value in dotenv_values(env_path).items() if value is not None}
        stack.push_environment(file_env, layer="env-file", source=str(env_path))
    stack.push_environment(os.environ if environ is None else environ, layer="env", source="process")

    config = stack.build()
    config._metadata = ConfigMetadata(
        config_path=config_path,
        env_path=env_path,
        env_prefix=env_prefix,
        provenance=stack.provenance,
    )
    return config


def _toml_ready(value: Any) -> Any:
    if isinstance(value, Mapping):
        # TOML has no null; unset optionals are left out of the dump.
        return {key: _toml_ready(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_toml_ready(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    return value


def render_defaults() -> str:
    return tomli_w.dumps(_toml_ready(DEFAULT_CONFIG.model_dump(mode="python")))


def _display(value: Any) -> str:
    if isinstance(value, Path):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False)
    except TypeError:
        return repr(value)


def render_schema_table() -> str:
    """Markdown table of every schema field, used by ``--print-schema``."""

    columns = ("name", "type", "default", "description", "constraints")
    rows = [
        "| Field | Type | Default | Description | Constraints |",
        "| --- | --- | --- | --- | --- |",
    ]
    for entry in iter_field_docs(DEFAULT_CONFIG):
        cells = dict(entry)
        cells["default"] = "" if entry["default"] is None else _display(entry["default"])
        rows.append("| " + " | ".join(str(cells[column]) for column in columns) + " |")
    return "\n".join(rows)


def explain(config: Config, key: str) -> str:
    """Describe the effective value of ``key`` and the layer it came from."""

    metadata: ConfigMetadata | None = getattr(config, "_metadata", None)
    if metadata is None:
        raise ConfigError("Configuration metadata is unavailable")
    value: Any = config.model_dump(mode="python")
    for segment in key.split("."):
        if not isinstance(value, Mapping) or segment not in value:
            raise ConfigError(f"Unknown configuration key: {key}")
        value = value[segment]
    origin = metadata.provenance.get(key)
    shown = MASK if _is_secret(key) else _display(value)
    return f"{key} = {shown}\nsource: {origin.render() if origin else 'unknown'}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verity-config",
        description="Inspect and validate Verity configuration",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Path to the TOML configuration file")
    parser.add_argument(
        "--env-prefix",
        default=DEFAULT_ENV_PREFIX,
        help="Environment variable prefix (e.g. VERITY__INGESTION__TARGET_PAGE_SIZE)",
    )
    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument("--validate", action="store_true", help="Validate the active configuration")
    actions.add_argument("--dump-defaults", action="store_true", help="Print built-in defaults as TOML")
    actions.add_argument("--print-schema", action="store_true", help="Print a Markdown table of all fields")
    actions.add_argument("--show-sources", action="store_true", help="Show configuration source precedence")
    actions.add_argument("--explain", metavar="KEY", help="Explain where a field value originates")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.dump_defaults:
        sys.stdout.write(render_defaults())
        return 0
    if args.print_schema:
        print(render_schema_table())
        return 0

    try:
        config = load_config(args.config, env_prefix=args.env_prefix)
        if args.explain:
            print(explain(config, args.explain))
        elif args.show_sources:
            print("Active configuration sources:")
            for line in config._metadata.describe_sources():
                print(f"- {line}")
        else:
            print("Configuration OK")
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI entry point
    raise SystemExit(main())
