"""Configuration loaders for YAML-based runtime settings and prompt registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_CONFIG_PATH = "configs/app_config.yml"
DEFAULT_PROMPTS_PATH = "configs/prompts.yml"


@dataclass
class LLMSettings:
    base_url: str = "https://ai.gateway.lovable.dev/v1"
    model: str = "google/gemini-3-flash-preview"
    api_key_env: str = "LOVABLE_API_KEY"
    temperature: float = 0.3
    timeout_seconds: float = 60.0
    max_image_bytes: int = 5242880


@dataclass
class ApiSettings:
    cors_origins: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class HistorySettings:
    backend: str = "memory"
    directory: str = ".history"
    default_limit: int = 50


@dataclass
class AppConfig:
    version: str = "1.0.0"
    llm: LLMSettings = field(default_factory=LLMSettings)
    api: ApiSettings = field(default_factory=ApiSettings)
    history: HistorySettings = field(default_factory=HistorySettings)
    prompts: Dict[str, Dict[str, str]] = field(default_factory=dict)


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be loaded or validated."""


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError("Configuration file not found: {}".format(path))
    with path.open("r", encoding="utf-8") as handle:
        try:
            loaded = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError("Invalid YAML in {}: {}".format(path, exc)) from exc
    if not isinstance(loaded, dict):
        raise ConfigError("Configuration root must be a mapping in {}".format(path))
    return loaded


def load_app_config(path: str = DEFAULT_CONFIG_PATH, prompts_path: Optional[str] = None) -> AppConfig:
    """Loads application settings and, optionally, the prompt registry.

    Args:
        path: YAML file with `llm`, `api` and `history` sections.
        prompts_path: Prompt registry path; falls back to the `prompts_file` key
            of the config, and is skipped when neither is set.

    Returns:
        Fully populated `AppConfig`.

    Raises:
        ConfigError: If a file is missing or malformed.
    """
    data = _load_yaml(Path(path))
    llm_data = dict(data.get("llm", {}) or {})
    api_data = dict(data.get("api", {}) or {})
    history_data = dict(data.get("history", {}) or {})
    defaults = LLMSettings()

    llm = LLMSettings(
        base_url=str(llm_data.get("base_url", defaults.base_url)),
        model=str(llm_data.get("model", defaults.model)),
        api_key_env=str(llm_data.get("api_key_env", defaults.api_key_env)),
        temperature=float(llm_data.get("temperature", defaults.temperature)),
        timeout_seconds=float(llm_data.get("timeout_seconds", defaults.timeout_seconds)),
        max_image_bytes=int(llm_data.get("max_image_bytes", defaults.max_image_bytes)),
    )

    origins = api_data.get("cors_origins", ["*"])
    if isinstance(origins, str):
        origins = [origins]
    api = ApiSettings(cors_origins=[str(item) for item in origins])

    history = HistorySettings(
        backend=str(history_data.get("backend", "memory")).strip().lower() or "memory",
        directory=str(history_data.get("directory", ".history")),
        default_limit=int(history_data.get("default_limit", 50)),
    )

    resolved_prompts_path = prompts_path or data.get("prompts_file")
    prompts = load_prompts_registry(str(resolved_prompts_path)) if resolved_prompts_path else {}

    return AppConfig(
        version=str(data.get("version", "1.0.0")),
        llm=llm,
        api=api,
        history=history,
        prompts=prompts,
    )


def _resolve_prompt(name: str, prompts: Dict[str, Any], seen: Optional[set] = None) -> Dict[str, str]:
    seen = seen or set()
    if name in seen:
        raise ConfigError("Cyclic prompt inheritance detected at '{}'".format(name))
    seen.add(name)

    registry = prompts.get("registry", {})
    node = registry.get(name)
    if not isinstance(node, dict):
        raise ConfigError("Prompt '{}' not found in registry".format(name))

    base: Dict[str, str] = {}
    parent = node.get("extends")
    if parent:
        base = _resolve_prompt(str(parent), prompts, seen)

    merged = dict(base)
    for key, value in node.items():
        if key == "extends":
            continue
        merged[key] = str(value)
    return merged


def load_prompts_registry(path: str = DEFAULT_PROMPTS_PATH) -> Dict[str, Dict[str, str]]:
    data = _load_yaml(Path(path))
    registry = data.get("registry", {})
    if not isinstance(registry, dict):
        raise ConfigError("'registry' must be a mapping in prompts configuration")

    resolved: Dict[str, Dict[str, str]] = {}
    for name in registry:
        resolved[name] = _resolve_prompt(str(name), data)
    return resolved
