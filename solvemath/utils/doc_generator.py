"""Generate human-readable documentation from YAML configuration files."""

from __future__ import annotations

from pathlib import Path

from solvemath.resolution.prompts import resolve_prompt_pack
from solvemath.utils.config_loader import AppConfig


def generate_config_docs(config: AppConfig, output_path: str) -> str:
    lines = [
        "# Configuration de solvemath",
        "",
        "## LLM",
        "",
        "- base_url: {}".format(config.llm.base_url),
        "- model: {}".format(config.llm.model),
        "- api_key_env: {}".format(config.llm.api_key_env),
        "- temperature: {}".format(config.llm.temperature),
        "- timeout_seconds: {}".format(config.llm.timeout_seconds),
        "- max_image_bytes: {}".format(config.llm.max_image_bytes),
        "",
        "## API",
        "",
        "- cors_origins: {}".format(", ".join(config.api.cors_origins) or "-"),
        "",
        "## Historique",
        "",
        "- backend: {}".format(config.history.backend),
        "- directory: {}".format(config.history.directory),
        "- default_limit: {}".format(config.history.default_limit),
        "",
        "## Prompts",
        "",
    ]

    pack = resolve_prompt_pack(config.prompts.get("solver"))
    for name, template in sorted(pack.items()):
        lines.append("- {}: {} chars".format(name, len(template)))
    lines.append("")

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text("\n".join(lines), encoding="utf-8")
    return str(output)
