from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class ConfigurationError(RuntimeError):
    """Raised when the run cannot start, e.g. the model API key is missing."""


@dataclass(slots=True)
class LLMConfig:
    provider: str = "gemini"
    model: str = "gemini-2.5-pro"
    fallback_model: str = "gemini-2.0-flash"
    temperature: float = 0.2
    max_output_tokens: int = 8192
    evaluation_max_output_tokens: int = 1024
    api_key_env: str = "GEMINI_API_KEY"
    organization: Optional[str] = None
    max_prompt_tokens: int = 900_000
    chars_per_token: int = 4


@dataclass(slots=True)
class PackagerConfig:
    command: List[str] = field(default_factory=lambda: ["npx", "repomix"])
    timeout_seconds: int = 300
    config_template: Optional[Path] = None
    fetch_metadata: bool = True


@dataclass(slots=True)
class OutputConfig:
    directory: Path = Path(".")
    questions_file: str = "interview_questions.json"
    report_file: str = "interview-report.json"
    answers_markdown: Optional[str] = None

    @property
    def questions_path(self) -> Path:
        return self.directory / self.questions_file

    @property
    def report_path(self) -> Path:
        return self.directory / self.report_file


@dataclass(slots=True)
class RubricConfig:
    path: Path = Path("rubric.txt")


@dataclass(slots=True)
class AppConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    packager: PackagerConfig = field(default_factory=PackagerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    rubric: RubricConfig = field(default_factory=RubricConfig)
    analysis_mode: bool = False


def load_config(path: Optional[Path] = None) -> AppConfig:
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return AppConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = yaml.safe_load(handle) or {}

    llm_raw = raw.get("llm", {})
    packager_raw = raw.get("packager", {})
    output_raw = raw.get("output", {})
    rubric_raw = raw.get("rubric", {})

    defaults = LLMConfig()
    template = packager_raw.get("config_template")
    markdown = output_raw.get("answers_markdown")

    config = AppConfig(
        llm=LLMConfig(
            provider=str(llm_raw.get("provider", defaults.provider)),
            model=str(llm_raw.get("model", defaults.model)),
            fallback_model=str(llm_raw.get("fallback_model", defaults.fallback_model)),
            temperature=float(llm_raw.get("temperature", defaults.temperature)),
            max_output_tokens=int(llm_raw.get("max_output_tokens", defaults.max_output_tokens)),
            evaluation_max_output_tokens=int(
                llm_raw.get("evaluation_max_output_tokens", defaults.evaluation_max_output_tokens)
            ),
            api_key_env=str(llm_raw.get("api_key_env", defaults.api_key_env)),
            organization=llm_raw.get("organization"),
            max_prompt_tokens=int(llm_raw.get("max_prompt_tokens", defaults.max_prompt_tokens)),
            chars_per_token=int(llm_raw.get("chars_per_token", defaults.chars_per_token)),
        ),
        packager=PackagerConfig(
            command=_as_command(packager_raw.get("command", ["npx", "repomix"])),
            timeout_seconds=int(packager_raw.get("timeout_seconds", 300)),
            config_template=Path(template) if template else None,
            fetch_metadata=bool(packager_raw.get("fetch_metadata", True)),
        ),
        output=OutputConfig(
            directory=Path(output_raw.get("directory", ".")),
            questions_file=str(output_raw.get("questions_file", "interview_questions.json")),
            report_file=str(output_raw.get("report_file", "interview-report.json")),
            answers_markdown=str(markdown) if markdown else None,
        ),
        rubric=RubricConfig(path=Path(rubric_raw.get("path", "rubric.txt"))),
        analysis_mode=bool(raw.get("analysis_mode", False)),
    )

    return config


def resolve_api_key(config: AppConfig) -> str:
    api_key = os.getenv(config.llm.api_key_env)
    if not api_key:
        raise ConfigurationError(
            f"{config.llm.api_key_env} environment variable is not set. "
            "Please set it in a .env file or as an environment variable."
        )
    return api_key


def _as_command(value: Any) -> List[str]:
    if isinstance(value, str):
        return value.split()
    return [str(part) for part in value]
