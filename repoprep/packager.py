from __future__ import annotations

import json
import logging
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from xml.sax.saxutils import escape, quoteattr

from .artifact import PLACEHOLDER_ARTIFACT
from .config import AppConfig
from .github_api import RepoMetadata, fetch_repository_metadata, repository_name, repository_slug
from .models import Outcome

logger = logging.getLogger(__name__)

OUTPUT_FILENAME = "repomix-output.xml"
CONFIG_FILENAME = "repomix.config.json"
MIN_ARTIFACT_BYTES = 100

_FALLBACK_TECHNOLOGIES = [
    ("language", "primary", "TypeScript"),
    ("language", "secondary", "JavaScript"),
    ("framework", "primary", "React"),
    ("framework", "secondary", "Express"),
    ("runtime", "primary", "Node.js"),
    ("database", "primary", "MongoDB"),
    ("database", "secondary", "Redis"),
    ("styling", "primary", "Tailwind CSS"),
    ("build", "primary", "Vite"),
    ("testing", "primary", "Jest"),
    ("ai", "primary", "OpenAI API"),
    ("ai", "secondary", "LangChain"),
]

_SAMPLE_COMPONENTS = """  <components>
    <component type="ui" complexity="high">Frontend Application</component>
    <component type="server" complexity="medium">Backend API Server</component>
    <component type="service" complexity="high">AI Analysis Service</component>
    <component type="utilities" complexity="medium">Utility Functions</component>
    <component type="data" complexity="high">Data Models</component>
    <component type="integration" complexity="high">AI Model Integration</component>
  </components>

  <dependencies>
    <dependency version="^18.2.0" usage="critical">react</dependency>
    <dependency version="^18.2.0" usage="critical">react-dom</dependency>
    <dependency version="^4.18.2" usage="critical">express</dependency>
    <dependency version="^5.0.4" usage="critical">typescript</dependency>
    <dependency version="^4.2.0" usage="ai">openai</dependency>
    <dependency version="^1.0.0" usage="ai">langchain</dependency>
  </dependencies>

  <structure>
    <directory path="src">
      <file path="index.ts">Main application entry point</file>
      <directory path="components">
        <file path="App.tsx">Main application component</file>
        <file path="Header.tsx">Application header component</file>
        <directory path="common">
          <file path="Button.tsx">Reusable button component</file>
        </directory>
        <directory path="ai">
          <file path="SearchInterface.tsx">AI search interface component</file>
        </directory>
      </directory>
      <directory path="services">
        <directory path="ai">
          <file path="ragPipeline.ts">RAG implementation service</file>
        </directory>
      </directory>
      <directory path="utils">
        <file path="logger.ts">Application logging utility</file>
      </directory>
      <directory path="api">
        <file path="ai.ts">AI-related endpoints</file>
      </directory>
    </directory>
  </structure>
"""


def output_directory_for(repo_url: str, config: AppConfig) -> Path:
    return config.output.directory / f"repo-output-{repository_slug(repo_url).replace('/', '-')}"


def package_repository(repo_url: str, config: AppConfig) -> Outcome[Path]:
    """Run repomix against ``repo_url`` and return the path of the packed artifact.

    The per-repository output directory is wiped and recreated first. When
    repomix fails, or leaves an implausibly small file behind, a synthetic
    artifact is written in its place so later stages always have input.
    """
    output_dir = prepare_output_directory(repo_url, config)
    output_path = output_dir / OUTPUT_FILENAME
    reason: Optional[str] = None

    try:
        config_path = write_repomix_config(output_dir, config)
        _run_repomix(repo_url, config_path, output_dir, config)
        logger.info("Repomix analysis completed successfully")
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError, ValueError) as exc:
        logger.error("Error executing repomix for %s: %s", repo_url, exc)
        logger.warning("Falling back to mock data generation")
        output_path.write_text(PLACEHOLDER_ARTIFACT, encoding="utf-8")
        reason = f"repomix failed: {exc}"

    if not output_path.exists() or output_path.stat().st_size < MIN_ARTIFACT_BYTES:
        logger.warning("Repomix output missing or too small, creating mock repository data")
        metadata = fetch_repository_metadata(repo_url) if config.packager.fetch_metadata else None
        output_path.write_text(
            generate_mock_artifact(repo_url, repository_name(repo_url), metadata),
            encoding="utf-8",
        )
        return Outcome.degraded(output_path, reason or "repomix produced no usable output")

    return Outcome.ok(output_path)


def prepare_output_directory(repo_url: str, config: AppConfig) -> Path:
    output_dir = output_directory_for(repo_url, config)
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    logger.info("Created output directory: %s", output_dir)
    return output_dir


def build_repomix_config() -> Dict[str, Any]:
    return {
        "output": {
            "compress": False,
            "style": "xml",
            "fileSummary": True,
            "directoryStructure": True,
            "removeComments": False,
            "removeEmptyLines": True,
            "topFilesLength": 20,
            "showLineNumbers": False,
            "copyToClipboard": False,
            "includeEmptyDirectories": True,
            "parsableStyle": False,
            "filePath": OUTPUT_FILENAME,
        },
        "include": ["**/*", ".cursorrules", ".cursor/rules/*", ".cursor/**"],
        "ignore": {
            "useGitignore": True,
            "useDefaultPatterns": False,
            "customPatterns": [
                "**/.!(cursor)/**",
                "**/*.pbxproj",
                "**/node_modules/**",
                "**/dist/**",
                "**/build/**",
                "**/compile/**",
                "**/*.spec.*",
                "**/*.pyc",
                "**/.env",
                "**/.env.*",
                "**/*.env",
                "**/*.env.*",
                "**/*.lock",
                "**/*.lockb",
                "**/package-lock.*",
                "**/pnpm-lock.*",
                "**/*.tsbuildinfo",
            ],
        },
        "security": {"enableSecurityCheck": True},
        "tokenCount": {"encoding": "o200k_base"},
    }


def write_repomix_config(output_dir: Path, config: AppConfig) -> Path:
    template = config.packager.config_template
    if template is not None and template.exists():
        logger.info("Using repomix config template: %s", template)
        repomix_config = json.loads(template.read_text(encoding="utf-8"))
        if not isinstance(repomix_config, dict):
            raise ValueError(f"{template} does not contain a JSON object")
        repomix_config.setdefault("output", {})["filePath"] = OUTPUT_FILENAME
    else:
        repomix_config = build_repomix_config()

    config_path = output_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(repomix_config, indent=2), encoding="utf-8")
    return config_path


def _run_repomix(repo_url: str, config_path: Path, output_dir: Path, config: AppConfig) -> None:
    command = [
        *config.packager.command,
        "--remote",
        repo_url,
        "--config",
        str(config_path.resolve()),
        "--output",
        OUTPUT_FILENAME,
    ]
    logger.info("Executing repomix for %s", repo_url)
    subprocess.run(
        command,
        cwd=output_dir,
        timeout=config.packager.timeout_seconds,
        check=True,
    )


def generate_mock_artifact(repo_url: str, repo_name: str, metadata: Optional[RepoMetadata] = None) -> str:
    created_at = datetime.now(timezone.utc).isoformat()
    if metadata is not None:
        description = metadata.description or f"Repository analysis for {repo_name}"
        details = {
            "stars": metadata.stars,
            "forks": metadata.forks,
            "watchers": metadata.watchers,
            "last_commit": metadata.pushed_at,
            "license": metadata.license,
        }
        ranked = sorted(metadata.languages.items(), key=lambda item: item[1], reverse=True)
        technologies = [
            ("language", "primary" if index == 0 else "secondary", language)
            for index, (language, _) in enumerate(ranked)
        ] or _FALLBACK_TECHNOLOGIES
    else:
        description = f"Repository analysis for {repo_name}"
        details = {
            "stars": 1245,
            "forks": 328,
            "watchers": 89,
            "contributors": 17,
            "last_commit": "2023-11-15T14:32:18Z",
            "license": "MIT",
        }
        technologies = _FALLBACK_TECHNOLOGIES

    detail_lines = "\n".join(f"      <{key}>{escape(str(value))}</{key}>" for key, value in details.items())
    technology_lines = "\n".join(
        f'    <technology type="{kind}" usage="{usage}">{escape(name)}</technology>'
        for kind, usage, name in technologies
    )
    return f"""
<repository url={quoteattr(repo_url)} name={quoteattr(repo_name)}>
  <metadata>
    <created_at>{created_at}</created_at>
    <repository_type>GitHub</repository_type>
    <analysis_version>1.0</analysis_version>
    <description>{escape(description)}</description>
    <repository_details>
{detail_lines}
    </repository_details>
  </metadata>

  <technologies>
{technology_lines}
  </technologies>

{_SAMPLE_COMPONENTS}</repository>"""
