"""Configuration loading and validation for the concept hierarchy."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from concept_hierarchy.errors import HierarchyError


class ConfigError(HierarchyError):
    """The hierarchy config file cannot be read or is inconsistent.

    Carries the config file and, for YAML syntax errors, the 1-based line.
    """

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        error_type: str = "config_invalid",
    ):
        super().__init__(message, error_type=error_type)
        self.file = file
        self.line = line

    def to_json(self) -> dict[str, Any]:
        result = super().to_json()
        if self.file:
            result["file"] = self.file
        if self.line:
            result["line"] = self.line
        return result

    def __str__(self) -> str:
        if not self.file:
            return self.message
        location = f"{self.file}:{self.line}" if self.line else self.file
        return f"{self.message} ({location})"


# Default paths for the hierarchy tooling
DEFAULT_CONFIG_PATH = ".concepts/config.yaml"
DEFAULT_SNAPSHOT_PATH = ".concepts/hierarchy.json"
DEFAULT_STATE_PATH = ".concepts/cache/hierarchy-state.json"


@dataclass
class Keywords:
    """Reserved property names inside hierarchy documents."""

    external: str = "external"  # document-level list of included documents
    data: str = "data"  # per-concept reference to a data fragment
    direct_parents: str = "directParents"
    header: str = "header"


@dataclass
class ClassificationConfig:
    """Well-known root concepts used by the convenience predicates."""

    function_concept: str = "Function"
    value_domain_concept: str = "ValueDomain"


@dataclass
class OutputConfig:
    """Output configuration."""

    snapshot_file: str = DEFAULT_SNAPSHOT_PATH


@dataclass
class HierarchyConfig:
    """Complete hierarchy configuration."""

    version: str = "1.0"
    root: Optional[str] = None  # project-relative or absolute path
    project_name: Optional[str] = None
    include_headers: bool = False
    keywords: Keywords = field(default_factory=Keywords)
    reference_contexts: list[str] = field(
        default_factory=lambda: ["external", "data", "header"]
    )
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def resolved_project_name(self, project_root: Path | str) -> str:
        """Project name for the header convention, defaulting to the directory name."""
        return self.project_name or Path(project_root).resolve().name


def get_default_config() -> HierarchyConfig:
    """Return the default hierarchy configuration."""
    return HierarchyConfig()


def _parse_keywords(data: Any, config_file: Optional[str] = None) -> Keywords:
    """Parse the keywords section."""
    if data is None:
        return Keywords()
    if not isinstance(data, dict):
        raise ConfigError(
            "'keywords' must be a mapping",
            file=config_file,
        )
    defaults = Keywords()
    return Keywords(
        external=data.get("external", defaults.external),
        data=data.get("data", defaults.data),
        direct_parents=data.get("direct_parents", defaults.direct_parents),
        header=data.get("header", defaults.header),
    )


def _parse_classification(data: Any, config_file: Optional[str] = None) -> ClassificationConfig:
    """Parse the classification section."""
    if data is None:
        return ClassificationConfig()
    if not isinstance(data, dict):
        raise ConfigError(
            "'classification' must be a mapping",
            file=config_file,
        )
    defaults = ClassificationConfig()
    return ClassificationConfig(
        function_concept=data.get("function_concept", defaults.function_concept),
        value_domain_concept=data.get("value_domain_concept", defaults.value_domain_concept),
    )


def _parse_output(output_dict: dict[str, Any]) -> OutputConfig:
    """Parse output configuration."""
    return OutputConfig(
        snapshot_file=output_dict.get("snapshot_file", DEFAULT_SNAPSHOT_PATH),
    )


def validate_config(config: HierarchyConfig, config_file: Optional[str] = None) -> None:
    """Validate configuration values.

    Raises:
        ConfigError: If configuration is invalid.
    """
    names = asdict(config.keywords)
    for key, value in names.items():
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(
                f"Keyword '{key}' must be a non-empty string",
                file=config_file,
            )

    seen: dict[str, str] = {}
    for key, value in names.items():
        if value in seen:
            raise ConfigError(
                f"Keywords '{seen[value]}' and '{key}' share the name '{value}'",
                file=config_file,
            )
        seen[value] = key

    if not isinstance(config.reference_contexts, list) or not all(
        isinstance(c, str) for c in config.reference_contexts
    ):
        raise ConfigError(
            "'reference_contexts' must be a list of property names",
            file=config_file,
        )

    if config.root is not None and (not isinstance(config.root, str) or not config.root.strip()):
        raise ConfigError(
            "'root' must be a non-empty path",
            file=config_file,
        )

    for key, value in asdict(config.classification).items():
        if not isinstance(value, str) or not value:
            raise ConfigError(
                f"Classification concept '{key}' must be a non-empty string",
                file=config_file,
            )


def _read_mapping(config_path: Path) -> Optional[dict[str, Any]]:
    """Parse the YAML file, returning None when it holds no settings."""
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ConfigError(
            f"Cannot parse hierarchy config: {e}",
            file=str(config_path),
            line=mark.line + 1 if mark is not None else None,
        ) from e

    if data is None or data == {}:
        return None
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping of settings, found a YAML {type(data).__name__}",
            file=str(config_path),
        )
    return data


def load_config(config_path: Path | str) -> HierarchyConfig:
    """Read ``config_path`` and overlay it on the defaults.

    A missing or empty file yields the defaults unchanged.

    Raises:
        ConfigError: If the YAML is invalid or a setting fails validation.
    """
    config_path = Path(config_path)
    if not config_path.is_file():
        return get_default_config()

    data = _read_mapping(config_path)
    if data is None:
        return get_default_config()

    config_file = str(config_path)
    defaults = get_default_config()
    config = HierarchyConfig(
        version=str(data.get("version", defaults.version)),
        root=data.get("root", defaults.root),
        project_name=data.get("project_name", defaults.project_name),
        include_headers=bool(data.get("include_headers", defaults.include_headers)),
        keywords=_parse_keywords(data.get("keywords"), config_file),
        reference_contexts=data.get("reference_contexts", defaults.reference_contexts),
        classification=_parse_classification(data.get("classification"), config_file),
        output=_parse_output(data.get("output") or {}),
    )
    validate_config(config, config_file)
    return config


def save_config(config: HierarchyConfig, config_path: Path | str) -> None:
    """Write configuration to a YAML file, creating parent directories.

    Args:
        config: Configuration to persist.
        config_path: Destination path.
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(yaml.safe_dump(asdict(config), sort_keys=False))
