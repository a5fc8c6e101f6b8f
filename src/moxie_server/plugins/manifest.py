"""Plugin manifest, version and configuration schema types.

A manifest describes a plugin to the registry and to clients: identity,
version, dependencies on other plugins and the configuration fields the
plugin understands. Manifests are built fluently:

    manifest = (
        PluginManifest("moxie.example", "Example", "An example plugin")
        .with_version(1, 0, 0)
        .with_category(PluginCategory.CUSTOM)
    )
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from moxie_server.plugins.errors import ManifestValidationError

_ID_EXTRA_CHARS = frozenset("._-")


@dataclass(frozen=True, order=True)
class Version:
    """Semantic version of a plugin."""

    major: int = 0
    minor: int = 1
    patch: int = 0

    def is_compatible_with(self, required: "Version") -> bool:
        """Check whether this version satisfies a required version.

        The major versions must match and this version must be at least
        the required one within that major line.

        Args:
            required: The minimum version a dependent plugin asks for

        Returns:
            bool: True if this version can stand in for the required one
        """
        if self.major != required.major:
            return False
        if self.minor > required.minor:
            return True
        return self.minor == required.minor and self.patch >= required.patch

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse a "major.minor.patch" string.

        Raises:
            ValueError: If the string is not three dot-separated integers
        """
        parts = text.strip().split(".")
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid version string: {text!r}")
        return cls(int(parts[0]), int(parts[1]), int(parts[2]))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class PluginCategory(str, Enum):
    """Category used to group plugins in listings."""

    FILESYSTEM = "filesystem"
    DATABASE = "database"
    OFFICE = "office"
    COMMUNICATION = "communication"
    NETWORK = "network"
    HARDWARE = "hardware"
    KNOWLEDGE = "knowledge"
    CLOUD = "cloud"
    CUSTOM = "custom"


class ConfigFieldType(str, Enum):
    """Value type of a plugin configuration field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_ARRAY = "string_array"
    PATH = "path"
    PATH_ARRAY = "path_array"
    SECRET = "secret"
    SELECT = "select"


@dataclass
class ConfigField:
    """A single configuration field declared by a plugin."""

    name: str
    field_type: ConfigFieldType
    label: str = ""
    description: str = ""
    required: bool = False
    default: Any = None
    validation: str | None = None
    options: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "label": self.label,
            "description": self.description,
            "field_type": self.field_type.value,
            "required": self.required,
            "default": self.default,
            "validation": self.validation,
        }
        if self.field_type is ConfigFieldType.SELECT:
            data["options"] = list(self.options)
        return data


class ConfigFieldBuilder:
    """Fluent builder for ConfigField entries."""

    def __init__(self, name: str, field_type: ConfigFieldType):
        self._field = ConfigField(name=name, field_type=field_type)

    def label(self, label: str) -> "ConfigFieldBuilder":
        self._field.label = label
        return self

    def description(self, description: str) -> "ConfigFieldBuilder":
        self._field.description = description
        return self

    def required(self) -> "ConfigFieldBuilder":
        self._field.required = True
        return self

    def default_value(self, value: Any) -> "ConfigFieldBuilder":
        self._field.default = value
        return self

    def validation(self, pattern: str) -> "ConfigFieldBuilder":
        self._field.validation = pattern
        return self

    def options(self, options: list[str]) -> "ConfigFieldBuilder":
        self._field.options = list(options)
        return self

    def build(self) -> ConfigField:
        return self._field


@dataclass
class PlatformRequirements:
    """Operating systems and system dependencies a plugin needs."""

    os: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    min_moxie_version: Version | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "os": list(self.os),
            "dependencies": list(self.dependencies),
            "min_moxie_version": (
                str(self.min_moxie_version) if self.min_moxie_version else None
            ),
        }


@dataclass
class PluginManifest:
    """Metadata describing a plugin.

    Attributes:
        id: Unique identifier (e.g. "moxie.filesystem")
        name: Display name
        description: Short description
        version: Plugin version (defaults to 0.1.0)
        dependencies: Required plugins mapped to their minimum version
        config_schema: Ordered list of configuration fields
        requires_confirmation: Whether all tools of the plugin are sensitive
    """

    id: str
    name: str
    description: str
    version: Version = field(default_factory=Version)
    long_description: str | None = None
    category: PluginCategory = PluginCategory.CUSTOM
    author: str = ""
    email: str | None = None
    homepage: str | None = None
    license: str | None = None
    keywords: list[str] = field(default_factory=list)
    platform: PlatformRequirements = field(default_factory=PlatformRequirements)
    config_schema: list[ConfigField] = field(default_factory=list)
    dependencies: dict[str, Version] = field(default_factory=dict)
    requires_confirmation: bool = False
    icon: str | None = None

    def with_version(self, major: int, minor: int, patch: int) -> "PluginManifest":
        self.version = Version(major, minor, patch)
        return self

    def with_author(self, author: str) -> "PluginManifest":
        self.author = author
        return self

    def with_category(self, category: PluginCategory) -> "PluginManifest":
        self.category = category
        return self

    def with_keywords(self, keywords: list[str]) -> "PluginManifest":
        self.keywords = list(keywords)
        return self

    def with_config_field(self, config_field: ConfigField) -> "PluginManifest":
        self.config_schema.append(config_field)
        return self

    def with_dependency(self, plugin_id: str, version: Version) -> "PluginManifest":
        self.dependencies[plugin_id] = version
        return self

    def with_requires_confirmation(self) -> "PluginManifest":
        self.requires_confirmation = True
        return self

    def validate(self) -> None:
        """Validate the manifest.

        Raises:
            ManifestValidationError: If id, name or description is empty, or
                the id contains characters other than letters, digits, '.',
                '-' and '_'
        """
        if not self.id:
            raise ManifestValidationError("Plugin ID cannot be empty")
        if not self.name:
            raise ManifestValidationError("Plugin name cannot be empty")
        if not self.description:
            raise ManifestValidationError("Plugin description cannot be empty")
        if not all(
            (c.isascii() and c.isalnum()) or c in _ID_EXTRA_CHARS for c in self.id
        ):
            raise ManifestValidationError("Plugin ID contains invalid characters")

    def to_dict(self) -> dict[str, Any]:
        """Convert the manifest to its JSON representation."""
        return {
            "id": self.id,
            "name": self.name,
            "version": str(self.version),
            "description": self.description,
            "long_description": self.long_description,
            "category": self.category.value,
            "author": self.author,
            "email": self.email,
            "homepage": self.homepage,
            "license": self.license,
            "keywords": list(self.keywords),
            "platform": self.platform.to_dict(),
            "config_schema": [f.to_dict() for f in self.config_schema],
            "dependencies": {k: str(v) for k, v in self.dependencies.items()},
            "requires_confirmation": self.requires_confirmation,
            "icon": self.icon,
        }
