"""Unit tests for plugin manifests, versions and config fields."""

import pytest

from moxie_server.plugins import (
    ConfigFieldBuilder,
    ConfigFieldType,
    ManifestValidationError,
    PluginCategory,
    PluginManifest,
    Version,
)


def test_version_default_and_str():
    """Test the default version and its string form."""
    assert str(Version()) == "0.1.0"
    assert str(Version(1, 2, 3)) == "1.2.3"


def test_version_parse():
    """Test parsing version strings."""
    assert Version.parse("2.10.0") == Version(2, 10, 0)
    with pytest.raises(ValueError):
        Version.parse("1.2")
    with pytest.raises(ValueError):
        Version.parse("1.x.0")


def test_version_ordering():
    """Test that versions compare numerically, field by field."""
    assert Version(1, 2, 0) < Version(1, 10, 0)
    assert Version(2, 0, 0) > Version(1, 99, 99)


@pytest.mark.parametrize(
    "available, required, compatible",
    [
        (Version(1, 2, 3), Version(1, 2, 3), True),
        (Version(1, 2, 4), Version(1, 2, 3), True),
        (Version(1, 3, 0), Version(1, 2, 9), True),
        (Version(1, 2, 2), Version(1, 2, 3), False),
        (Version(1, 1, 9), Version(1, 2, 0), False),
        (Version(2, 0, 0), Version(1, 0, 0), False),
        (Version(0, 9, 0), Version(1, 0, 0), False),
    ],
)
def test_version_compatibility(available, required, compatible):
    """Test that compatibility needs the same major and at least the required version."""
    assert available.is_compatible_with(required) is compatible


def test_manifest_builder():
    """Test building a manifest fluently."""
    manifest = (
        PluginManifest("acme.crm", "CRM", "Customer records")
        .with_version(2, 1, 0)
        .with_author("Acme")
        .with_category(PluginCategory.DATABASE)
        .with_keywords(["crm"])
        .with_dependency("moxie.api", Version(1, 0, 0))
        .with_requires_confirmation()
    )

    assert manifest.version == Version(2, 1, 0)
    assert manifest.author == "Acme"
    assert manifest.category is PluginCategory.DATABASE
    assert manifest.dependencies == {"moxie.api": Version(1, 0, 0)}
    assert manifest.requires_confirmation is True


def test_manifest_defaults():
    """Test manifest defaults."""
    manifest = PluginManifest("acme.x", "X", "Does x")

    assert manifest.version == Version(0, 1, 0)
    assert manifest.category is PluginCategory.CUSTOM
    assert manifest.config_schema == []
    assert manifest.requires_confirmation is False


@pytest.mark.parametrize(
    "plugin_id, name, description, message",
    [
        ("", "X", "Does x", "Plugin ID cannot be empty"),
        ("acme.x", "", "Does x", "Plugin name cannot be empty"),
        ("acme.x", "X", "", "Plugin description cannot be empty"),
        ("acme x", "X", "Does x", "Plugin ID contains invalid characters"),
        ("acme/x", "X", "Does x", "Plugin ID contains invalid characters"),
        ("acmé.x", "X", "Does x", "Plugin ID contains invalid characters"),
    ],
)
def test_manifest_validation_errors(plugin_id, name, description, message):
    """Test the manifest validation rules."""
    with pytest.raises(ManifestValidationError, match=message):
        PluginManifest(plugin_id, name, description).validate()


def test_manifest_validation_accepts_allowed_characters():
    """Test that letters, digits, dots, dashes and underscores are allowed."""
    PluginManifest("Acme_Tools-2.beta", "X", "Does x").validate()


def test_config_field_builder():
    """Test building config fields."""
    config_field = (
        ConfigFieldBuilder("region", ConfigFieldType.SELECT)
        .label("Region")
        .description("Data center region")
        .required()
        .default_value("eu")
        .options(["eu", "us"])
        .build()
    )

    assert config_field.to_dict() == {
        "name": "region",
        "label": "Region",
        "description": "Data center region",
        "field_type": "select",
        "required": True,
        "default": "eu",
        "validation": None,
        "options": ["eu", "us"],
    }


def test_manifest_to_dict():
    """Test the JSON form of a manifest."""
    manifest = (
        PluginManifest("acme.x", "X", "Does x")
        .with_version(1, 0, 0)
        .with_dependency("acme.base", Version(1, 2, 0))
        .with_config_field(ConfigFieldBuilder("token", ConfigFieldType.SECRET).build())
    )

    data = manifest.to_dict()

    assert data["id"] == "acme.x"
    assert data["version"] == "1.0.0"
    assert data["category"] == "custom"
    assert data["dependencies"] == {"acme.base": "1.2.0"}
    assert data["config_schema"][0]["name"] == "token"
    assert "options" not in data["config_schema"][0]
