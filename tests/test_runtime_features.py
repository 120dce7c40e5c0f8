"""
Tests for runtime feature resolution.
"""

import pytest

from stackgen.models.manifest import ServiceManifest
from stackgen.models.manifest_loader import load_manifest
from stackgen.runtime import (
    RuntimeFeature,
    RuntimeFeatureRegistry,
    RuntimeFeatureResolver,
    compare_versions,
    default_registry,
    normalize_version,
)


def manifest_with_runtimes(name, *runtimes):
    return ServiceManifest.model_validate({
        "name": name,
        "requirements": {"runtimes": [{"name": n, "version": v} for n, v in runtimes]},
    })


class TestVersionHelpers:

    @pytest.mark.parametrize("raw,expected", [
        (">=3.11", "3.11"),
        ("^20", "20"),
        ("~1.21", "1.21"),
        ("v1.22", "1.22"),
        ("3.12", "3.12"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize_version(self, raw, expected):
        assert normalize_version(raw) == expected

    def test_numeric_components_compare_numerically(self):
        assert compare_versions("3.10", "3.9") == 1
        assert compare_versions("3.9", "3.10") == -1
        assert compare_versions("20", "18") == 1

    def test_equal_versions(self):
        assert compare_versions("3.11", ">=3.11") == 0

    def test_empty_version_sorts_lowest(self):
        assert compare_versions("", "1") == -1
        assert compare_versions("1", "") == 1


class TestRuntimeFeature:

    @pytest.fixture
    def python(self):
        return default_registry().get("python")

    def test_empty_request_uses_default(self, python):
        assert python.select_version("") == "3.11"
        assert python.select_version(None) == "3.11"

    def test_exact_match(self, python):
        assert python.select_version("3.12") == "3.12"

    def test_refinement_honored_verbatim(self, python):
        assert python.select_version("3.11.2") == "3.11.2"
        assert python.select_version("3.10.4") == "3.10.4"

    def test_unsupported_falls_back_to_default(self, python):
        assert python.select_version("3.8") == "3.11"
        assert python.select_version("3.1") == "3.11"

    def test_constraint_prefix_stripped(self, python):
        assert python.select_version(">=3.12") == "3.12"

    def test_supports_version(self, python):
        assert python.supports_version("3.9")
        assert not python.supports_version("2.7")


class TestRegistry:

    def test_default_registry_contents(self):
        registry = default_registry()
        assert [f.name for f in registry] == ["docker", "go", "node", "python"]
        assert "python" in registry
        assert "rust" not in registry
        assert len(registry) == 4

    def test_registries_are_independent(self):
        first = default_registry()
        first.register(RuntimeFeature(
            name="rust",
            feature_id="ghcr.io/devcontainers/features/rust:1",
            default_version="latest",
        ))
        assert "rust" in first
        assert "rust" not in default_registry()

    def test_register_replaces(self):
        registry = RuntimeFeatureRegistry()
        registry.register(RuntimeFeature("python", "a:1", "3.9"))
        registry.register(RuntimeFeature("python", "b:1", "3.12"))
        assert registry.get("python").feature_id == "b:1"


class TestResolver:

    def test_highest_requested_version_wins(self):
        manifests = {
            "a": manifest_with_runtimes("a", ("python", "3.11")),
            "b": manifest_with_runtimes("b", ("python", "3.12")),
        }
        resolved = RuntimeFeatureResolver().resolve(manifests)
        assert resolved["python"].requested_version == "3.12"
        assert resolved["python"].selected_version == "3.12"

    def test_numeric_ordering_across_manifests(self):
        manifests = {
            "a": manifest_with_runtimes("a", ("go", "1.9")),
            "b": manifest_with_runtimes("b", ("go", "1.21")),
        }
        resolved = RuntimeFeatureResolver().resolve(manifests)
        assert resolved["go"].requested_version == "1.21"

    def test_unknown_runtime_dropped(self):
        manifests = {"a": manifest_with_runtimes("a", ("rust", "1.75"), ("node", "20"))}
        resolved = RuntimeFeatureResolver().resolve(manifests)
        assert list(resolved) == ["node"]

    def test_feature_config_carries_selected_version(self, manifests):
        resolved = RuntimeFeatureResolver().resolve(manifests)
        assert list(resolved) == ["node", "python"]

        python = resolved["python"]
        assert python.name == "python"
        assert python.feature_id == "ghcr.io/devcontainers/features/python:1"
        assert python.to_feature_config() == {
            "installTools": True,
            "installJupyterlab": False,
            "version": "3.12",
        }
        assert resolved["node"].to_feature_config()["version"] == "20"

    def test_custom_registry(self):
        registry = RuntimeFeatureRegistry([RuntimeFeature("zig", "example/zig:1", "0.11", ["0.11", "0.12"])])
        manifests = {"a": manifest_with_runtimes("a", ("zig", "0.12"), ("python", "3.11"))}
        resolved = RuntimeFeatureResolver(registry).resolve(manifests)
        assert list(resolved) == ["zig"]
        assert resolved["zig"].to_feature_config() == {"version": "0.12"}

    def test_unquoted_version_from_manifest_file(self, tmp_path):
        path = tmp_path / "legacy.yaml"
        path.write_text(
            "requirements:\n  runtimes:\n    - name: python\n      version: 3.10\n",
            encoding="utf-8",
        )
        resolved = RuntimeFeatureResolver().resolve({"legacy": load_manifest(path)})
        assert resolved["python"].requested_version == "3.10"
        assert resolved["python"].selected_version == "3.10"

    def test_no_manifests(self):
        assert RuntimeFeatureResolver().resolve({}) == {}
