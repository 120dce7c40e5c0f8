"""
Service manifest loader.

Provides a single entrypoint for loading manifests from YAML files or from
already-parsed dictionaries, plus a directory loader used by the file-backed
session store.

Usage:
    from stackgen.models.manifest_loader import load_manifest, load_manifest_dir

    manifest = load_manifest("path/to/acme.yaml")
    manifests = load_manifest_dir(".stackgen/sessions/default/manifests")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Union

import yaml
from pydantic import ValidationError

from stackgen.errors import ManifestLoadError
from stackgen.models.manifest import ManifestSet, ServiceManifest

if TYPE_CHECKING:
    from os import PathLike

logger = logging.getLogger(__name__)

MANIFEST_SUFFIXES = (".yaml", ".yml")


class ManifestYamlLoader(yaml.SafeLoader):
    """Safe loader that keeps float scalars as written, so ``version: 3.10`` stays ``"3.10"``."""


def _construct_float_text(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


ManifestYamlLoader.add_constructor("tag:yaml.org,2002:float", _construct_float_text)


def load_manifest(path: Union[str, "PathLike[str]"]) -> ServiceManifest:
    """
    Load a service manifest from a YAML file.

    Args:
        path: Path to the manifest YAML file

    Returns:
        ServiceManifest instance

    Raises:
        FileNotFoundError: If the file does not exist
        ManifestLoadError: If the file cannot be read or decoded, is not valid
            YAML, or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Manifest file not found: {path}")

    try:
        raw_data = yaml.load(path.read_text(encoding="utf-8"), Loader=ManifestYamlLoader)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ManifestLoadError(path, e) from e

    if not isinstance(raw_data, dict):
        raise ManifestLoadError(
            path, TypeError(f"expected a mapping at the root, got {type(raw_data).__name__}")
        )

    # A manifest without a name is named after its file
    raw_data.setdefault("name", path.stem)

    try:
        return load_manifest_from_dict(raw_data)
    except ValidationError as e:
        raise ManifestLoadError(path, e) from e


def load_manifest_from_dict(data: Dict[str, Any]) -> ServiceManifest:
    """
    Load a manifest from an already-parsed dictionary.

    Useful when you've already parsed the YAML yourself.
    """
    return ServiceManifest.model_validate(data)


def load_manifest_dir(directory: Union[str, "PathLike[str]"]) -> ManifestSet:
    """
    Load every ``*.yaml``/``*.yml`` manifest in a directory.

    A missing directory yields an empty set. Manifests are keyed by their
    ``name`` field; a later file with the same name replaces an earlier one.
    """
    directory = Path(directory)
    manifests: ManifestSet = {}
    if not directory.is_dir():
        return manifests

    for path in sorted(directory.iterdir()):
        if path.suffix not in MANIFEST_SUFFIXES or not path.is_file():
            continue
        manifest = load_manifest(path)
        if manifest.name in manifests:
            logger.warning("Manifest %s in %s replaces an earlier definition", manifest.name, path)
        manifests[manifest.name] = manifest

    logger.debug("Loaded %d manifests from %s", len(manifests), directory)
    return manifests
