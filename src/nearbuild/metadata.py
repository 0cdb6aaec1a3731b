# metadata.py
# Reading what the metadata tool leaves behind, and the Cargo manifests it
# takes its meta information from.

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ContractMetaInfo(BaseModel):
    name: str
    version: str
    authors: List[str] = Field(default_factory=list)


class ContractMetadata(BaseModel):
    """Shape of the metadata/ABI JSON written by `cargo near metadata`."""
    abi_schema_version: str
    metainfo: ContractMetaInfo
    abi: Dict[str, Any]


def load_metadata(path: str | Path) -> ContractMetadata:
    """
    Parse and validate a metadata file.

    Raises:
        FileNotFoundError: the tool did not produce the file
        ValueError: not JSON, or not metadata (pydantic's ValidationError is a ValueError)
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"metadata file not found: {path}")

    raw = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"metadata file is not valid JSON: {path}: {e}") from e

    return ContractMetadata.model_validate(data)


def read_package(manifest_path: str | Path) -> ContractMetaInfo:
    """
    Return name, version and authors from the [package] table of a Cargo.toml.
    """
    manifest_path = Path(manifest_path)
    with manifest_path.open("rb") as f:
        manifest = tomllib.load(f)

    package = manifest.get("package")
    if not isinstance(package, dict) or "name" not in package:
        raise ValueError(f"{manifest_path} has no [package] name")

    return ContractMetaInfo(
        name=package["name"],
        version=str(package.get("version", "0.0.0")),
        authors=list(package.get("authors", [])),
    )
