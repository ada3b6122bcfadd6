"""Pydantic schemas for uepm data files.

This module defines the data models for:
- uepm.yaml (project settings)
- .uepm_links.json (link manifest kept in the plugins directory)
"""

from pathlib import PurePath, PurePosixPath, PureWindowsPath
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Common Types
# =============================================================================

LinkMode = Literal["auto", "copy"]

# Name of the tool, used to build the manifest file name
MANAGER_NAME = "uepm"


def is_valid_plugin_name(name: str) -> bool:
    """Check that a plugin name is a single plain path component.

    Links are created at ``<plugins_dir>/<plugin_name>``, so a name must not
    be able to point anywhere else.
    """
    if not name or name in (".", ".."):
        return False
    flavours: tuple[type[PurePath], ...] = (PurePosixPath, PureWindowsPath)
    return all(flavour(name).name == name for flavour in flavours)


# =============================================================================
# Link Manifest Models
# =============================================================================


class LinkRecord(BaseModel):
    """One plugin provided by one installed package.

    ``target_dir`` is where the plugin lives inside the package, not the
    location of the link that exposes it.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    plugin_name: str = Field(alias="pluginName")
    package_name: str = Field(alias="packageName")
    target_dir: str = Field(alias="targetDir")

    @field_validator("plugin_name")
    @classmethod
    def plugin_name_is_component(cls, v: str) -> str:
        if not v:
            raise ValueError("pluginName must not be empty")
        if not is_valid_plugin_name(v):
            raise ValueError(f"pluginName must be a single path component: {v!r}")
        return v

    def to_json(self) -> dict[str, str]:
        """Serialize using the on-disk camelCase field names."""
        return self.model_dump(by_alias=True)


class LinkManifest(BaseModel):
    """Links created by uepm in one plugins directory.

    Stored at ``<plugins_dir>/.uepm_links.json``.
    """

    links: list[LinkRecord] = Field(default_factory=list)


# =============================================================================
# Project Settings
# =============================================================================


class ProjectSettings(BaseModel):
    """Project settings (uepm.yaml)."""

    plugins_dir: str | None = None
    link_mode: LinkMode = "auto"
    packages_dir: str = "node_modules"

    @field_validator("packages_dir")
    @classmethod
    def packages_dir_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("packages_dir must not be empty")
        return v
