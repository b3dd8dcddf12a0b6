"""Build artifacts: the files that make up a finished virtual machine."""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

BUILDER_ID = "mitchellh.vmware"
BUILDER_ID_ESX = "mitchellh.vmware-esx"

ARTIFACT_CONF_FORMAT = "artifact.conf.format"
ARTIFACT_CONF_KEEP_REGISTERED = "artifact.conf.keep_registered"
ARTIFACT_CONF_SKIP_EXPORT = "artifact.conf.skip_export"


class OutputDir(Protocol):
    """A directory that holds the files of a build."""

    def list_files(self) -> list[str]: ...

    def remove_all(self) -> None: ...


@dataclass
class LocalOutputDir:
    """An output directory on the local file system."""

    path: str

    def list_files(self) -> list[str]:
        """Return the paths of all files below the directory."""
        if not os.path.isdir(self.path):
            raise FileNotFoundError(f"output directory not found: {self.path}")
        files: list[str] = []
        for root, dirs, names in os.walk(self.path):
            dirs.sort()
            files.extend(os.path.join(root, name) for name in sorted(names))
        return files

    def remove_all(self) -> None:
        """Remove the directory and everything in it; a missing one is fine."""
        if Path(self.path).exists():
            shutil.rmtree(self.path)

    def __str__(self) -> str:
        return self.path


@dataclass
class Artifact:
    """The result of a build: the machine's files and their settings."""

    builder_id: str
    id: str
    dir: OutputDir | None
    files: list[str]
    config: dict[str, str] = field(default_factory=dict)
    state_data: dict[str, Any] = field(default_factory=dict)

    def state(self, name: str) -> Any:
        """Look a value up in the shared state data, then in the config."""
        if name in self.state_data:
            return self.state_data[name]
        return self.config.get(name)

    def destroy(self) -> None:
        """Remove the artifact's files."""
        if self.dir is not None:
            self.dir.remove_all()

    def __str__(self) -> str:
        return f"VM files in directory: {self.dir}"


def new_artifact(
    remote_type: str,
    format: str,
    export_output_path: str,
    vm_name: str,
    skip_export: bool,
    keep_registered: bool,
    state: Mapping[str, Any],
) -> Artifact:
    """Build the artifact for a finished build from the build state."""
    if remote_type and not skip_export:
        directory: OutputDir = LocalOutputDir(export_output_path)
    else:
        directory = state["dir"]
    files = directory.list_files()

    builder_id = BUILDER_ID_ESX if remote_type else BUILDER_ID
    config = {
        ARTIFACT_CONF_KEEP_REGISTERED: str(bool(keep_registered)).lower(),
        ARTIFACT_CONF_FORMAT: format,
        ARTIFACT_CONF_SKIP_EXPORT: str(bool(skip_export)).lower(),
    }
    return Artifact(
        builder_id=builder_id,
        id=vm_name,
        dir=directory,
        files=files,
        config=config,
        state_data={"generated_data": state.get("generated_data")},
    )