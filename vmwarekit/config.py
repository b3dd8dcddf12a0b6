"""Disk and driver configuration with defaults and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

DEFAULT_FUSION_APP_PATH = "/Applications/VMware Fusion.app"


class ConfigError(ValueError):
    """Raised when a configuration is invalid; carries every problem found."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: list[str] = list(errors)
        super().__init__("\n".join(self.errors))


@dataclass
class DiskConfig:
    """Settings for the virtual disks of a machine."""

    additional_disk_size: list[int] = field(default_factory=list)
    disk_adapter_type: str = ""
    disk_name: str = ""
    disk_type_id: str = ""

    def prepare(self) -> None:
        """Fill in defaults for unset fields."""
        if not self.disk_name:
            self.disk_name = "disk"
        if not self.disk_adapter_type:
            self.disk_adapter_type = "lsilogic"


@dataclass
class DriverConfig:
    """Settings that choose and reach the hypervisor."""

    fusion_app_path: str = ""
    remote_type: str = ""
    remote_datastore: str = ""
    remote_cache_datastore: str = ""
    remote_cache_directory: str = ""
    cleanup_remote_cache: bool = False
    remote_host: str = ""
    remote_port: int = 0
    remote_user: str = ""
    remote_password: str = ""
    remote_private_key: str = ""
    skip_validate_credentials: bool = False

    def prepare(self) -> None:
        """Fill in defaults and check the remote settings.

        Defaults are applied even when the configuration turns out to be
        invalid; a ConfigError listing every problem is raised afterwards.
        """
        errors: list[str] = []

        if not self.fusion_app_path:
            self.fusion_app_path = os.environ.get("FUSION_APP_PATH", "")
        if not self.fusion_app_path:
            self.fusion_app_path = DEFAULT_FUSION_APP_PATH
        if not self.remote_user:
            self.remote_user = "root"
        if not self.remote_datastore:
            self.remote_datastore = "datastore1"
        if not self.remote_cache_datastore:
            self.remote_cache_datastore = self.remote_datastore
        if not self.remote_cache_directory:
            self.remote_cache_directory = "packer_cache"
        if self.remote_port == 0:
            self.remote_port = 22

        if self.remote_type:
            if not self.remote_host:
                errors.append(
                    "'remote_host' must be specified when 'remote_type' is set"
                )
            if self.remote_type == "esx5":
                log.warning(
                    "The 'esx5' remote type is deprecated. Please use 'esxi' instead."
                )
                self.remote_type = "esxi"
            if self.remote_type != "esxi":
                errors.append("only 'esxi' value is accepted for 'remote_type'")

        if errors:
            raise ConfigError(errors)

    def validate(self, skip_export: bool) -> None:
        """Check that exporting from a remote hypervisor has credentials."""
        if skip_export:
            return
        if self.remote_type and not self.remote_password:
            raise ConfigError(
                "'remote_password' must be provided when using 'export' with 'remote_type'"
            )