"""Driver for VMware Fusion on macOS."""

from __future__ import annotations

import logging
import os
import platform
import subprocess
from dataclasses import dataclass

from vmwarekit.config import DEFAULT_FUSION_APP_PATH, DriverConfig
from vmwarekit.driver import VmwareDriver
from vmwarekit.tools import (
    APP_VDISK_MANAGER,
    APP_VMRUN,
    APP_VMX,
    ARCH_AMD64,
    ARCH_ARM64,
    CLONE_TYPE_FULL,
    CLONE_TYPE_LINKED,
    FUSION_MIN_VERSION_OBJ,
    FUSION_PRODUCT_NAME,
    GUI_ARGUMENT_GUI,
    GUI_ARGUMENT_NO_GUI,
    PRODUCT_VERSION_RE,
    TECHNICAL_PREVIEW_RE,
    DriverError,
    Version,
    compare_versions,
    run_and_log,
)

log = logging.getLogger(__name__)

FUSION_SUPPRESS_PLIST = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>disallowUpgrade</key>
    <true/>
</dict>
</plist>"""

_LIB_PATH = os.path.join("/", "Library", "Preferences", "VMware Fusion")
_AMD64_MACHINES = {"x86_64", "amd64"}


def _absolute(path: str) -> str:
    return os.path.abspath(os.path.normpath(path))


@dataclass
class FusionDriver(VmwareDriver):
    """Drives virtual machines through the tools bundled with VMware Fusion."""

    app_path: str = DEFAULT_FUSION_APP_PATH

    @classmethod
    def from_config(cls, driver_config: DriverConfig) -> FusionDriver:
        """Create a driver for the application path in the configuration."""
        return cls(app_path=driver_config.fusion_app_path)

    def _binary_path(self, name: str) -> str:
        return os.path.join(self.app_path, "Contents", "Library", name)

    @property
    def vmx_path(self) -> str:
        return self._binary_path(APP_VMX)

    @property
    def vmrun_path(self) -> str:
        return self._binary_path(APP_VMRUN)

    @property
    def vdisk_manager_path(self) -> str:
        return self._binary_path(APP_VDISK_MANAGER)

    def compact_disk(self, disk_path: str) -> None:
        """Defragment and then shrink a virtual disk."""
        path = _absolute(disk_path)
        run_and_log([self.vdisk_manager_path, "-d", path])
        run_and_log([self.vdisk_manager_path, "-k", path])

    def create_disk(self, output: str, size: str, adapter_type: str, type_id: str) -> None:
        """Create a virtual disk of the given size, adapter and type."""
        run_and_log(
            [
                self.vdisk_manager_path,
                "-c",
                "-s",
                size,
                "-a",
                adapter_type,
                "-t",
                type_id,
                _absolute(output),
            ]
        )

    def create_snapshot(self, vmx_path: str, snapshot_name: str) -> None:
        """Take a named snapshot of a machine."""
        run_and_log(
            [self.vmrun_path, "-T", "fusion", "snapshot", _absolute(vmx_path), snapshot_name]
        )

    def is_running(self, vmx_path: str) -> bool:
        """Tell whether the machine appears among the running ones."""
        path = _absolute(vmx_path)
        stdout, _ = run_and_log([self.vmrun_path, "-T", "fusion", "list"])
        return path in stdout.split("\n")

    def start(self, vmx_path: str, headless: bool) -> None:
        """Power on a machine, with or without its window."""
        gui = GUI_ARGUMENT_NO_GUI if headless else GUI_ARGUMENT_GUI
        run_and_log([self.vmrun_path, "-T", "fusion", "start", _absolute(vmx_path), gui])

    def stop(self, vmx_path: str) -> None:
        """Power off a machine hard; a machine that is already off is fine."""
        path = _absolute(vmx_path)
        try:
            run_and_log([self.vmrun_path, "-T", "fusion", "stop", path, "hard"])
        except DriverError:
            try:
                running = self.is_running(path)
            except DriverError:
                running = True
            if not running:
                return
            raise

    def suppress_messages(self, vmx_path: str) -> None:
        """Write a plist next to the .vmx that stops upgrade prompts."""
        directory = os.path.dirname(vmx_path)
        base = os.path.basename(vmx_path).replace(".vmx", "")
        plist_path = os.path.join(directory, base + ".plist")
        with open(plist_path, "w", encoding="utf-8") as handle:
            handle.write(FUSION_SUPPRESS_PLIST)

    def tools_install(self) -> None:
        """Nothing to do: Fusion mounts the tools image itself."""
        return None

    def clone(self, dst: str, src: str, linked: bool, snapshot: str) -> None:
        """Clone a machine, linked or full, optionally from a snapshot."""
        clone_type = CLONE_TYPE_LINKED if linked else CLONE_TYPE_FULL
        args = [
            self.vmrun_path,
            "-T",
            "fusion",
            "clone",
            _absolute(src),
            _absolute(dst),
            clone_type,
        ]
        if snapshot:
            args += ["-snapshot", snapshot]
        run_and_log(args)

    def _fusion_version(self) -> Version:
        try:
            completed = subprocess.run(
                [os.path.normpath(self.vmx_path), "-v"], capture_output=True
            )
        except OSError as error:
            raise DriverError(f"error getting version: {error}") from error
        if completed.returncode != 0:
            raise DriverError(
                f"error getting version: exit status {completed.returncode}"
            )

        output = completed.stderr.decode("utf-8", errors="replace")
        if TECHNICAL_PREVIEW_RE.search(output):
            log.info("%s: e.x.p (Tech Preview)", FUSION_PRODUCT_NAME)
            return Version.parse("0.0.0-e.x.p")

        match = PRODUCT_VERSION_RE.search(output)
        if match is None:
            raise DriverError(f"error parsing version from output: {output}")
        try:
            return Version.parse(match.group(1))
        except ValueError as error:
            raise DriverError(f"error parsing version: {error}") from error

    def _require(self, path: str, name: str) -> None:
        try:
            os.stat(path)
        except FileNotFoundError:
            raise DriverError(f"{name} not found at: {path}") from None
        log.info("- %s found at: %s", name, path)

    def verify(self) -> Version:
        """Check the installation and set up the network file paths."""
        log.info("Searching for %s...", FUSION_PRODUCT_NAME)
        try:
            version = self._fusion_version()
        except DriverError as error:
            raise DriverError(
                f"error getting {FUSION_PRODUCT_NAME} version: {error}"
            ) from error

        log.info("%s: %s", FUSION_PRODUCT_NAME, version)
        log.info("Checking %s paths...", FUSION_PRODUCT_NAME)

        self._require(self.app_path, f"{FUSION_PRODUCT_NAME}.app")
        self._require(self.vmx_path, APP_VMX)
        self._require(self.vmrun_path, APP_VMRUN)
        self._require(self.vdisk_manager_path, APP_VDISK_MANAGER)

        self.dhcp_leases_path = lambda device: (
            "/var/db/vmware/vmnet-dhcpd-" + device + ".leases"
        )
        self.dhcp_conf_path = lambda device: os.path.join(_LIB_PATH, device, "dhcpd.conf")
        self.vmnetnat_conf_path = lambda device: os.path.join(
            _LIB_PATH, device, "nat.conf"
        )

        compare_versions(version, FUSION_MIN_VERSION_OBJ, FUSION_PRODUCT_NAME)
        return version

    def tools_iso_path(self, flavor: str) -> str:
        """Return the path of the tools image for a guest flavor."""
        machine = platform.machine().lower()
        arch = ARCH_AMD64 if machine in _AMD64_MACHINES else ARCH_ARM64
        log.info("Selected architecture: %s", arch)
        return os.path.join(
            self.app_path, "Contents", "Library", "isoimages", arch, flavor + ".iso"
        )

    def get_vmware_driver(self) -> VmwareDriver:
        """Return the shared driver part with its path callables."""
        return VmwareDriver(
            dhcp_leases_path=self.dhcp_leases_path,
            dhcp_conf_path=self.dhcp_conf_path,
            vmnetnat_conf_path=self.vmnetnat_conf_path,
            network_mapper=self.network_mapper,
        )