"""Base driver behaviour shared by every hypervisor driver."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from vmwarekit.tools import (
    DriverError,
    Version,
    check_ovf_tool_version,
    get_ovf_tool,
    run_and_log,
)

log = logging.getLogger(__name__)


def read_custom_device_name(vmx_data: Mapping[str, str]) -> str:
    """Return the custom network device named in a machine's .vmx settings."""
    connection_type = vmx_data.get("ethernet0.connectiontype", "")
    if connection_type != "custom":
        raise DriverError(
            "unable to determine the device name for the connection type : "
            f"{connection_type}"
        )

    device = vmx_data.get("ethernet0.vnet", "")
    if not device:
        raise DriverError(
            "unable to determine the device name for the connection type "
            f'"{connection_type}" : {device}'
        )
    return device


@dataclass
class VmwareDriver:
    """Paths and helpers common to the hypervisor drivers.

    A concrete driver fills in the path callables so that address detection
    can find the DHCP and NAT files for a network device.
    """

    dhcp_leases_path: Callable[[str], str] | None = None
    dhcp_conf_path: Callable[[str], str] | None = None
    vmnetnat_conf_path: Callable[[str], str] | None = None
    network_mapper: Callable[[], Any] | None = None

    def export(self, args: Sequence[str]) -> None:
        """Run ovftool with the given arguments to export a machine."""
        ovftool = get_ovf_tool()
        if not ovftool:
            raise DriverError("error finding ovftool in path")
        run_and_log([ovftool, *args])

    def verify_ovf_tool(
        self, skip_export: bool, skip_validate_credentials: bool
    ) -> Version | None:
        """Check that ovftool is on PATH and report its version.

        Nothing is checked when the export is skipped, and None is returned.
        """
        if skip_export:
            return None

        log.info("Verifying that ovftool exists...")
        ovftool_path = get_ovf_tool()
        if not ovftool_path:
            raise DriverError("ovftool not found; install and include it in your PATH")

        log.info("Checking ovftool version...")
        return check_ovf_tool_version(ovftool_path)