"""Helpers shared by the drivers: running tools, versions and known paths."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass

log = logging.getLogger(__name__)

FUSION_PRODUCT_NAME = "VMware Fusion"
FUSION_MIN_VERSION = "13.5.0"

WORKSTATION_PRODUCT_NAME = "VMware Workstation"
WORKSTATION_MIN_VERSION = "17.5.0"
WORKSTATION_NO_LICENSE_VERSION = "17.6.2"
WORKSTATION_INSTALLATION_PATH_KEY = (
    "SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\App Paths\\vmware.exe"
)
WORKSTATION_DHCP_REGISTRY_KEY = "SYSTEM\\CurrentControlSet\\services\\VMnetDHCP\\Parameters"

PLAYER_PRODUCT_NAME = "VMware Workstation Player"
PLAYER_MIN_VERSION = "17.5.0"
PLAYER_INSTALLATION_PATH_KEY = (
    "SOFTWARE\\Microsoft\\Windows\\CurrentVersion\\App Paths\\vmplayer.exe"
)
PLAYER_DHCP_REGISTRY_KEY = "SYSTEM\\CurrentControlSet\\services\\VMnetDHCP\\Parameters"

LINUX_DEFAULT_PATH = "/etc/vmware/"
LINUX_APP_PATH = "/usr/lib/vmware/bin/"
LINUX_ISOS_PATH = "/usr/lib/vmware/isoimages/"

OVF_TOOL_DOWNLOAD_URL = (
    "https://developer.broadcom.com/tools/open-virtualization-format-ovf-tool/latest"
)
OVF_TOOL_MIN_VERSION = "4.6.0"

ARCH_AMD64 = "x86_x64"
ARCH_ARM64 = "arm64"

CLONE_TYPE_LINKED = "linked"
CLONE_TYPE_FULL = "full"

GUI_ARGUMENT_NO_GUI = "nogui"
GUI_ARGUMENT_GUI = "gui"

APP_OVF_TOOL = "ovftool"
APP_PLAYER = "vmplayer"
APP_VDISK_MANAGER = "vmware-vdiskmanager"
APP_VMRUN = "vmrun"
APP_VMWARE = "vmware"
APP_VMX = "vmware-vmx"
APP_QEMU_IMG = "qemu-img"

DHCP_VMNET_CONF_FILE = "vmnetdhcp.conf"
DHCP_VMNET_LEASES_FILE = "vmnetdhcp.leases"
NAT_VMNET_CONF_FILE = "vmnetnat.conf"
NETMAP_CONF_FILE = "netmap.conf"

PRODUCT_VERSION_RE = re.compile(r"VMware [a-z0-9-]+ (\d+\.\d+\.\d+)", re.IGNORECASE)
TECHNICAL_PREVIEW_RE = re.compile(r"VMware [a-z0-9-]+ e\.x\.p ", re.IGNORECASE)
OVF_TOOL_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")

_DHCP_LEASES_PATHS = (
    "dhcp/dhcp.leases",
    "dhcp/dhcpd.leases",
    "dhcpd/dhcp.leases",
    "dhcpd/dhcpd.leases",
)

_DHCP_CONF_PATHS = (
    "dhcp/dhcp.conf",
    "dhcp/dhcpd.conf",
    "dhcpd/dhcp.conf",
    "dhcpd/dhcpd.conf",
)

_UNKNOWN_ERROR_RE = re.compile(r"unknown error", re.IGNORECASE)

_UNKNOWN_ERROR_NOTE = (
    "Packer detected an error from the VMware hypervisor "
    "platform. Unfortunately, the error message provided is "
    "not very specific. Please check the `vmware.log` files "
    "created by the hypervisor platform when a virtual "
    "machine is started. The logs are located in the "
    "directory of the .vmx file and often contain more "
    "detailed error information.\n\nYou may need to set the "
    "command line flag --on-error=abort to prevent the plugin "
    "from cleaning up the file directory."
)

_VERSION_RE = re.compile(
    r"^v?(\d+(?:\.\d+)*)"
    r"(?:-([0-9A-Za-z\-~]+(?:\.[0-9A-Za-z\-~]+)*)"
    r"|([A-Za-z\-~][0-9A-Za-z\-~]*(?:\.[0-9A-Za-z\-~]+)*))?"
    r"(?:\+([0-9A-Za-z\-~]+(?:\.[0-9A-Za-z\-~]+)*))?$"
)


class DriverError(RuntimeError):
    """Raised when a hypervisor tool fails or cannot be used."""

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


@dataclass(frozen=True, eq=False)
class Version:
    """A dotted version number with optional pre-release and build metadata."""

    segments: tuple[int, ...]
    prerelease: str = ""
    metadata: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse text such as ``13.5.0`` or ``0.0.0-e.x.p``; raise ValueError."""
        match = _VERSION_RE.match(text.strip())
        if match is None:
            raise ValueError(f"malformed version: {text}")
        numbers = [int(part) for part in match.group(1).split(".")]
        numbers.extend([0] * (3 - len(numbers)))
        prerelease = match.group(2) or match.group(3) or ""
        return cls(tuple(numbers), prerelease, match.group(4) or "")

    def _prerelease_key(self) -> tuple:
        if not self.prerelease:
            return (1, ())
        parts = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.prerelease.split(".")
        )
        return (0, parts)

    def _key(self) -> tuple:
        width = max(len(self.segments), 3)
        padded = self.segments + (0,) * (width - len(self.segments))
        return (padded, self._prerelease_key())

    def _compare_key(self, other: Version) -> tuple[tuple, tuple]:
        width = max(len(self.segments), len(other.segments))
        mine = self.segments + (0,) * (width - len(self.segments))
        theirs = other.segments + (0,) * (width - len(other.segments))
        return (mine, self._prerelease_key()), (theirs, other._prerelease_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        mine, theirs = self._compare_key(other)
        return mine == theirs

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        mine, theirs = self._compare_key(other)
        return mine < theirs

    def __le__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self < other or self == other

    def __gt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return other < self

    def __ge__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return other <= self

    def __hash__(self) -> int:
        segments = list(self.segments)
        while len(segments) > 3 and segments[-1] == 0:
            segments.pop()
        return hash((tuple(segments), self.prerelease))

    def __str__(self) -> str:
        text = ".".join(str(number) for number in self.segments)
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


FUSION_MIN_VERSION_OBJ = Version.parse(FUSION_MIN_VERSION)
WORKSTATION_MIN_VERSION_OBJ = Version.parse(WORKSTATION_MIN_VERSION)
PLAYER_MIN_VERSION_OBJ = Version.parse(PLAYER_MIN_VERSION)
OVF_TOOL_MIN_VERSION_OBJ = Version.parse(OVF_TOOL_MIN_VERSION)


def run_and_log(args: list[str]) -> tuple[str, str]:
    """Run a command, log it, and return its stdout and stderr.

    Windows line endings are turned into Unix ones. A non-zero exit raises
    DriverError carrying the trimmed error output and both streams.
    """
    args = [str(arg) for arg in args]
    log.info("Running: %s", " ".join(args))
    try:
        completed = subprocess.run(args, capture_output=True)
    except OSError as error:
        raise DriverError(str(error)) from error

    raw_stdout = completed.stdout.decode("utf-8", errors="replace")
    raw_stderr = completed.stderr.decode("utf-8", errors="replace")
    stdout_text = raw_stdout.strip()
    stderr_text = raw_stderr.strip()

    log.info("stdout: %s", stdout_text)
    log.info("stderr: %s", stderr_text)

    stdout = raw_stdout.replace("\r\n", "\n")
    stderr = raw_stderr.replace("\r\n", "\n")

    if completed.returncode != 0:
        message = stderr_text or stdout_text
        text = f"error: {message}"
        if _UNKNOWN_ERROR_RE.search(message):
            text = f"{text}\n\n{_UNKNOWN_ERROR_NOTE}"
        raise DriverError(text, stdout=stdout, stderr=stderr)

    return stdout, stderr


def compare_versions(found: Version, required: Version, product: str) -> None:
    """Raise DriverError unless the found version meets the required one."""
    if found < required:
        raise DriverError(
            f"[ERROR] Requires {product} {required} or later; {found} installed"
        )


def get_dhcp_leases_paths() -> list[str]:
    """Return the candidate DHCP leases paths, relative to a device directory."""
    return list(_DHCP_LEASES_PATHS)


def get_dhcp_conf_paths() -> list[str]:
    """Return the candidate DHCP configuration paths, relative to a device directory."""
    return list(_DHCP_CONF_PATHS)


def get_ovf_tool() -> str:
    """Return the name of the ovftool binary if it is on PATH, else ''."""
    ovftool = APP_OVF_TOOL
    if sys.platform == "win32":
        ovftool += ".exe"
    if shutil.which(ovftool) is None:
        return ""
    return ovftool


def check_ovf_tool_version(ovftool_path: str) -> Version:
    """Run ``ovftool --version`` and return the version it reports.

    A version below the recommended minimum is only logged as a warning.
    """
    try:
        completed = subprocess.run(
            [ovftool_path, "--version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as error:
        log.warning("Error running 'ovftool --version': %s.", error)
        raise DriverError("failed to execute ovftool") from error

    output = completed.stdout.decode("utf-8", errors="replace")
    if completed.returncode != 0:
        log.warning("Error running 'ovftool --version': exit status %d.", completed.returncode)
        log.warning("Returned: %s", output)
        raise DriverError("failed to execute ovftool")

    log.info("Returned ovftool version: %s.", output)

    match = OVF_TOOL_VERSION_RE.search(output)
    if match is None:
        raise DriverError("unable to determine the version of ovftool")

    try:
        current = Version.parse(match.group(0))
    except ValueError as error:
        log.warning("Failed to parse version '%s': %s.", match.group(0), error)
        raise DriverError(f"failed to parse ovftool version: {error}") from error

    if current < OVF_TOOL_MIN_VERSION_OBJ:
        log.warning(
            "The version of ovftool (%s) is below the minimum recommended version (%s). "
            "Please download the latest version from %s.",
            current,
            OVF_TOOL_MIN_VERSION_OBJ,
            OVF_TOOL_DOWNLOAD_URL,
        )

    return current