import os
import stat

import pytest

from vmwarekit.driver import VmwareDriver, read_custom_device_name
from vmwarekit.tools import DriverError, Version


def _install_tool(directory, body):
    path = directory / "ovftool"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def empty_path(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


def test_read_custom_device_name_returns_device():
    data = {"ethernet0.connectiontype": "custom", "ethernet0.vnet": "vmnet8"}
    assert read_custom_device_name(data) == "vmnet8"


def test_read_custom_device_name_requires_custom_type():
    with pytest.raises(DriverError) as info:
        read_custom_device_name({"ethernet0.connectiontype": "nat"})
    assert str(info.value) == (
        "unable to determine the device name for the connection type : nat"
    )


def test_read_custom_device_name_missing_type():
    with pytest.raises(DriverError) as info:
        read_custom_device_name({})
    assert str(info.value) == (
        "unable to determine the device name for the connection type : "
    )


def test_read_custom_device_name_requires_vnet():
    with pytest.raises(DriverError) as info:
        read_custom_device_name({"ethernet0.connectiontype": "custom"})
    assert str(info.value) == (
        'unable to determine the device name for the connection type "custom" : '
    )


def test_verify_ovf_tool_skips_when_export_skipped(empty_path):
    driver = VmwareDriver()
    assert driver.verify_ovf_tool(True, False) is None
    with pytest.raises(DriverError) as info:
        driver.verify_ovf_tool(False, False)
    assert str(info.value) == "ovftool not found; install and include it in your PATH"


def test_verify_ovf_tool_reports_version(empty_path):
    _install_tool(empty_path, 'echo "VMware ovftool 4.6.3 (build-24031167)"')
    version = VmwareDriver().verify_ovf_tool(False, False)
    assert version == Version.parse("4.6.3")


def test_verify_ovf_tool_accepts_old_version_with_warning(empty_path):
    _install_tool(empty_path, 'echo "VMware ovftool 4.4.0 (build-1)"')
    version = VmwareDriver().verify_ovf_tool(False, True)
    assert str(version) == "4.4.0"


def test_verify_ovf_tool_fails_without_version(empty_path):
    _install_tool(empty_path, 'echo "no version here"')
    with pytest.raises(DriverError) as info:
        VmwareDriver().verify_ovf_tool(False, False)
    assert str(info.value) == "unable to determine the version of ovftool"


def test_export_without_ovftool(empty_path):
    with pytest.raises(DriverError) as info:
        VmwareDriver().export(["--help"])
    assert str(info.value) == "error finding ovftool in path"


def test_export_passes_arguments(empty_path, tmp_path, monkeypatch):
    out_file = tmp_path / "args.txt"
    monkeypatch.setenv("ARGS_OUT", str(out_file))
    _install_tool(empty_path, 'echo "$@" > "$ARGS_OUT"')
    result = VmwareDriver().export(["--noSSLVerify", "vm.vmx", "out.ovf"])
    assert result is None
    assert out_file.read_text().strip() == "--noSSLVerify vm.vmx out.ovf"


def test_export_failure_raises(empty_path):
    _install_tool(empty_path, 'echo "boom" >&2\nexit 1')
    with pytest.raises(DriverError) as info:
        VmwareDriver().export(["a"])
    assert str(info.value) == "error: boom"


def test_path_callables_are_used():
    driver = VmwareDriver(
        dhcp_leases_path=lambda device: os.path.join("/leases", device),
        dhcp_conf_path=lambda device: os.path.join("/conf", device, "dhcpd.conf"),
    )
    assert driver.dhcp_leases_path("vmnet8") == os.path.join("/leases", "vmnet8")
    assert driver.dhcp_conf_path("vmnet1") == os.path.join("/conf", "vmnet1", "dhcpd.conf")