import os
import subprocess
import sys
from unittest import mock

import pytest

from vmwarekit.tools import (
    DriverError,
    Version,
    check_ovf_tool_version,
    compare_versions,
    get_dhcp_conf_paths,
    get_dhcp_leases_paths,
    get_ovf_tool,
    run_and_log,
)


def _python(code):
    return [sys.executable, "-c", code]


def test_version_ordering():
    assert Version.parse("13.0.0") < Version.parse("13.5.0")
    assert Version.parse("17.6.2") > Version.parse("17.5.0")
    assert Version.parse("4.6.0") == Version.parse("4.6")


def test_version_prerelease_is_lower_than_release():
    preview = Version.parse("0.0.0-e.x.p")
    assert preview < Version.parse("0.0.0")
    assert preview < Version.parse("13.5.0")
    assert preview.prerelease == "e.x.p"


def test_version_ignores_metadata_for_equality():
    assert Version.parse("1.2.3+build") == Version.parse("1.2.3")


def test_version_string_round_trip():
    for text in ("13.5.0", "17.6.2", "0.0.0-e.x.p"):
        assert str(Version.parse(text)) == text


def test_version_parse_rejects_garbage():
    with pytest.raises(ValueError):
        Version.parse("not a version")


def test_compare_versions_accepts_equal_and_newer():
    compare_versions(Version.parse("13.5.0"), Version.parse("13.5.0"), "VMware Fusion")
    compare_versions(Version.parse("17.6.2"), Version.parse("17.5.0"), "VMware Workstation")
    assert Version.parse("17.6.2") >= Version.parse("17.5.0")


def test_compare_versions_rejects_older():
    with pytest.raises(DriverError) as info:
        compare_versions(Version.parse("13.0.0"), Version.parse("13.5.0"), "VMware Fusion")
    assert str(info.value) == "[ERROR] Requires VMware Fusion 13.5.0 or later; 13.0.0 installed"


def test_run_and_log_returns_output():
    stdout, stderr = run_and_log(_python("import sys; print('hello'); print('warn', file=sys.stderr)"))
    assert stdout.strip() == "hello"
    assert stderr.strip() == "warn"


def test_run_and_log_normalises_line_endings():
    stdout, _ = run_and_log(_python("import sys; sys.stdout.buffer.write(b'a\\r\\nb\\r\\n')"))
    assert stdout == "a\nb\n"


def test_run_and_log_error_uses_stderr():
    with pytest.raises(DriverError) as info:
        run_and_log(_python("import sys; print('out'); print('bad thing', file=sys.stderr); sys.exit(1)"))
    assert str(info.value) == "error: bad thing"
    assert info.value.stdout.strip() == "out"


def test_run_and_log_error_falls_back_to_stdout():
    with pytest.raises(DriverError) as info:
        run_and_log(_python("import sys; print('only stdout'); sys.exit(2)"))
    assert str(info.value) == "error: only stdout"


def test_run_and_log_unknown_error_adds_note():
    with pytest.raises(DriverError) as info:
        run_and_log(_python("import sys; print('Unknown Error', file=sys.stderr); sys.exit(1)"))
    message = str(info.value)
    assert message.startswith("error: Unknown Error\n\n")
    assert "vmware.log" in message


def test_run_and_log_missing_program():
    with pytest.raises(DriverError):
        run_and_log([os.path.join(os.sep, "nonexistent", "program-xyz")])


def test_dhcp_paths_are_copies():
    leases = get_dhcp_leases_paths()
    assert leases[0] == "dhcp/dhcp.leases"
    assert len(leases) == 4
    leases.clear()
    assert len(get_dhcp_leases_paths()) == 4

    confs = get_dhcp_conf_paths()
    assert confs[-1] == "dhcpd/dhcpd.conf"
    confs.append("extra")
    assert "extra" not in get_dhcp_conf_paths()


def test_get_ovf_tool_missing(tmp_path, monkeypatch):
    monkeypatch.setenv("PATH", str(tmp_path))
    assert get_ovf_tool() == ""


def test_get_ovf_tool_found(tmp_path, monkeypatch):
    name = "ovftool.exe" if sys.platform == "win32" else "ovftool"
    tool = tmp_path / name
    tool.write_text("#!/bin/sh\n")
    tool.chmod(0o755)
    monkeypatch.setenv("PATH", str(tmp_path))
    assert get_ovf_tool() == name


def test_check_ovf_tool_version_reads_real_output():
    info = sys.version_info
    expected = Version.parse(f"{info.major}.{info.minor}.{info.micro}")
    assert check_ovf_tool_version(sys.executable) == expected


def test_check_ovf_tool_version_missing_program():
    with pytest.raises(DriverError, match="failed to execute ovftool"):
        check_ovf_tool_version(os.path.join(os.sep, "nonexistent", "ovftool"))


def _completed(output, code=0):
    return subprocess.CompletedProcess(["ovftool", "--version"], code, stdout=output)


def test_check_ovf_tool_version_nonzero_exit():
    with mock.patch("vmwarekit.tools.subprocess.run", return_value=_completed(b"boom", 1)):
        with pytest.raises(DriverError, match="failed to execute ovftool"):
            check_ovf_tool_version("ovftool")


def test_check_ovf_tool_version_without_version():
    with mock.patch("vmwarekit.tools.subprocess.run", return_value=_completed(b"VMware ovftool")):
        with pytest.raises(DriverError, match="unable to determine the version of ovftool"):
            check_ovf_tool_version("ovftool")


def test_check_ovf_tool_version_old_version_only_warns():
    output = b"VMware ovftool 4.4.0 (build-123)"
    with mock.patch("vmwarekit.tools.subprocess.run", return_value=_completed(output)):
        found = check_ovf_tool_version("ovftool")
    assert found == Version.parse("4.4.0")
    assert found < Version.parse("4.6.0")