# vmwarekit

Building blocks for producing virtual machine images with VMware
hypervisors: configuration with defaults and validation, build artifacts,
VMware OVF Tool helpers and a driver for VMware Fusion on macOS.

## Installation

```
pip install vmwarekit
```

The package has no dependencies outside the standard library. The Fusion
driver and the export helpers run the hypervisor's own command-line tools
(`vmrun`, `vmware-vdiskmanager`, `vmware-vmx`, `ovftool`), so those must be
installed for those parts to work.

## Configuration (`vmwarekit.config`)

```python
from vmwarekit.config import ConfigError, DiskConfig, DriverConfig

disk = DiskConfig()
disk.prepare()
print(disk.disk_name, disk.disk_adapter_type)   # disk lsilogic

driver_config = DriverConfig(remote_type="esxi", remote_host="esxi.example.com")
driver_config.prepare()
print(driver_config.remote_port, driver_config.remote_user)   # 22 root

try:
    DriverConfig(remote_type="esxi").prepare()
except ConfigError as error:
    print(error.errors)
    # ["'remote_host' must be specified when 'remote_type' is set"]
```

`DiskConfig.prepare()` sets `disk_name` to `disk` and `disk_adapter_type`
to `lsilogic` when they are empty.

`DriverConfig.prepare()` fills in the defaults: the Fusion application path
(from the `FUSION_APP_PATH` environment variable, otherwise
`/Applications/VMware Fusion.app`), user `root`, datastore `datastore1`,
a cache datastore equal to the datastore, cache directory `packer_cache` and
port `22`. It turns the deprecated `esx5` remote type into `esxi` with a
logged warning. Defaults are always applied; afterwards, if there are
problems (a missing `remote_host`, or a remote type other than `esxi`), it
raises `ConfigError`, whose `errors` attribute lists every one of them.

`DriverConfig.validate(skip_export)` raises `ConfigError` when a remote type
is set, the export is not skipped and no `remote_password` is given.

## Artifacts (`vmwarekit.artifact`)

```python
from vmwarekit.artifact import LocalOutputDir, new_artifact

state = {"dir": LocalOutputDir("output-vm"), "generated_data": {}}
artifact = new_artifact("", "ovf", "", "my-vm", False, False, state)
print(artifact)                              # VM files in directory: output-vm
print(artifact.builder_id)                   # mitchellh.vmware
print(artifact.files)                        # every file below output-vm
print(artifact.state("artifact.conf.format"))          # ovf
print(artifact.state("artifact.conf.keep_registered")) # false
artifact.destroy()                           # removes the output directory
```

When a remote type is given and the export is not skipped, the artifact's
files are listed from `export_output_path` and the builder id is
`mitchellh.vmware-esx`; otherwise the directory is taken from `state["dir"]`.
`Artifact.state(name)` looks first in the shared state data (which holds
`generated_data`) and then in the artifact's settings, returning `None` when
neither has the name.

`LocalOutputDir.list_files()` returns the paths of all files below the
directory in sorted order and raises `FileNotFoundError` if it does not
exist; `remove_all()` deletes it and ignores a missing directory.

## Tools and versions (`vmwarekit.tools`)

```python
from vmwarekit.tools import (
    DriverError, Version, check_ovf_tool_version, compare_versions,
    get_ovf_tool, run_and_log,
)

ovftool = get_ovf_tool()                     # "" when not on PATH
if ovftool:
    print(check_ovf_tool_version(ovftool))   # e.g. 4.6.2

compare_versions(Version.parse("13.6.0"), Version.parse("13.5.0"), "VMware Fusion")

stdout, stderr = run_and_log(["echo", "hello"])
```

- `run_and_log(args)` runs a command, logs it, and returns its standard output
  and error with Windows line endings turned into Unix ones. A non-zero exit
  (or a program that cannot be started) raises `DriverError`; output that
  mentions an unknown error gets an extra note pointing at the `vmware.log`
  files.
- `compare_versions(found, required, product)` raises `DriverError` when the
  found version is older than the required one.
- `check_ovf_tool_version(path)` runs `ovftool --version` and returns the
  reported `Version`. A version below 4.6.0 is only logged as a warning;
  failure to run the tool or to find a version raises `DriverError`.
- `Version.parse(text)` reads versions such as `13.5.0` or `0.0.0-e.x.p`
  and raises `ValueError` for malformed text. Versions compare numerically,
  and a pre-release sorts before its release.
- `get_dhcp_leases_paths()` and `get_dhcp_conf_paths()` return the candidate
  relative locations of DHCP leases and configuration files.

## Drivers (`vmwarekit.driver`, `vmwarekit.fusion`)

```python
from vmwarekit.config import DriverConfig
from vmwarekit.fusion import FusionDriver

config = DriverConfig()
config.prepare()
driver = FusionDriver.from_config(config)
driver.verify()                              # returns the installed Version
driver.create_disk("output/disk.vmdk", "40960M", "lsilogic", "1")
driver.start("output/vm.vmx", headless=True)
print(driver.is_running("output/vm.vmx"))
driver.stop("output/vm.vmx")
```

`FusionDriver` runs the tools inside the Fusion application bundle:

- `verify()` reads the version from `vmware-vmx -v` (a technical preview is
  reported as `0.0.0-e.x.p`), checks that the application, `vmware-vmx`,
  `vmrun` and `vmware-vdiskmanager` exist, sets the DHCP leases,
  DHCP configuration and NAT configuration path callables, and raises
  `DriverError` for anything older than 13.5.0.
- `create_disk`, `compact_disk` (defragment, then shrink), `create_snapshot`,
  `clone` (linked or full, optionally from a snapshot), `start`, `stop` and
  `is_running` work on absolute paths. `stop` powers off hard and does not
  fail if the machine turns out not to be running.
- `suppress_messages(vmx_path)` writes a `.plist` next to the `.vmx` that
  disables upgrade prompts; `tools_install()` does nothing.
- `tools_iso_path(flavor)` returns the VMware Tools image for the host's
  architecture (`x86_x64` or `arm64`).
- `get_vmware_driver()` returns the shared `VmwareDriver` part with the
  path callables.

`VmwareDriver.export(args)` runs `ovftool` with the given arguments, and
`VmwareDriver.verify_ovf_tool(skip_export, skip_validate_credentials)` checks
that `ovftool` is on PATH and returns its version, or returns `None` without
checking when the export is skipped. `read_custom_device_name(vmx_data)`
returns the custom network device (`ethernet0.vnet`) from parsed `.vmx`
settings and raises `DriverError` if the connection type is not `custom`.

## What this package does not do

- Only VMware Fusion has a driver. There are no drivers for VMware
  Workstation, Workstation Player or remote ESXi hosts, and nothing picks a
  driver for the host automatically.
- It does not read `.vmx` files, DHCP lease files, DHCP configuration or
  network mapping files, so it does not find guest or host addresses. The
  `network_mapper` of a driver is left unset.
- It has no command-line program; it is a library to be called from Python.