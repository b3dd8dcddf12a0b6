"""Configuration, artifacts, OVF Tool helpers and a VMware Fusion driver for building VMware virtual machine images."""

__version__ = "0.1.0"