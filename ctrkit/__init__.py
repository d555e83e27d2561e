"""Building blocks for a containerd command-line client: flag parsing, spec settings, output text, rootless and OCI hook helpers."""

__version__ = "0.1.0"