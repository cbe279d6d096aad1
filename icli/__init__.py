"""Command-line toolbox: layered configuration, shell script builds, scaffolding, IP and VPN helpers."""

__version__ = "0.1.0"