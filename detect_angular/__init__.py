"""
Detect Angular dashboards package.

This package hosts the detection engine that flags Grafana dashboards which
depend on Angular-based plugins, together with the HTTP adapters, the CLI and
the long-running HTTP server mode. See README.md for usage.
"""

from .__version__ import __version__

__all__ = ["__version__"]
