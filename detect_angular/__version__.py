"""
Version information for detect-angular-dashboards.

Installed copies report the distribution version; a source checkout falls
back to the version declared in pyproject.toml.
"""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _pyproject_version() -> str:
    pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        with pyproject.open("rb") as fh:
            return tomllib.load(fh)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "0.0.0-dev"


try:
    __version__ = version("detect-angular-dashboards")
except PackageNotFoundError:
    __version__ = _pyproject_version()
