"""Tally: live signup counter with trend statistics and an adaptive time-series chart."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tally")
except PackageNotFoundError:
    # source checkout that was never installed
    __version__ = "0.0.0+local"
