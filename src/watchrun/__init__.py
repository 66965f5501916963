"""Watch files and re-run a command when they change."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("watchrun")
except PackageNotFoundError:  # development mode
    __version__ = "0.0.0.dev0"
