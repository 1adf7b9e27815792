"""Core constants and paths for rtcsignal.

Single source of truth for global paths and protocol defaults.
"""

from pathlib import Path

RTCSIGNAL_DIR_NAME = ".rtcsignal"

# Route prefix = root + protocol version segment
DEFAULT_ROOT = "/.wrtc"
PROTOCOL_VERSION = "v2"
DEFAULT_PREFIX = f"{DEFAULT_ROOT}/{PROTOCOL_VERSION}"


def get_rtcsignal_dir() -> Path:
    """Get ~/.rtcsignal (global config directory)."""
    return Path.home() / RTCSIGNAL_DIR_NAME


def get_defaults_dir() -> Path:
    """Get package defaults directory (shipped with package)."""
    return Path(__file__).resolve().parent.parent / "config" / "defaults"
