"""Cross-platform helpers for the git configuration adapter."""

import platform
import shutil
import subprocess
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Union


class PlatformType(Enum):
    """Supported platform types."""
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    UNKNOWN = "unknown"


class PlatformInfo:
    """Platform information and utilities."""

    def __init__(self):
        """Initialize platform detection."""
        self._platform_type = self._detect_platform()
        self._is_windows = self._platform_type == PlatformType.WINDOWS

    def _detect_platform(self) -> PlatformType:
        """Detect the current platform."""
        system = platform.system().lower()

        if system == "windows":
            return PlatformType.WINDOWS
        elif system == "darwin":
            return PlatformType.MACOS
        elif system == "linux":
            return PlatformType.LINUX
        else:
            return PlatformType.UNKNOWN

    @property
    def is_windows(self) -> bool:
        """Check if running on Windows."""
        return self._is_windows


_platform_info: Optional[PlatformInfo] = None


def get_platform_info() -> PlatformInfo:
    """Get the global platform info instance."""
    global _platform_info
    if _platform_info is None:
        _platform_info = PlatformInfo()
    return _platform_info


def normalize_path(path: Union[str, Path]) -> Path:
    """
    Normalize a path for the current platform.

    Args:
        path: Path to normalize

    Returns:
        Normalized Path object
    """
    if isinstance(path, str):
        path = Path(path)

    # Expand ~ first, then make absolute
    return path.expanduser().resolve()


def get_platform_specific_defaults() -> Dict[str, Any]:
    """
    Get platform-specific configuration defaults.

    The clone root is the process temp directory, looked up once here so the
    rest of the adapter receives it as an explicit setting.
    """
    platform_info = get_platform_info()

    defaults = {
        'clone_root': Path(tempfile.gettempdir()),
        'default_ref': "master",
        'entry_file': "Caddyfile",
        'config_format': "caddyfile",
        'caddy_bin': "caddy",
        'loader_timeout': 30.0,
        'log_level': "INFO",
    }

    if platform_info.is_windows:
        defaults['caddy_bin'] = "caddy.exe"

    return defaults


def get_git_executable() -> str:
    """Get the Git executable name for the current platform."""
    if get_platform_info().is_windows:
        return "git.exe"
    return "git"


def find_executable(name: str) -> Optional[str]:
    """Return the full path of an executable on PATH, or None."""
    return shutil.which(name)


def validate_git_availability() -> tuple[bool, Optional[str]]:
    """
    Validate that Git is available on the current platform.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_cmd = get_git_executable()

    try:
        result = subprocess.run(
            [git_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=10
        )

        if result.returncode == 0:
            return True, None
        else:
            return False, f"Git command failed: {result.stderr}"

    except FileNotFoundError:
        return False, f"Git executable '{git_cmd}' not found"
    except subprocess.TimeoutExpired:
        return False, "Git command timed out"
