"""Deleting protected files through pkexec."""

import logging
import os
import shutil
import subprocess
from pathlib import Path

from declutter.exceptions import PrivilegeError

log = logging.getLogger(__name__)

# Timeout for the pkexec subprocess (seconds).
_PKEXEC_TIMEOUT = 300


def is_root() -> bool:
    """Check if the current process is running as root."""
    return hasattr(os, "geteuid") and os.geteuid() == 0


def pkexec_available() -> bool:
    """Check if pkexec is available on the system."""
    return shutil.which("pkexec") is not None


def run_privileged_remove(path: Path) -> None:
    """Remove path as root via ``pkexec rm -rf``.

    Raises:
        PrivilegeError: On missing pkexec, authentication cancel/deny,
            timeout or a failing rm.
    """
    command = ["rm", "-rf", "--", str(path)]
    if not is_root():
        if not pkexec_available():
            raise PrivilegeError("pkexec is not available")
        command = ["pkexec", *command]

    try:
        proc = subprocess.run(command, capture_output=True, text=True, timeout=_PKEXEC_TIMEOUT)
    except subprocess.TimeoutExpired:
        raise PrivilegeError("Privileged delete timed out after 5 minutes")
    except OSError as e:
        raise PrivilegeError(f"Could not run privileged delete: {e}")

    if proc.returncode == 126:
        raise PrivilegeError("Authentication dismissed by user")
    if proc.returncode == 127:
        raise PrivilegeError("Authentication denied")
    if proc.returncode != 0:
        raise PrivilegeError(f"Privileged delete failed (exit {proc.returncode}): {proc.stderr.strip()}")


def delete_with_privileges(path: Path) -> bool:
    """Try to remove path with elevated rights; never raises."""
    try:
        run_privileged_remove(path)
    except PrivilegeError as e:
        log.warning("Elevated delete of %s failed: %s", path, e)
        return False
    # rm -rf succeeds on missing paths, so confirm the result
    return not os.path.lexists(path)
