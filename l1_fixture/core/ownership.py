"""
Ownership fix-up for the chain data directory

The node process in the container writes the bind-mounted data directory
as its own user, so the invoking user cannot clean it up afterwards. This
step hands the tree back. It needs root: when not already root it runs
`sudo chown -R`, which may prompt for a password.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Tuple

from ..utils.exceptions import OwnershipError

LOG = logging.getLogger(__name__)


def invoking_user() -> Tuple[int, int]:
    """uid/gid of the user who started the build, looking through sudo"""
    sudo_uid = os.environ.get("SUDO_UID")
    sudo_gid = os.environ.get("SUDO_GID")
    if sudo_uid and sudo_gid:
        return int(sudo_uid), int(sudo_gid)
    return os.getuid(), os.getgid()


def _chown_tree(path: Path, uid: int, gid: int) -> None:
    os.lchown(path, uid, gid)
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            os.lchown(os.path.join(root, name), uid, gid)


def fix_ownership(path, uid: Optional[int] = None, gid: Optional[int] = None) -> None:
    """
    Recursively chown path to uid:gid (default: the invoking user).

    Raises:
        OwnershipError: path is missing or the chown failed
    """
    path = Path(path)
    if not path.exists():
        raise OwnershipError(f"Data directory {path} does not exist", path=str(path))

    if uid is None or gid is None:
        default_uid, default_gid = invoking_user()
        uid = default_uid if uid is None else uid
        gid = default_gid if gid is None else gid

    LOG.info(f"Restoring ownership of {path} to {uid}:{gid}")
    if os.geteuid() == 0:
        try:
            _chown_tree(path, uid, gid)
        except OSError as e:
            raise OwnershipError(f"chown of {path} failed: {e}", path=str(path))
        return

    try:
        subprocess.run(["sudo", "chown", "-R", f"{uid}:{gid}", str(path)], check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise OwnershipError(f"sudo chown of {path} failed: {e}", path=str(path))
