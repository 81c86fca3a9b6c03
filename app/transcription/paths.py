"""
Host <-> container path translation for the whisper worker.

Docker Desktop on Windows misreads "C:/path" in a -v flag (the second colon looks like
a mode separator), and WSL exposes drives under /mnt/<drive>. Both are rewritten to the
"/<drive>/path" form the container runtime accepts.
"""
import ntpath
import os
import posixpath
import re

_DRIVE_RE = re.compile(r"^([a-zA-Z]):/")


def to_docker_host_path(path: str) -> str:
    """Translate an absolute host directory into Docker volume syntax.

    C:\\Users\\me\\uploads  -> /c/Users/me/uploads
    D:/data/uploads        -> /d/data/uploads
    /mnt/c/data/uploads    -> /c/data/uploads
    /srv/uploads           -> /srv/uploads
    """
    if not (path.startswith("/") or _is_windows_path(path)):
        path = os.path.abspath(path)
    if _is_windows_path(path):
        p = ntpath.normpath(path).replace("\\", "/")
    else:
        p = posixpath.normpath(path)

    if p.startswith("/mnt/"):
        return "/" + p[len("/mnt/"):]

    m = _DRIVE_RE.match(p)
    if m:
        return f"/{m.group(1).lower()}/{p[3:]}".rstrip("/")
    return p


def to_container_path(host_path: str, host_root: str, mount_point: str) -> str:
    """Map a host file under host_root to the same file under the container's mount point.

    Files outside host_root map to mount_point/<basename>, which matches the disposable
    container case where only the file's own directory is mounted.
    """
    sep_host = host_path.replace("\\", "/")
    sep_root = host_root.replace("\\", "/").rstrip("/")
    if sep_root and sep_host.startswith(sep_root + "/"):
        rel = sep_host[len(sep_root) + 1:]
    else:
        rel = posixpath.basename(sep_host)
    return posixpath.join(mount_point.rstrip("/") or "/", rel)


def _is_windows_path(path: str) -> bool:
    return bool(_DRIVE_RE.match(path.replace("\\", "/"))) or "\\" in path
