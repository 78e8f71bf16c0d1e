"""
hmacpw - Secret File

The secret is the only thing hmacpw keeps on disk. It must be:
- readable and writable by its owner only (mode 0600)
- owned by the user running pw

The file content (minus trailing newlines) is used as the HMAC key as-is.
"""

import os
import logging

from hmacpw.config import secret_path


logger = logging.getLogger(__name__)

SECRET_MODE = 0o600
SECRET_DIR_MODE = 0o700


class SecretError(Exception):
    """The secret file is missing, unsafe, or empty."""


def read_secret(path: str = None) -> bytes:
    """
    Read and validate the secret file.

    Args:
        path: Secret file (default: <config_dir>/secret)

    Returns:
        Secret bytes with trailing newlines removed

    Raises:
        SecretError: Missing file, wrong mode/owner, or empty secret
    """
    path = path or secret_path()

    try:
        st = os.stat(path)
    except OSError as e:
        raise SecretError(f"failed to stat secret file: {e}") from e

    mode = st.st_mode & 0o777
    if mode != SECRET_MODE:
        raise SecretError(f"secret file mode {mode:04o}, expected {SECRET_MODE:04o}")

    if hasattr(os, "getuid") and st.st_uid != os.getuid():
        raise SecretError(
            f"secret file not owned by current user (uid={os.getuid()}, file uid={st.st_uid})"
        )

    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise SecretError(f"failed to read secret file: {e}") from e

    secret = data.rstrip(b"\n")
    if not secret:
        raise SecretError(f"secret file is empty: {path}")

    logger.debug("read secret from %s (%d bytes)", path, len(secret))
    return secret


def write_secret(path: str, secret: bytes, overwrite: bool = False) -> None:
    """
    Write a secret file with mode 0600.

    Args:
        path: Destination file
        secret: Secret bytes (a trailing newline is added)
        overwrite: Replace an existing file?

    Raises:
        SecretError: File exists (and overwrite is False) or cannot be written
    """
    if not secret:
        raise SecretError("refusing to write an empty secret")

    d = os.path.dirname(path)
    if d:
        os.makedirs(d, mode=SECRET_DIR_MODE, exist_ok=True)

    flags = os.O_WRONLY | os.O_CREAT | (os.O_TRUNC if overwrite else os.O_EXCL)
    try:
        fd = os.open(path, flags, SECRET_MODE)
    except FileExistsError as e:
        raise SecretError(f"secret file already exists: {path}") from e
    except OSError as e:
        raise SecretError(f"failed to create secret file: {e}") from e

    with os.fdopen(fd, "wb") as f:
        f.write(secret + b"\n")

    # Existing files keep their old mode on O_TRUNC; umask may strip bits
    os.chmod(path, SECRET_MODE)
    logger.debug("wrote secret to %s", path)
