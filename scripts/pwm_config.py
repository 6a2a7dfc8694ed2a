"""
Settings shared by the pwm command line and terminal UI.

The container functions never read the environment; the password is resolved
here and passed to them explicitly.
"""

import logging
import os
import sys
from getpass import getpass
from pathlib import Path
from typing import Optional, Union

from pwm_errors import InvalidContainerPathError

CONTAINER_EXTENSION = ".pwm"
PASSWORD_ENV_VAR = "PWM_PASS"
LOG_LEVEL_ENV_VAR = "PWM_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def resolve_password(explicit: Optional[str], confirm: bool = False) -> str:
    """Command-line value first, then $PWM_PASS, then an interactive prompt."""
    password = explicit or os.environ.get(PASSWORD_ENV_VAR)
    if password:
        return password

    password = getpass("Container password: ")
    if not password:
        raise SystemExit(f"Password is required (use -p or set {PASSWORD_ENV_VAR}).")
    if confirm:
        repeat = getpass("Repeat container password: ")
        if password != repeat:
            raise SystemExit("Passwords do not match.")
    return password


def check_container_path(path: Union[str, Path]) -> Path:
    path = Path(path)
    if path.suffix != CONTAINER_EXTENSION:
        raise InvalidContainerPathError(path, CONTAINER_EXTENSION)
    return path


def container_path_for(name: str, directory: Union[str, Path, None] = None) -> Path:
    """``NAME`` -> ``<directory>/NAME.pwm`` (directory defaults to the cwd)."""
    base = Path(directory) if directory is not None else Path.cwd()
    if not name.endswith(CONTAINER_EXTENSION):
        name += CONTAINER_EXTENSION
    return base / name


def configure_logging(verbosity: int = 0) -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR)
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif level_name and isinstance(logging.getLevelName(level_name.upper()), int):
        level = logging.getLevelName(level_name.upper())
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
