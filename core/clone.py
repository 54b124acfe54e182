import subprocess
from typing import List, Optional

from core.herald import Herald
from utils import shell
from utils.errors import CommandFailedError, ExecutionFailedError, GitCloneFailedError, GitNotFoundError
from utils.logger import logger

HTTPS_URL = "https://github.com/mozilla-mobile/firefox-ios.git"
SSH_URL = "git@github.com:mozilla-mobile/firefox-ios.git"


def require_git_available() -> None:
    """
    Checks that `git --version` runs.

    Raises:
        GitNotFoundError: If git is missing or broken.
    """
    try:
        subprocess.run(
            ["git", "--version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as e:
        logger.debug(f"git availability check failed: {e}")
        raise GitNotFoundError() from e


def clone_arguments(ssh: bool = False, location: Optional[str] = None) -> List[str]:
    """Builds the `git clone` arguments for the requested URL flavour and target directory."""
    arguments = ["clone", SSH_URL if ssh else HTTPS_URL]
    if location:
        arguments.append(location)
    return arguments


def clone_repository(herald: Herald, ssh: bool = False, location: Optional[str] = None) -> None:
    """
    Clones firefox-ios, streaming git's progress to the terminal.

    Raises:
        GitNotFoundError: If git is not available.
        GitCloneFailedError: If `git clone` exits with a non-zero status.
    """
    require_git_available()

    herald.declare("Cloning firefox-ios. This may take a while. Grab a coffee. Go pet a fox.")
    try:
        shell.run("git", clone_arguments(ssh, location))
    except CommandFailedError as e:
        raise GitCloneFailedError(e.exit_code) from e
    except ExecutionFailedError as e:
        raise GitNotFoundError() from e
    herald.declare("Cloning done.", as_conclusion=True)
