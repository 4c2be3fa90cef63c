"""
Common utility functions for the patchrebase solution.
"""

import logging
import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from rich.console import Console
from rich.logging import RichHandler


# Rich console for output; logs go to stderr so stdout stays machine-readable
console = Console()
err_console = Console(stderr=True)


class RebaseError(Exception):
    """Base class for errors that abort a whole update run."""
    pass


def setup_logging(
    name: str = "patchrebase",
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Set up logging with Rich handler."""
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler with Rich
    console_handler = RichHandler(
        console=err_console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    # File handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


# Default logger
logger = setup_logging()


def check_network(
    hosts: Optional[List[str]] = None,
    timeout: int = 30,
    retries: int = 3,
) -> bool:
    """
    Check network connectivity to required hosts.

    Args:
        hosts: List of hosts to check (default: github.com)
        timeout: Connection timeout in seconds
        retries: Number of retry attempts

    Returns:
        True if any host is reachable, False otherwise
    """
    if hosts is None:
        hosts = ["github.com"]

    for attempt in range(1, retries + 1):
        for host in hosts:
            try:
                response = requests.head(
                    f"https://{host}",
                    timeout=timeout,
                    allow_redirects=True,
                )
                if response.status_code < 500:
                    logger.debug(f"Network check passed: {host} reachable")
                    return True
            except requests.RequestException:
                continue

        if attempt < retries:
            logger.warning(f"Network check attempt {attempt}/{retries} failed, retrying...")
            time.sleep(5)

    logger.error(f"Network is not available after {retries} attempts")
    return False


def run_command(
    cmd: List[str],
    cwd: Optional[Path] = None,
    timeout: Optional[int] = None,
    capture_output: bool = True,
) -> Tuple[int, str, str]:
    """
    Run a command.

    Args:
        cmd: Command and arguments as list
        cwd: Working directory
        timeout: Command timeout in seconds
        capture_output: Capture stdout and stderr

    Returns:
        Tuple of (return_code, stdout, stderr)
    """
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            timeout=timeout,
            capture_output=capture_output,
            text=True,
        )
        return result.returncode, result.stdout or "", result.stderr or ""
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd)}")
        return -1, "", f"Command timed out after {timeout}s"
    except OSError as e:
        logger.error(f"Command failed: {e}")
        return -1, "", str(e)


def safe_remove_dir(dir_path: Path) -> None:
    """Safely remove a directory and its contents."""
    if dir_path.exists() and dir_path.is_dir():
        try:
            shutil.rmtree(dir_path)
        except OSError as e:
            logger.warning(f"Failed to remove directory {dir_path}: {e}")

