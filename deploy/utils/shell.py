"""Subprocess execution for registry client commands.

Commands are always run with shell=False. Output is captured with ANSI
escape codes stripped so it can be shown in error details. Secrets passed
on the command line are masked before a command is echoed or stored on
an exception.
"""

import re
import shlex
import subprocess
from collections.abc import Iterable
from pathlib import Path


class ShellError(Exception):
    """Exception raised when a command exits non-zero or cannot be run.

    Attributes:
        cmd: The command that failed (secrets masked)
        returncode: Exit code, or None if the command never completed
        stdout: Standard output (ANSI stripped)
        stderr: Standard error (ANSI stripped)
    """

    def __init__(
        self,
        cmd: str,
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")

    def __str__(self) -> str:
        parts = [f"Command failed: {self.cmd}"]
        if self.returncode is None:
            parts.append("Command did not complete")
        else:
            parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr}")
        if self.stdout:
            parts.append(f"Stdout: {self.stdout}")
        return "\n".join(parts)


ANSI_PATTERN = re.compile(
    r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences and control characters from text."""
    if not text:
        return ""
    result = ANSI_PATTERN.sub("", text)
    return CONTROL_CHARS_PATTERN.sub("", result)


def obfuscate(secret: str, visible: int = 4) -> str:
    """Mask a secret for display, keeping only its last few characters.

    Args:
        secret: Value to mask
        visible: Number of trailing characters to keep

    Returns:
        Twenty asterisks followed by the trailing characters
    """
    if not secret:
        return ""
    tail = secret[-visible:] if len(secret) > visible else ""
    return "*" * 20 + tail


def format_command(cmd_list: list[str], secrets: Iterable[str] = ()) -> str:
    """Join a command for display, masking any secret values in it."""
    text = shlex.join(cmd_list)
    for secret in secrets:
        if secret:
            text = text.replace(secret, obfuscate(secret))
    return text


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    check: bool = True,
    timeout: int = 300,
    secrets: Iterable[str] = (),
) -> subprocess.CompletedProcess[str]:
    """Execute a command.

    Args:
        cmd: Command to execute (string or list of arguments)
        cwd: Working directory for the command
        check: Whether to raise ShellError on non-zero exit
        timeout: Maximum execution time in seconds
        secrets: Values to mask in the command text carried by ShellError

    Returns:
        CompletedProcess with ANSI-stripped stdout/stderr

    Raises:
        ShellError: If the command exits non-zero (with check=True), times
            out, or the executable cannot be found
    """
    cmd_list = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
    secrets = list(secrets)

    try:
        result = subprocess.run(
            cmd_list,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise ShellError(
            cmd=format_command(cmd_list, secrets),
            returncode=None,
            stderr=f"Timed out after {timeout}s",
        ) from e
    except FileNotFoundError as e:
        raise ShellError(
            cmd=format_command(cmd_list, secrets),
            returncode=None,
            stderr=f"Executable not found: {cmd_list[0]}",
        ) from e

    result.stdout = strip_ansi(result.stdout) if result.stdout else ""
    result.stderr = strip_ansi(result.stderr) if result.stderr else ""

    if check and result.returncode != 0:
        raise ShellError(
            cmd=format_command(cmd_list, secrets),
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    return result
