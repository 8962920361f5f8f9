#!/usr/bin/env python3

import re
import subprocess
import threading
from typing import List, Optional, Sequence

from .logger import log_message

# Every external process invocation is serialized through this lock
_command_lock = threading.Lock()

ANSI_ESCAPE_PATTERN = re.compile(r'\x1b\[[0-9;?]*[A-Za-z]|\r')


class ProcessError(Exception):
    """Raised when an external process cannot be run or does not complete."""
    def __init__(self, message: str, command: Optional[Sequence[str]] = None,
                 returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr


class CommandFailedError(ProcessError):
    """Raised when an external process exits with a non-zero status."""
    pass


def strip_ansi(text: str) -> str:
    """Removes terminal escape sequences and carriage returns from CLI output."""
    return ANSI_ESCAPE_PATTERN.sub('', text or '')


def run_command(command, check=True, capture_output=True, text=True, timeout=None, sudo=False, env=None, cwd=None):
    """Runs an external command without a shell, optionally with sudo.

    Raises:
        ProcessError: binary missing, not executable, or timed out
        CommandFailedError: non-zero exit when check is True
    """
    full_command: List[str] = []
    if sudo:
        full_command.append("sudo")

    if isinstance(command, (list, tuple)):
        full_command.extend(str(part) for part in command)
    else:
        full_command.extend(command.split())

    cmd_str = ' '.join(full_command)
    log_message(5, f"Running command: {cmd_str}")

    try:
        with _command_lock:
            result = subprocess.run(
                full_command,
                check=False,
                capture_output=capture_output,
                text=text,
                timeout=timeout,
                env=env,
                cwd=cwd
            )
    except FileNotFoundError as e:
        log_message(1, f"Command not found: {cmd_str}")
        raise ProcessError(f"Command not found: {full_command[0]}", command=full_command) from e
    except PermissionError as e:
        log_message(1, f"Permission denied running: {cmd_str}")
        raise ProcessError(f"Permission denied: {full_command[0]}", command=full_command) from e
    except subprocess.TimeoutExpired as e:
        log_message(1, f"Command timed out after {timeout}s: {cmd_str}")
        raise ProcessError(f"Command timed out after {timeout}s: {cmd_str}", command=full_command) from e

    if capture_output:
        stdout_output = (result.stdout or '').strip()
        stderr_output = (result.stderr or '').strip()

        if len(stdout_output) > 200:  # If output is longer than 200 chars, just log summary
            log_message(5, f"Command output: [TRUNCATED - {len(stdout_output)} chars] {stdout_output[:100]}...")
        else:
            log_message(5, f"Command output: {stdout_output}")

        if stderr_output:
            log_message(5, f"Command error : {stderr_output[:200]}")

    if check and result.returncode != 0:
        stderr_output = (result.stderr or '').strip() if capture_output else None
        log_message(1, f"Command failed: {cmd_str} (exit code {result.returncode})")
        raise CommandFailedError(
            f"Command failed with exit code {result.returncode}: {cmd_str}",
            command=full_command,
            returncode=result.returncode,
            stderr=stderr_output
        )

    return result
