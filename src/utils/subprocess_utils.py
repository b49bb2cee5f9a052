"""
Shared helpers for running external tools and parsing their output.

Tool output is treated as untrusted text: missing lines, unexpected encodings
and trailing whitespace are all tolerated.
"""

import json
import locale
import platform
import subprocess
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from src.config.constants import DEFAULT_COMMAND_TIMEOUT
from src.utils.logger import log


@dataclass(frozen=True)
class CommandOutput:
    exit_status: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    @property
    def text(self) -> str:
        return decode_output(self.stdout)


def _creation_flags() -> int:
    if platform.system() == "Windows":
        return getattr(subprocess, "CREATE_NO_WINDOW", 0)
    return 0


def run_command(args: Sequence[str], timeout: float = DEFAULT_COMMAND_TIMEOUT) -> Optional[CommandOutput]:
    """
    Run a command and capture raw output.

    Returns:
        CommandOutput, or None when the command could not be started or timed out.
    """
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            timeout=timeout,
            creationflags=_creation_flags(),
        )
    except FileNotFoundError:
        log.debug(f"Command not found: {args[0]}")
        return None
    except subprocess.TimeoutExpired:
        log.warning(f"Command timed out after {timeout}s: {args[0]}")
        return None
    except OSError as e:
        log.debug(f"Command failed to start ({args[0]}): {e}")
        return None
    return CommandOutput(result.returncode, result.stdout or b"", result.stderr or b"")


def run_powershell(script: str, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> Optional[str]:
    """Run a PowerShell snippet with UTF-8 output; returns stdout text or None on failure."""
    command = "[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; " + script
    output = run_command(
        ["powershell", "-NoProfile", "-NonInteractive", "-Command", command],
        timeout=timeout,
    )
    if output is None:
        return None
    if not output.ok:
        log.debug(f"PowerShell exited with {output.exit_status}: {decode_output(output.stderr).strip()}")
        return None
    return output.text


def decode_output(raw: bytes) -> str:
    """Decode tool output, trying UTF-8 then the console code page."""
    if not raw:
        return ""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass
    encoding = locale.getpreferredencoding(False) or "utf-8"
    try:
        return raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return raw.decode("utf-8", errors="replace")


def split_lines(text: Optional[str]) -> List[str]:
    """Non-empty, stripped lines of ``text``."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def extract_json(text: Optional[str]) -> Any:
    """Parse JSON from tool output, ignoring any banner noise before it."""
    if not text:
        return None
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
    if not starts:
        return None
    try:
        return json.loads(text[min(starts):])
    except json.JSONDecodeError:
        log.debug("Could not parse JSON from command output")
        return None
