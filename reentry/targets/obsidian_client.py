"""
Obsidian command-line transport.

Drives the `obsidian` CLI bridge from inside the vault directory:
    obsidian read path=<note>
    obsidian create path=<note> content=<text> overwrite silent

The CLI takes content on one line, so newlines are passed escaped as \\n.
"""

import logging
import subprocess
from typing import List, Optional

from reentry.targets.obsidian import ObsidianClient, ObsidianNote

logger = logging.getLogger(__name__)

OBSIDIAN_BIN = "obsidian"


class ObsidianCliError(Exception):
    """The obsidian CLI exited non-zero or could not be started."""

    def __init__(self, message: str, returncode: Optional[int] = None, output: str = ""):
        self.message = message
        self.returncode = returncode
        self.output = output
        self.code = "OBSIDIAN_CLI"
        super().__init__(message)


def escape_cli_value(value: str) -> str:
    return value.replace("\r\n", "\n").replace("\n", "\\n")


def run_obsidian(args: List[str], cwd: Optional[str] = None) -> str:
    """Run the obsidian CLI and return stdout.

    Raises:
        ObsidianCliError: On a non-zero exit or a missing binary
    """
    cmd = [OBSIDIAN_BIN] + args
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise ObsidianCliError(f"obsidian CLI could not be started: {e}") from e

    if result.returncode != 0:
        output = result.stderr or result.stdout
        raise ObsidianCliError(
            f"obsidian CLI failed (code {result.returncode}): {output}",
            returncode=result.returncode,
            output=output,
        )
    return result.stdout


class ObsidianCliClient(ObsidianClient):
    """ObsidianClient backed by the obsidian CLI."""

    def get_note(self, vault_path: str, note_path: str) -> Optional[ObsidianNote]:
        try:
            output = run_obsidian(["read", f"path={note_path}"], cwd=vault_path)
        except ObsidianCliError as e:
            # read fails for a note that does not exist yet
            logger.debug(f"obsidian read {note_path} failed: {e}")
            return None
        return ObsidianNote(path=note_path, content=output)

    def upsert_note(self, vault_path: str, note_path: str, content: str) -> ObsidianNote:
        run_obsidian(
            ["create", f"path={note_path}", f"content={escape_cli_value(content)}", "overwrite", "silent"],
            cwd=vault_path,
        )
        return ObsidianNote(path=note_path, content=content)

    @staticmethod
    def is_available() -> bool:
        """True if `obsidian version` runs successfully."""
        try:
            run_obsidian(["version"])
        except ObsidianCliError:
            return False
        return True
