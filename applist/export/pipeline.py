"""
Export pipeline.

Writes a serialized app list to the export directory and hands finished
artifacts to the desktop share mechanism:
1. Pick a file name (caller hint or app_list_<timestamp>) with the format's extension
2. Serialize the apps
3. Write to a temp file next to the target, fsync, then rename into place
4. Report an ExportResult; I/O errors never propagate past export()
"""

import logging
import os
import re
import shlex
import subprocess
import sys
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import config
from utils.exceptions import ExportWriteFailure, ShareFailure
from utils.logging_config import LogContext

from ..models import AppInfo, ExportFormat, ExportResult, ShareResult
from .serializer import UNKNOWN_LABEL, serialize

logger = logging.getLogger(__name__)

SHARE_SUBJECT = "分享应用列表"
SHARE_TIMEOUT_SECONDS = 30

_UNSAFE_FILENAME_RE = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")


@dataclass
class ExportConfig:
    """Configuration for the export pipeline."""

    export_dir: Path = field(default_factory=lambda: config.EXPORT_DIR)
    # Template with {path}, {mime}, {subject} and {text} placeholders; None = platform default
    share_command: Optional[str] = None


def sanitize_file_name(name: str) -> str:
    """Replace path separators and characters most filesystems reject."""
    cleaned = _UNSAFE_FILENAME_RE.sub("_", name).strip().strip(".")
    return cleaned or "app_list"


def default_file_name(fmt: ExportFormat, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"app_list_{now.strftime('%Y-%m-%d_%H-%M-%S')}.{fmt.extension}"


def resolve_file_name(fmt: ExportFormat, file_name: Optional[str] = None) -> str:
    """Final file name for an export, always ending in the format's extension."""
    if not file_name:
        return default_file_name(fmt)
    name = sanitize_file_name(file_name)
    if not name.lower().endswith(f".{fmt.extension}"):
        name = f"{name}.{fmt.extension}"
    return name


def write_atomic(path: Path, content: str) -> None:
    """
    Write content to path so readers see either the old state or the full file.

    Raises:
        ExportWriteFailure: If the directory or file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExportWriteFailure(f"Cannot create export directory {path.parent}: {e}") from e

    tmp_name = None
    replaced = False
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".part",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        replaced = True
    except (OSError, ValueError) as e:
        # ValueError covers encoding errors such as lone surrogates
        raise ExportWriteFailure(f"Cannot write {path}: {e}") from e
    finally:
        if tmp_name is not None and not replaced:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass


class ShareHandler:
    """Hands a file to the platform's share/attach mechanism."""

    def __init__(self, command: Optional[str] = None):
        self.command = command

    def build_command(
        self, path: Path, mime_type: str, subject: str, text: str = ""
    ) -> Optional[List[str]]:
        """Command line for sharing path, or None where the platform has no command."""
        values = {"path": str(path), "mime": mime_type, "subject": subject, "text": text}
        if self.command:
            return [part.format(**values) for part in shlex.split(self.command)]
        if sys.platform.startswith("linux"):
            return ["xdg-email", "--subject", subject, "--body", text, "--attach", str(path)]
        if sys.platform == "darwin":
            return ["open", str(path)]
        return None

    def share(self, path: Path, mime_type: str, text: str) -> None:
        """
        Launch the share action.

        Raises:
            ShareFailure: If the share command is missing or fails.
        """
        command = self.build_command(path, mime_type, SHARE_SUBJECT, text)
        if command is None:
            if hasattr(os, "startfile"):
                try:
                    os.startfile(str(path))  # type: ignore[attr-defined]
                except OSError as e:
                    raise ShareFailure(f"Cannot open {path}: {e}") from e
                return
            raise ShareFailure(f"No share mechanism available on {sys.platform}")

        logger.debug(f"Share command: {command}")
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=SHARE_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as e:
            raise ShareFailure(f"Share command not found: {command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise ShareFailure(f"Share command timed out: {command[0]}") from e
        if result.returncode != 0:
            raise ShareFailure(
                f"Share command exited with {result.returncode}: {result.stderr.strip()}"
            )


class ExportPipeline:
    """Serializes app lists into files in the export directory."""

    def __init__(
        self,
        config: Optional[ExportConfig] = None,
        share_handler: Optional[ShareHandler] = None,
    ):
        self.config = config or ExportConfig()
        self.share_handler = share_handler or ShareHandler(self.config.share_command)

    def export(
        self,
        apps: Sequence[AppInfo],
        fmt: ExportFormat,
        file_name: Optional[str] = None,
    ) -> ExportResult:
        """
        Export apps to a file.

        Args:
            apps: Apps to export, in output order.
            fmt: Output format.
            file_name: Optional name; the format extension is added if missing.

        Returns:
            ExportResult. Failures are reported in the result, not raised.
        """
        target = self.config.export_dir / resolve_file_name(fmt, file_name)

        with LogContext(format=fmt.extension, count=len(apps), path=str(target)):
            try:
                content = serialize(apps, fmt)
                write_atomic(target, content)
            except ExportWriteFailure as e:
                logger.error(f"{fmt.name} export failed: {e}")
                return ExportResult(success=False, error=f"{fmt.name} export failed: {e}")
            except Exception as e:
                logger.exception(f"{fmt.name} export failed")
                return ExportResult(success=False, error=f"{fmt.name} export failed: {e}")

            logger.info(f"Exported {len(apps)} apps to {target}")

        return ExportResult(
            success=True,
            file_path=str(target),
            exported_count=len(apps),
            mime_type=fmt.mime_type,
        )

    def share_artifact(
        self,
        path: str,
        mime_type: str,
        exported_count: Optional[int] = None,
    ) -> ShareResult:
        """
        Offer an exported file through the share mechanism. Best effort:
        failures are logged and returned, never raised.
        """
        count = str(exported_count) if exported_count is not None else UNKNOWN_LABEL
        text = f"分享应用列表：共包含 {count} 个应用"
        try:
            self.share_handler.share(Path(path), mime_type, text)
        except ShareFailure as e:
            logger.warning(f"Share failed for {path}: {e}")
            return ShareResult(success=False, error=str(e))
        except Exception as e:
            logger.warning(f"Share failed for {path}: {e}", exc_info=True)
            return ShareResult(success=False, error=str(e))

        logger.info(f"Shared {path} ({mime_type})")
        return ShareResult(success=True)
