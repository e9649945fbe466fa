"""
Skopeo client for copying images between registries.

The source side relies on ambient credentials (auth file or prior login);
destination credentials are passed per copy with --dest-creds.
"""

import logging
import subprocess
from typing import List, Optional

from bundle_mirror.error_utils import create_copy_error, create_tool_error


class SkopeoClient:
    """Skopeo client for registry copy operations."""

    def __init__(self, config_manager):
        """Initialize SkopeoClient.

        Args:
            config_manager: ConfigManager instance for accessing configuration
        """
        self.config_manager = config_manager
        self.executable = config_manager.get_copy_tool()

    def build_copy_command(
        self,
        src_ref: str,
        dest_ref: str,
        all_images: bool = False,
        dest_creds: Optional[str] = None,
    ) -> List[str]:
        """Build a skopeo copy command.

        Args:
            src_ref: Full source image reference (e.g. "docker://quay.io/ns/repo:tag")
            dest_ref: Full destination image reference (e.g. "docker://quay.io/dest/repo:tag")
            all_images: Copy every image of a manifest list instead of only the current platform
            dest_creds: Destination credentials in "user[:password]" format
        """
        cmd = [self.executable, "copy"]
        if all_images:
            cmd.append("--all")
        if dest_creds:
            cmd.extend(["--dest-creds", dest_creds])
        cmd.extend([src_ref, dest_ref])
        return cmd

    @staticmethod
    def _redact_command_for_logging(cmd: List[str]) -> List[str]:
        """Return a copy of the command with any credentials redacted."""
        redacted = list(cmd)

        creds_flags = ("--creds", "--src-creds", "--dest-creds")
        token_flags = ("--password", "--src-registry-token", "--dest-registry-token")

        for i, token in enumerate(redacted):
            if token in creds_flags and i + 1 < len(redacted):
                value = redacted[i + 1]
                if isinstance(value, str) and ":" in value:
                    user, _ = value.split(":", 1)
                    redacted[i + 1] = f"{user}:****"
            if token in token_flags and i + 1 < len(redacted):
                redacted[i + 1] = "****"

        return redacted

    def format_command(self, cmd: List[str]) -> str:
        return " ".join(self._redact_command_for_logging(cmd))

    def copy_image(
        self,
        src_ref: str,
        dest_ref: str,
        all_images: bool = False,
        dest_creds: Optional[str] = None,
    ) -> None:
        """Copy an image from source to destination registry.

        Raises:
            ActionableError: If skopeo is missing or the copy fails
        """
        cmd = self.build_copy_command(src_ref, dest_ref, all_images=all_images, dest_creds=dest_creds)
        log_cmd = self.format_command(cmd)
        logging.debug(f"Running: {log_cmd}")

        try:
            subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise create_tool_error(self.executable, e)
        except subprocess.CalledProcessError as e:
            logging.error(f"Skopeo copy failed: {log_cmd}")
            logging.error(f"Error: {e.stderr}")
            raise create_copy_error(src_ref, dest_ref, e)
