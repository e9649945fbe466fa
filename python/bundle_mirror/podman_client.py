"""
Container engine client for bundle image operations.

Wraps the podman primitives the mirror needs: create/cp/rm to read files out
of an image, and build/push to publish the repatched bundle. Every call
blocks until the command exits.
"""

import logging
import os
import subprocess
from typing import Dict, List, Optional

from bundle_mirror.error_utils import (
    ActionableError,
    create_build_error,
    create_extraction_error,
    create_publish_error,
    create_tool_error,
)

# Bundle images are built FROM scratch and have no entrypoint; podman create
# needs some command even though the container is never started.
PLACEHOLDER_COMMAND = "unused"


class PodmanClient:
    """Thin client over the podman CLI."""

    def __init__(self, config_manager):
        """Initialize PodmanClient.

        Args:
            config_manager: ConfigManager instance for accessing configuration
        """
        self.config_manager = config_manager
        self.executable = config_manager.get_container_engine()

    def _run(self, args: List[str]) -> str:
        """Run a podman subcommand and return its stdout.

        Raises:
            subprocess.CalledProcessError: If the command exits non-zero
            ActionableError: If the executable cannot be started
        """
        cmd = [self.executable] + args
        logging.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except FileNotFoundError as e:
            raise create_tool_error(self.executable, e)
        except subprocess.CalledProcessError as e:
            logging.error(f"Command failed: {' '.join(cmd)}")
            if e.stderr:
                logging.error(f"Error: {e.stderr.strip()}")
            raise
        if result.stdout:
            logging.debug(f"Command output: {result.stdout.strip()}")
        return result.stdout

    def create(self, image: str) -> str:
        """Create a stopped container from image and return its ID."""
        try:
            return self._run(["create", image, PLACEHOLDER_COMMAND]).strip()
        except subprocess.CalledProcessError as e:
            raise create_extraction_error(image, self.config_manager.get_manifests_path(), e)

    def copy_out(self, container_id: str, path: str, dest_dir: str, image: Optional[str] = None) -> None:
        """Copy path out of the container's filesystem into dest_dir."""
        try:
            self._run(["cp", f"{container_id}:{path}", dest_dir])
        except subprocess.CalledProcessError as e:
            raise create_extraction_error(image or container_id, path, e)

    def remove(self, container_id: str) -> None:
        self._run(["rm", container_id])

    def extract_path(self, image: str, path: str, dest_dir: str) -> str:
        """Copy path out of image into dest_dir.

        Returns:
            Local path of the copied file or directory
        """
        container_id = self.create(image)
        try:
            self.copy_out(container_id, path, dest_dir, image=image)
        finally:
            try:
                self.remove(container_id)
            except (subprocess.CalledProcessError, ActionableError) as e:
                logging.warning(f"Failed to remove container {container_id} for image {image}: {e}")
        return os.path.join(dest_dir, os.path.basename(path.rstrip("/")))

    def build(
        self,
        context_dir: str,
        build_args: Dict[str, str],
        tag: str,
        containerfile: Optional[str] = None,
    ) -> str:
        """Build an image from context_dir and tag it.

        Returns:
            ID of the built image
        """
        args = ["build"]
        for key, value in build_args.items():
            args.extend(["--build-arg", f"{key}={value}"])
        if containerfile:
            args.extend(["-f", containerfile])
        args.extend(["-t", tag, context_dir])

        try:
            output = self._run(args)
        except subprocess.CalledProcessError as e:
            raise create_build_error(tag, e)

        lines = [line.strip() for line in output.splitlines() if line.strip()]
        return lines[-1] if lines else ""

    def push(self, tag: str) -> None:
        try:
            self._run(["push", tag])
        except subprocess.CalledProcessError as e:
            raise create_publish_error(tag, e)
