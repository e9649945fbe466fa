"""
Mirror the images of an operator bundle and republish the bundle.

Workflow:
1. Extract the bundle image's manifests into a scratch directory
2. Select the ClusterServiceVersion files (optionally one version only)
3. Collect spec.relatedImages from them
4. Copy each related image to the destination prefix with skopeo
5. Rebuild the bundle image with its references rewritten and push it

The first failure aborts the run. Images already copied stay copied.
"""

import os
import shutil
from typing import List, Optional, Tuple

from bundle_mirror.config_manager import RunOptions
from bundle_mirror.error_utils import create_config_error
from bundle_mirror.image_refs import get_dest_image, is_digest_reference, split_image_reference
from bundle_mirror.logging_utils import get_logger
from bundle_mirror.manifests import collect_related_images, find_csv_files
from bundle_mirror.podman_client import PodmanClient
from bundle_mirror.scratch import scratch_directory
from bundle_mirror.skopeo_client import SkopeoClient


class BundleMirror:
    """Mirrors an operator bundle and its related images to a new prefix."""

    def __init__(
        self,
        config_manager,
        podman_client: Optional[PodmanClient] = None,
        skopeo_client: Optional[SkopeoClient] = None,
    ):
        self.config_manager = config_manager
        self.podman_client = podman_client or PodmanClient(config_manager)
        self.skopeo_client = skopeo_client or SkopeoClient(config_manager)
        self.logger = get_logger(self.__class__.__name__)

    def get_bundle_content(self, bundle_image: str, scratch_dir: str) -> str:
        """Extract the bundle's manifests directory and return its local path."""
        manifests_path = self.config_manager.get_manifests_path()
        self.logger.info(f"Extracting {manifests_path} from {bundle_image}")
        return self.podman_client.extract_path(bundle_image, manifests_path, scratch_dir)

    def get_csv_files(self, manifests_dir: str, options: RunOptions) -> List[str]:
        csv_files = find_csv_files(manifests_dir, options.version_filter, self.config_manager.get_csv_suffix())
        if not csv_files:
            self.logger.warning(
                f"No ClusterServiceVersion matched version filter '{options.version_filter}' in {manifests_dir}"
            )
        for csv_file in csv_files:
            self.logger.info(f"Using {os.path.relpath(csv_file, manifests_dir)}")
        return csv_files

    def mirror(self, dest_prefix: str, source_images: List[str], options: RunOptions) -> List[Tuple[str, str]]:
        """Copy each source image under dest_prefix.

        Digest references are copied with --all so every platform of a
        manifest list is kept. In dry-run mode the copy command is only
        logged.

        Returns:
            List of (source, destination) pairs, in copy order

        Raises:
            ActionableError: On the first failed copy; later images are not attempted
        """
        mirrored = []
        for i, source_image in enumerate(source_images, 1):
            dest_image = get_dest_image(source_image, dest_prefix)
            src_ref = f"docker://{source_image}"
            dest_ref = f"docker://{dest_image}"
            all_images = is_digest_reference(source_image)

            self.logger.info(f"[{i}/{len(source_images)}] Mirroring {source_image} -> {dest_image}")

            if options.dry_run:
                cmd = self.skopeo_client.build_copy_command(
                    src_ref, dest_ref, all_images=all_images, dest_creds=options.dest_creds
                )
                self.logger.info(f"[DRY RUN] Would copy: {self.skopeo_client.format_command(cmd)}")
            else:
                self.skopeo_client.copy_image(src_ref, dest_ref, all_images=all_images, dest_creds=options.dest_creds)

            mirrored.append((source_image, dest_image))

        return mirrored

    def build_and_publish_patched_bundle_image(
        self,
        bundle_image: str,
        dest_prefix: str,
        scratch_dir: str,
        options: RunOptions,
    ) -> str:
        """Rebuild the bundle image against dest_prefix and push it.

        The build runs in dry-run mode too; only the push is skipped.

        Returns:
            Destination reference of the patched bundle image
        """
        source_registry, _ = split_image_reference(bundle_image)
        dest_image = get_dest_image(bundle_image, dest_prefix)

        template = self.config_manager.get_build_template()
        if not template or not os.path.isfile(template):
            raise create_config_error("bundle.build_template", template, "file does not exist")
        containerfile = os.path.join(scratch_dir, "Dockerfile")
        shutil.copyfile(template, containerfile)

        self.logger.info(f"Recreating bundle image {dest_image}")
        image_id = self.podman_client.build(
            scratch_dir,
            {
                "PARENT_IMAGE": bundle_image,
                "SOURCE": source_registry,
                "DESTINATION": dest_prefix,
            },
            dest_image,
            containerfile=containerfile,
        )
        self.logger.debug(f"Built image {image_id}")

        if options.dry_run:
            self.logger.info(f"[DRY RUN] Would push: {dest_image}")
        else:
            self.logger.info(f"Pushing {dest_image}")
            self.podman_client.push(dest_image)

        return dest_image

    def run(self, bundle_image: str, dest_prefix: str, options: RunOptions) -> str:
        """Run the whole workflow inside a scratch directory.

        Returns:
            Destination reference of the patched bundle image
        """
        with scratch_directory(self.config_manager.get_scratch_prefix()) as scratch_dir:
            manifests_dir = self.get_bundle_content(bundle_image, scratch_dir)
            csv_files = self.get_csv_files(manifests_dir, options)
            source_images = collect_related_images(csv_files)
            self.logger.info(f"Found {len(source_images)} related images in {len(csv_files)} ClusterServiceVersions")

            self.mirror(dest_prefix, source_images, options)
            return self.build_and_publish_patched_bundle_image(bundle_image, dest_prefix, scratch_dir, options)
