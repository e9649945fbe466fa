"""
ClusterServiceVersion discovery and related image collection.
"""

import logging
import os
from typing import Any, Dict, Iterable, List

import yaml

from bundle_mirror.error_utils import create_manifest_error

CSV_SUFFIX = ".clusterserviceversion.yaml"


def find_csv_files(manifests_dir: str, version_filter: str = "", suffix: str = CSV_SUFFIX) -> List[str]:
    """Find ClusterServiceVersion files under manifests_dir.

    A file matches when its name ends with ``<version_filter><suffix>``; an
    empty filter matches every CSV. Returns an empty list when nothing matches.
    """
    wanted = f"{version_filter or ''}{suffix}"
    matches = []
    for root, _, files in os.walk(manifests_dir):
        for name in files:
            if name.endswith(wanted):
                matches.append(os.path.join(root, name))
    return sorted(matches)


def related_images_from_csv(csv: Dict[str, Any]) -> List[str]:
    """Return spec.relatedImages[].image from a parsed ClusterServiceVersion.

    Raises:
        KeyError, TypeError: If the document does not have that shape
    """
    return [entry["image"] for entry in csv["spec"]["relatedImages"]]


def load_related_images(csv_path: str) -> List[str]:
    """Parse a ClusterServiceVersion file and return its related images.

    Raises:
        ActionableError: If the file is not valid YAML or lacks spec.relatedImages[].image
    """
    try:
        with open(csv_path, "r") as f:
            csv = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise create_manifest_error(csv_path, f"invalid YAML: {e}")

    try:
        images = related_images_from_csv(csv)
    except (KeyError, TypeError) as e:
        raise create_manifest_error(csv_path, f"missing spec.relatedImages[].image ({type(e).__name__}: {e})")

    logging.debug(f"{csv_path}: {len(images)} related images")
    return images


def collect_related_images(csv_files: Iterable[str]) -> List[str]:
    """Collect related images from every CSV file, deduplicated and sorted."""
    images = set()
    for csv_path in csv_files:
        images.update(load_related_images(csv_path))
    return sorted(images)
