"""
Image reference helpers.

References are handled as plain strings of the form
``registry[/namespace]/repository[:tag|@digest]``. Everything up to the last
``/`` is the registry+namespace prefix; the rest is the image name with its
tag or digest.
"""

from typing import Tuple

DIGEST_MARKER = "@sha256"


def split_image_reference(image: str) -> Tuple[str, str]:
    """Split a reference into (registry_and_namespace, image_name_tag).

    The prefix keeps its trailing slash. A reference without a slash has an
    empty prefix and is returned whole as the image name.
    """
    head, sep, tail = image.rpartition("/")
    return head + sep, tail


def is_digest_reference(image: str) -> bool:
    return DIGEST_MARKER in image


def get_dest_image(source_image: str, dest_prefix: str) -> str:
    """Map a source image reference onto the destination prefix.

    The destination prefix replaces the source registry and namespace
    verbatim, with no slash normalization.

    The ``@sha256`` marker is dropped from the image name, so
    ``repo@sha256:abcd`` becomes ``repo:abcd``: the digest hex survives as a
    tag. Some consumers of the mirrored bundle reject digest references
    after the registry has been rewritten, see
    https://bugzilla.redhat.com/1794040.
    """
    _, image_name_tag = split_image_reference(source_image)
    image_name_tag_nosha = image_name_tag.replace(DIGEST_MARKER, "", 1)
    return f"{dest_prefix}{image_name_tag_nosha}"
