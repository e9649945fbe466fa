"""Unit tests for bundle_mirror/image_refs.py"""

import sys
from pathlib import Path

import pytest

_python_dir = Path(__file__).parent.parent / "python"
if str(_python_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(_python_dir.absolute()))

from bundle_mirror.image_refs import get_dest_image, is_digest_reference, split_image_reference


class TestSplitImageReference:
    """Tests for split_image_reference"""

    def test_splits_at_last_slash(self):
        assert split_image_reference("quay.io/ns/bundle:v1") == ("quay.io/ns/", "bundle:v1")

    def test_nested_namespace(self):
        assert split_image_reference("registry.example.com:5000/org/team/app@sha256:ff") == (
            "registry.example.com:5000/org/team/",
            "app@sha256:ff",
        )

    def test_no_slash_is_all_image_name(self):
        assert split_image_reference("busybox:latest") == ("", "busybox:latest")

    def test_empty_reference(self):
        assert split_image_reference("") == ("", "")


class TestGetDestImage:
    """Tests for get_dest_image"""

    def test_tag_reference(self):
        assert get_dest_image("quay.io/ns/bundle:v1", "quay.io/dest/") == "quay.io/dest/bundle:v1"

    def test_digest_reference_drops_marker_keeps_hex(self):
        assert get_dest_image("quay.io/ns/app@sha256:abcd1234", "quay.io/dest/") == "quay.io/dest/app:abcd1234"

    def test_prefix_used_verbatim_without_slash(self):
        assert get_dest_image("quay.io/ns/bundle:v1", "quay.io/dest") == "quay.io/destbundle:v1"

    def test_no_slash_in_source(self):
        assert get_dest_image("bundle:v1", "quay.io/dest/") == "quay.io/dest/bundle:v1"
        assert get_dest_image("app@sha256:ff00", "quay.io/dest/") == "quay.io/dest/app:ff00"

    def test_empty_source(self):
        assert get_dest_image("", "quay.io/dest/") == "quay.io/dest/"

    def test_marker_in_namespace_is_not_touched(self):
        # Only the image name part is rewritten
        assert get_dest_image("quay.io/ns@sha256/app:v1", "p/") == "p/app:v1"

    @pytest.mark.parametrize(
        "source",
        [
            "quay.io/ns/bundle:v1",
            "quay.io/a/b/c/app@sha256:0123",
            "localhost:5000/x/y:latest",
        ],
    )
    def test_result_is_prefix_plus_last_segment(self, source):
        prefix = "mirror.example.com/team/"
        result = get_dest_image(source, prefix)
        assert result.startswith(prefix)
        assert result[len(prefix):] == source.rsplit("/", 1)[1].replace("@sha256", "")

    def test_deterministic(self):
        source = "quay.io/ns/app@sha256:abcd"
        assert get_dest_image(source, "d/") == get_dest_image(source, "d/")


class TestIsDigestReference:
    """Tests for is_digest_reference"""

    def test_digest(self):
        assert is_digest_reference("quay.io/ns/app@sha256:abcd") is True

    def test_tag(self):
        assert is_digest_reference("quay.io/ns/app:v1") is False
