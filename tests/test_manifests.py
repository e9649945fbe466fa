"""Unit tests for bundle_mirror/manifests.py"""

import sys
from pathlib import Path

import pytest
import yaml

_python_dir = Path(__file__).parent.parent / "python"
if str(_python_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(_python_dir.absolute()))


def _write_csv(path: Path, images):
    """Write a minimal ClusterServiceVersion listing images as related images"""
    csv = {
        "apiVersion": "operators.coreos.com/v1alpha1",
        "kind": "ClusterServiceVersion",
        "metadata": {"name": path.name.split(".clusterserviceversion")[0]},
        "spec": {"relatedImages": [{"name": f"img{i}", "image": image} for i, image in enumerate(images)]},
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(csv))
    return path


@pytest.fixture
def manifests_dir(tmp_path):
    """A manifests tree with two CSV versions and some unrelated files"""
    root = tmp_path / "manifests"
    _write_csv(root / "hco.v2.2.0.clusterserviceversion.yaml", ["quay.io/ns/img:v1", "quay.io/ns/a@sha256:01"])
    _write_csv(root / "2.3.0" / "hco.v2.3.0.clusterserviceversion.yaml", ["quay.io/ns/img:v1", "quay.io/ns/b:v3"])
    (root / "hco.crd.yaml").write_text("kind: CustomResourceDefinition\n")
    (root / "hco.v2.2.0.clusterserviceversion.yaml.bak").write_text("junk\n")
    return root


class TestFindCsvFiles:
    """Tests for find_csv_files"""

    def test_empty_filter_matches_all_csvs(self, manifests_dir):
        from bundle_mirror.manifests import find_csv_files

        result = find_csv_files(str(manifests_dir))

        assert [Path(p).name for p in result] == [
            "hco.v2.3.0.clusterserviceversion.yaml",
            "hco.v2.2.0.clusterserviceversion.yaml",
        ]

    def test_version_filter(self, manifests_dir):
        from bundle_mirror.manifests import find_csv_files

        result = find_csv_files(str(manifests_dir), "2.2.0")

        assert len(result) == 1
        assert result[0].endswith("hco.v2.2.0.clusterserviceversion.yaml")

    def test_filter_result_is_subset_of_unfiltered(self, manifests_dir):
        from bundle_mirror.manifests import find_csv_files

        everything = set(find_csv_files(str(manifests_dir)))
        for version in ("2.2.0", "2.3.0", "v2", "9.9.9"):
            assert set(find_csv_files(str(manifests_dir), version)) <= everything

    def test_no_match_returns_empty_list(self, manifests_dir):
        from bundle_mirror.manifests import find_csv_files

        assert find_csv_files(str(manifests_dir), "9.9.9") == []

    def test_missing_directory_returns_empty_list(self, tmp_path):
        from bundle_mirror.manifests import find_csv_files

        assert find_csv_files(str(tmp_path / "nope")) == []

    def test_custom_suffix(self, tmp_path):
        from bundle_mirror.manifests import find_csv_files

        (tmp_path / "op.csv.yml").write_text("{}")
        assert find_csv_files(str(tmp_path), suffix=".csv.yml") == [str(tmp_path / "op.csv.yml")]


class TestRelatedImagesFromCsv:
    """Tests for related_images_from_csv"""

    def test_extracts_images_in_order(self):
        from bundle_mirror.manifests import related_images_from_csv

        csv = {"spec": {"relatedImages": [{"name": "a", "image": "x/b:1"}, {"name": "b", "image": "x/a:1"}]}}
        assert related_images_from_csv(csv) == ["x/b:1", "x/a:1"]

    def test_missing_related_images_raises(self):
        from bundle_mirror.manifests import related_images_from_csv

        with pytest.raises(KeyError):
            related_images_from_csv({"spec": {}})


class TestCollectRelatedImages:
    """Tests for load_related_images and collect_related_images"""

    def test_duplicates_across_files_are_removed(self, tmp_path):
        from bundle_mirror.manifests import collect_related_images

        first = _write_csv(tmp_path / "a.clusterserviceversion.yaml", ["quay.io/ns/img:v1"])
        second = _write_csv(tmp_path / "b.clusterserviceversion.yaml", ["quay.io/ns/img:v1"])

        assert collect_related_images([str(first), str(second)]) == ["quay.io/ns/img:v1"]

    def test_sorted_and_stable(self, manifests_dir):
        from bundle_mirror.manifests import collect_related_images, find_csv_files

        csv_files = find_csv_files(str(manifests_dir))
        result = collect_related_images(csv_files)

        assert result == sorted(set(result))
        assert result == ["quay.io/ns/a@sha256:01", "quay.io/ns/b:v3", "quay.io/ns/img:v1"]
        assert collect_related_images(csv_files) == result

    def test_no_files_gives_no_images(self):
        from bundle_mirror.manifests import collect_related_images

        assert collect_related_images([]) == []

    def test_invalid_yaml_is_parse_error(self, tmp_path):
        from bundle_mirror.error_utils import ActionableError, ErrorCategory
        from bundle_mirror.manifests import collect_related_images

        bad = tmp_path / "bad.clusterserviceversion.yaml"
        bad.write_text("spec: [unclosed\n")

        with pytest.raises(ActionableError) as exc_info:
            collect_related_images([str(bad)])
        assert exc_info.value.category == ErrorCategory.PARSE
        assert exc_info.value.details["file"] == str(bad)

    def test_missing_field_is_parse_error(self, tmp_path):
        from bundle_mirror.error_utils import ActionableError, ErrorCategory
        from bundle_mirror.manifests import load_related_images

        csv = tmp_path / "x.clusterserviceversion.yaml"
        csv.write_text("kind: ClusterServiceVersion\nspec:\n  displayName: x\n")

        with pytest.raises(ActionableError) as exc_info:
            load_related_images(str(csv))
        assert exc_info.value.category == ErrorCategory.PARSE

    def test_empty_document_is_parse_error(self, tmp_path):
        from bundle_mirror.error_utils import ActionableError
        from bundle_mirror.manifests import load_related_images

        csv = tmp_path / "x.clusterserviceversion.yaml"
        csv.write_text("")

        with pytest.raises(ActionableError):
            load_related_images(str(csv))
