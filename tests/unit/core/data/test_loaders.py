"""Tests for sdp_experiments.core.data.loaders module."""

from pathlib import Path

import polars as pl
import pytest

from sdp_experiments.core.data.loaders import CsvFolderLoader, InMemoryLoader, normalize_label
from sdp_experiments.core.data.protocols import VersionLoader
from sdp_experiments.core.data.versions import validate_version
from sdp_experiments.core.errors import DataError


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Fixture providing a folder with two projects."""
    _write(tmp_path / "ant" / "ant-1.7.csv", "name,wmc,loc,bug\nA,1,10,0\nB,2,20,3\n")
    _write(tmp_path / "ant" / "ant-1.10.csv", "name,wmc,loc,bug\nA,1,10,1\nB,2,20,0\n")
    _write(tmp_path / "eq" / "single.csv", "wmc,class\n1,buggy\n2,clean\n")
    return tmp_path


class DescribeNormalizeLabel:
    """Tests for normalize_label."""

    def it_keeps_numeric_labels(self) -> None:
        """Verify numeric bug counts are left untouched."""
        data = pl.DataFrame({"bug": [0, 2]})

        assert normalize_label(data).get_column("bug").to_list() == [0, 2]

    @pytest.mark.parametrize("alias", ["bugs", "Defective", "defects", "class"])
    def it_renames_known_aliases(self, alias: str) -> None:
        """Verify public dataset label names are renamed to the label."""
        data = pl.DataFrame({"wmc": [1, 2], alias: [1, 0]})

        result = normalize_label(data, "bug")

        assert "bug" in result.columns
        assert alias not in result.columns

    def it_turns_nominal_labels_into_zero_and_one(self) -> None:
        """Verify Y/N and true/false labels become 1/0."""
        data = pl.DataFrame({"Defective": ["Y", "N", " y ", "TRUE", "false"]})

        result = normalize_label(data, "bug")

        assert result.get_column("bug").to_list() == [1, 0, 1, 1, 0]

    def it_turns_boolean_labels_into_integers(self) -> None:
        """Verify boolean labels become 1/0."""
        data = pl.DataFrame({"bug": [True, False]})

        assert normalize_label(data).get_column("bug").to_list() == [1, 0]

    def it_rejects_data_without_label(self) -> None:
        """Verify a missing label is a data error."""
        with pytest.raises(DataError, match="no label column"):
            normalize_label(pl.DataFrame({"wmc": [1]}))

    def it_names_each_candidate_label_once(self) -> None:
        """Verify the default label is not listed twice in the error."""
        with pytest.raises(DataError) as excinfo:
            normalize_label(pl.DataFrame({"wmc": [1]}), "bug")

        assert str(excinfo.value) == "no label column among bug, bugs, Defective, defects, class"


class DescribeCsvFolderLoader:
    """Tests for CsvFolderLoader."""

    def it_satisfies_the_loader_protocol(self, data_dir: Path) -> None:
        """Verify the loader is a VersionLoader."""
        assert isinstance(CsvFolderLoader(data_dir), VersionLoader)

    def it_loads_one_version_per_file_sorted(self, data_dir: Path) -> None:
        """Verify versions are named after files and sorted naturally."""
        versions = CsvFolderLoader(data_dir).load()

        assert [v.id for v in versions] == ["ant-1.7", "ant-1.10", "eq-single"]
        assert [v.project for v in versions] == ["ant", "ant", "eq"]

    def it_normalizes_labels(self, data_dir: Path) -> None:
        """Verify nominal labels under alias names are converted."""
        eq = CsvFolderLoader(data_dir).load()[-1]

        assert eq.instances.get_column("bug").to_list() == [1, 0]

    def it_drops_requested_columns(self, data_dir: Path) -> None:
        """Verify non-feature columns can be removed."""
        versions = CsvFolderLoader(data_dir, drop_columns=["name"]).load()

        assert "name" not in versions[0].instances.columns

    def it_rejects_a_missing_folder(self, tmp_path: Path) -> None:
        """Verify loading a folder that does not exist fails."""
        with pytest.raises(DataError, match="does not exist"):
            CsvFolderLoader(tmp_path / "missing").load()

    def it_keeps_loading_past_a_file_without_label(self, data_dir: Path) -> None:
        """Verify a label-less file yields an unusable version and the rest still load."""
        _write(data_dir / "ant" / "ant-1.8.csv", "wmc,cbo\n1,2\n")

        versions = CsvFolderLoader(data_dir).load()

        broken = next(v for v in versions if v.id == "ant-1.8")
        assert [v.id for v in versions] == ["ant-1.7", "ant-1.8", "ant-1.10", "eq-single"]
        assert "bug" not in broken.instances.columns
        with pytest.raises(DataError, match="ant-1.8: missing label column"):
            validate_version(broken, "bug", folds=1)

    def it_keeps_loading_past_an_unparsable_file(self, data_dir: Path) -> None:
        """Verify a file polars cannot read yields an empty version."""
        _write(data_dir / "ant" / "ant-1.9.csv", "")

        versions = CsvFolderLoader(data_dir).load()

        broken = next(v for v in versions if v.id == "ant-1.9")
        assert len(versions) == 4
        assert broken.num_instances == 0


class DescribeInMemoryLoader:
    """Tests for InMemoryLoader."""

    def it_returns_a_new_list_each_time(self, two_versions) -> None:
        """Verify callers cannot mutate the loader's versions."""
        loader = InMemoryLoader(two_versions)

        first = loader.load()
        first.clear()

        assert loader.load() == two_versions
