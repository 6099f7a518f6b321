from pathlib import Path

import pytest

from module_importer.config import FixturesConfig
from module_importer.exceptions import FixtureNotFoundError, FixtureParseError
from module_importer.fixtures import Dataset, FixtureLoader


def test_load_modules(tmp_path: Path, write_fixture) -> None:
    write_fixture("modules.json", [{"id": "m1"}, {"id": "m2"}])

    modules = FixtureLoader(tmp_path).load_modules()

    assert [m["id"] for m in modules] == ["m1", "m2"]


def test_missing_modules_file_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FixtureNotFoundError) as exc_info:
        FixtureLoader(tmp_path).load_modules()
    assert "modules.json" in str(exc_info.value)


def test_missing_dataset_is_none(tmp_path: Path) -> None:
    assert FixtureLoader(tmp_path).load_dataset(Dataset.FICHES, "m1") is None


def test_dataset_file_names(tmp_path: Path, write_fixture) -> None:
    write_fixture("fiches_m1.json", [{"id": "f1"}])
    write_fixture("videos_m1.json", [{"id": "v1"}, {"id": "v2"}])
    write_fixture("quizzes_m1.json", [])
    loader = FixtureLoader(tmp_path)

    assert loader.load_dataset(Dataset.FICHES, "m1") == [{"id": "f1"}]
    assert len(loader.load_dataset(Dataset.VIDEOS, "m1")) == 2
    assert loader.load_dataset(Dataset.QUIZZES, "m1") == []


def test_custom_patterns(tmp_path: Path, write_fixture) -> None:
    write_fixture("m1.cards.json", [{"id": "f1"}])
    config = FixturesConfig(fiches_pattern="{module_id}.cards.json")

    assert FixtureLoader(tmp_path, config).load_dataset(Dataset.FICHES, "m1") == [{"id": "f1"}]


def test_invalid_json_raises_parse_error(tmp_path: Path) -> None:
    (tmp_path / "videos_m1.json").write_text("[{", encoding="utf-8")

    with pytest.raises(FixtureParseError) as exc_info:
        FixtureLoader(tmp_path).load_dataset(Dataset.VIDEOS, "m1")
    assert "videos_m1.json" in exc_info.value.path


def test_top_level_object_raises_parse_error(tmp_path: Path, write_fixture) -> None:
    write_fixture("modules.json", {"id": "m1"})

    with pytest.raises(FixtureParseError) as exc_info:
        FixtureLoader(tmp_path).load_modules()
    assert "expected a JSON array" in str(exc_info.value)


def test_byte_order_mark_is_accepted(tmp_path: Path) -> None:
    (tmp_path / "modules.json").write_text('[{"id": "m1"}]', encoding="utf-8-sig")

    assert FixtureLoader(tmp_path).load_modules() == [{"id": "m1"}]
