"""Unit tests for the stage stores."""

import pytest

from laptop.models.status import StageEnum
from laptop.services.stage_store import FileStageStore, MemoryStageStore


@pytest.mark.unit
class TestFileStageStore:
    """Plain-text stage file persistence."""

    @pytest.fixture
    def store(self, tmp_path):
        return FileStageStore(tmp_path / ".laptop" / "stage")

    @pytest.mark.parametrize("stage", list(StageEnum))
    def test_save_and_load(self, store, stage):
        store.save(stage)

        assert store.load() == stage
        assert store.path.read_text() == stage.value

    def test_load_no_file(self, store):
        assert store.load() == StageEnum.START

    def test_load_unknown_value(self, store):
        """Unrecognized content restarts from start instead of raising."""
        store.path.parent.mkdir(parents=True)
        store.path.write_text("provisioning-complete")

        assert store.load() == StageEnum.START

    def test_load_undecodable_file(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_bytes(b"\xff\xfe\x00garbage")

        assert store.load() == StageEnum.START

    def test_load_directory_in_place_of_file(self, store):
        store.path.mkdir(parents=True)

        assert store.load() == StageEnum.START

    def test_load_tolerates_whitespace(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("deploy\n")

        assert store.load() == StageEnum.DEPLOY

    def test_save_leaves_no_temp_files(self, store):
        store.save(StageEnum.INSTALL)
        store.save(StageEnum.DEPLOY)

        assert [p.name for p in store.path.parent.iterdir()] == ["stage"]

    def test_reset(self, store):
        store.save(StageEnum.DEPLOY)

        store.reset()

        assert not store.path.exists()
        assert store.load() == StageEnum.START

    def test_reset_without_file(self, store):
        store.reset()

        assert not store.path.exists()


@pytest.mark.unit
class TestMemoryStageStore:

    def test_defaults_to_start(self):
        assert MemoryStageStore().load() == StageEnum.START

    def test_records_history(self):
        store = MemoryStageStore()

        store.save(StageEnum.INSTALL)
        store.save(StageEnum.DEPLOY)

        assert store.load() == StageEnum.DEPLOY
        assert store.history == [StageEnum.INSTALL, StageEnum.DEPLOY]
