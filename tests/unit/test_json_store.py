"""
Unit tests for the JsonStore file layer.
"""
import json
from unittest.mock import patch

import pytest

from coursify.storage.errors import CollectionFormatError, InvalidCollectionName
from coursify.storage.json_store import JsonStore


@pytest.mark.unit
class TestJsonStore:
    """Tests for collection file lifecycle: ensure, read, atomic write."""

    def test_init_does_not_touch_disk(self, tmp_path):
        data_dir = tmp_path / "data"

        store = JsonStore(str(data_dir))

        assert store.data_dir == data_dir
        assert not data_dir.exists()

    def test_ensure_file_creates_directory_and_empty_array(self, json_store, temp_data_dir):
        path = json_store.ensure_file("courses")

        assert temp_data_dir.is_dir()
        assert path == temp_data_dir / "courses.json"
        assert path.read_text(encoding="utf-8") == "[]"

    def test_ensure_file_is_idempotent(self, json_store, temp_data_dir):
        json_store.write("courses", [{"id": "c1", "title": "X"}])
        before = (temp_data_dir / "courses.json").read_bytes()

        json_store.ensure_file("courses")
        json_store.ensure_file("courses")

        assert (temp_data_dir / "courses.json").read_bytes() == before

    def test_read_missing_collection_initializes_it(self, json_store, temp_data_dir):
        assert json_store.read("reviews") == []
        assert (temp_data_dir / "reviews.json").exists()

    def test_write_then_read(self, json_store):
        docs = [{"id": "1", "name": "One"}, {"id": "2", "name": "Two"}]

        json_store.write("users", docs)

        assert json_store.read("users") == docs

    def test_write_is_indented_utf8(self, json_store, temp_data_dir):
        json_store.write("courses", [{"id": "c1", "title": "日本語タイトル"}])

        content = (temp_data_dir / "courses.json").read_text(encoding="utf-8")

        assert "\n" in content
        assert "  " in content
        assert "日本語タイトル" in content

    def test_write_leaves_no_temp_files(self, json_store, temp_data_dir):
        json_store.write("courses", [{"id": "c1"}])
        json_store.write("courses", [{"id": "c2"}])

        assert sorted(p.name for p in temp_data_dir.iterdir()) == ["courses.json"]

    def test_write_rejects_non_list(self, json_store):
        with pytest.raises(TypeError, match="documents must be a list"):
            json_store.write("courses", {"id": "c1"})

    def test_failed_write_keeps_original_file(self, json_store, temp_data_dir):
        json_store.write("courses", [{"id": "c1"}])
        before = (temp_data_dir / "courses.json").read_bytes()

        with patch("coursify.storage.json_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                json_store.write("courses", [{"id": "c2"}])

        assert (temp_data_dir / "courses.json").read_bytes() == before
        assert sorted(p.name for p in temp_data_dir.iterdir()) == ["courses.json"]

    def test_unserializable_document_keeps_original_file(self, json_store, temp_data_dir):
        json_store.write("courses", [{"id": "c1"}])
        before = (temp_data_dir / "courses.json").read_bytes()

        with pytest.raises(TypeError):
            json_store.write("courses", [{"id": "c2", "when": object()}])

        assert (temp_data_dir / "courses.json").read_bytes() == before

    def test_read_retries_until_file_is_valid(self, json_store, temp_data_dir):
        temp_data_dir.mkdir()
        path = temp_data_dir / "courses.json"
        path.write_text('[{"id": "c1"', encoding="utf-8")
        calls = []

        def fake_sleep(delay):
            # the "writer" finishes between the first and second attempt
            calls.append(delay)
            path.write_text('[{"id": "c1"}]', encoding="utf-8")

        with patch("coursify.utils.retry.time.sleep", side_effect=fake_sleep):
            assert json_store.read("courses") == [{"id": "c1"}]

        assert calls == [0.001]

    def test_read_raises_after_retries_exhausted(self, json_store, temp_data_dir):
        temp_data_dir.mkdir()
        (temp_data_dir / "courses.json").write_text("{not json", encoding="utf-8")

        with patch("coursify.utils.retry.time.sleep") as mock_sleep:
            with pytest.raises(json.JSONDecodeError):
                json_store.read("courses")

        assert mock_sleep.call_count == 2

    def test_read_rejects_non_array_file(self, json_store, temp_data_dir):
        temp_data_dir.mkdir()
        (temp_data_dir / "courses.json").write_text('{"id": "c1"}', encoding="utf-8")

        with pytest.raises(CollectionFormatError):
            json_store.read("courses")

        # no repair is attempted
        assert (temp_data_dir / "courses.json").read_text(encoding="utf-8") == '{"id": "c1"}'

    @pytest.mark.parametrize("name", ["../etc", "a/b", "", "courses.json", None])
    def test_invalid_collection_names(self, json_store, name):
        with pytest.raises(InvalidCollectionName):
            json_store.path(name)

    def test_names_lists_collections_on_disk(self, json_store):
        assert json_store.names() == []

        json_store.ensure_file("quizzes")
        json_store.ensure_file("courses")

        assert json_store.names() == ["courses", "quizzes"]
