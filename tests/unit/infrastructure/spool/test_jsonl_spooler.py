"""Tests for the JSONL spooler."""

import pytest

from meilisync.domain.shared.error import ValidationError
from meilisync.infrastructure.spool.jsonl import JsonlSpooler


class TestJsonlSpooler:
    def test_creates_spool_dir(self, tmp_path):
        spooler = JsonlSpooler(tmp_path / "a" / "b")

        assert spooler.spool_dir.is_dir()

    def test_path_layout(self, tmp_path):
        spooler = JsonlSpooler(tmp_path)

        assert spooler.path_for("app.Movie").name == "app.Movie.ids.jsonl"
        assert spooler.path_for("App\\Movie", " ES ", docs=True).name == "App.Movie.es.docs.jsonl"

    def test_ids_round_trip_in_order(self, tmp_path):
        spooler = JsonlSpooler(tmp_path)

        spooler.append_ids("app.Movie", [3, 1])
        path = spooler.append_ids("app.Movie", ["x"])

        assert list(spooler.read_ids(path)) == [3, 1, "x"]

    def test_docs_are_appended_as_lines(self, tmp_path):
        spooler = JsonlSpooler(tmp_path)

        path = spooler.append_docs("app.Movie", [{"id": 1, "title": "Ñu"}], locale="es")

        assert path.read_text(encoding="utf-8") == '{"id":1,"title":"Ñu"}\n'

    def test_bad_id_line_is_rejected(self, tmp_path):
        spooler = JsonlSpooler(tmp_path)
        path = spooler.path_for("app.Movie")
        path.write_text('{"id": 1}\n{"oops": 2}\n', encoding="utf-8")

        with pytest.raises(ValidationError, match=":2:"):
            list(spooler.read_ids(path))

    def test_discard_is_idempotent(self, tmp_path):
        spooler = JsonlSpooler(tmp_path)
        path = spooler.append_ids("app.Movie", [1])

        spooler.discard(path)
        spooler.discard(path)

        assert not path.exists()
