"""Tests for the SQL batch buffer."""

from sqshell.buffer import Buffer


class TestBuffer:
    def test_empty(self):
        buffer = Buffer()
        assert buffer.is_empty()
        assert len(buffer) == 0
        assert buffer.text == ""

    def test_append_keeps_newlines(self):
        buffer = Buffer()
        buffer.append("select 1 -- one")
        buffer.append("from t;")
        assert buffer.text == "select 1 -- one\nfrom t;"
        assert len(buffer) == 2

    def test_numbered(self):
        buffer = Buffer()
        buffer.append("select 1")
        buffer.append("from t")
        assert buffer.numbered() == ["  1> select 1", "  2> from t"]

    def test_finish(self):
        buffer = Buffer()
        buffer.append("select 1;")
        assert buffer.finish() == "select 1;"
        assert buffer.is_empty()
        assert list(buffer.history) == ["select 1;"]

    def test_blank_batches_not_saved(self):
        buffer = Buffer()
        buffer.append("   ")
        buffer.finish()
        assert list(buffer.history) == []

    def test_clear_does_not_save(self):
        buffer = Buffer()
        buffer.append("select 1")
        buffer.clear()
        assert buffer.is_empty()
        assert list(buffer.history) == []

    def test_history_is_bounded(self):
        buffer = Buffer(history_size=2)
        for i in range(3):
            buffer.append(f"select {i};")
            buffer.finish()
        assert list(buffer.history) == ["select 1;", "select 2;"]
