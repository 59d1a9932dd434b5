# tests/handlers/test_file_handler.py
"""Testes do FileHandler (read/write de arquivos texto)."""

import pytest

from atlas_backflow.core.exceptions import ConfigurationError, UnknownOperationError
from atlas_backflow.handlers.file import FileHandler


def test_read_returns_lines(tmp_path):
    path = tmp_path / "ids.txt"
    path.write_text("a\nb\nc", encoding="utf-8")

    assert FileHandler({"filename": str(path)}).invoke("read") == ["a", "b", "c"]


def test_write_joins_lists(tmp_path):
    path = tmp_path / "out.txt"

    assert FileHandler({"filename": str(path), "write_data": ["x", 1]}).invoke("write") is True
    assert path.read_text(encoding="utf-8") == "x\n1"


def test_write_then_read(tmp_path):
    path = tmp_path / "note.txt"
    FileHandler({"filename": str(path), "write_data": "line1\nline2"}).invoke("write")

    assert FileHandler({"filename": str(path)}).invoke("read") == ["line1", "line2"]


def test_missing_file_propagates(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileHandler({"filename": str(tmp_path / "absent.txt")}).invoke("read")


def test_filename_required():
    with pytest.raises(ConfigurationError):
        FileHandler({}).invoke("read")


def test_only_file_verbs():
    with pytest.raises(UnknownOperationError):
        FileHandler({"filename": "x"}).invoke("get")
