from __future__ import annotations

from issuesync.filestore import LocalFileStore


def test_local_store_round_trip(tmp_path):
    store = LocalFileStore(tmp_path)
    store.write_file("docs/issues/001-a.md", "hello\n")

    assert store.exists("docs/issues/001-a.md")
    assert store.read_file("docs/issues/001-a.md") == "hello\n"
    assert (tmp_path / "docs" / "issues" / "001-a.md").is_file()

    store.delete_file("docs/issues/001-a.md")
    assert not store.exists("docs/issues/001-a.md")


def test_list_files_skips_directories(tmp_path):
    issues = tmp_path / "docs" / "issues"
    (issues / "nested").mkdir(parents=True)
    (issues / "002-b.md").write_text("b", encoding="utf-8")
    (issues / "001-a.md").write_text("a", encoding="utf-8")

    assert LocalFileStore(tmp_path).list_files("docs/issues") == ["001-a.md", "002-b.md"]


def test_list_files_missing_directory(tmp_path):
    assert LocalFileStore(tmp_path).list_files("nope") == []
