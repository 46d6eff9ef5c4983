"""Tests for the scanner module."""
import pytest

from mdrag.scanner import FileScanner


@pytest.fixture
def notes_dir(tmp_path):
    (tmp_path / "guides" / "deep").mkdir(parents=True)
    (tmp_path / "b.md").write_text("# B", encoding="utf-8")
    (tmp_path / "a.MD").write_text("# A", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("plain", encoding="utf-8")
    (tmp_path / "guides" / "setup.md").write_text("# Setup\nSteps", encoding="utf-8")
    (tmp_path / "guides" / "deep" / "z.md").write_text("# Z", encoding="utf-8")
    return tmp_path


class TestFileScanner:
    """Tests for FileScanner class."""

    def test_recursive_markdown_only(self, notes_dir):
        files = FileScanner().scan_directory(str(notes_dir))

        assert [f.file_name for f in files] == ["a.MD", "b.md", "setup.md", "z.md"]

    def test_reads_content_and_metadata(self, notes_dir):
        setup = [f for f in FileScanner().scan_directory(str(notes_dir)) if f.file_name == "setup.md"][0]

        assert setup.content == "# Setup\nSteps"
        assert setup.absolute_path == str(notes_dir / "guides" / "setup.md")
        assert setup.modified_time > 0

    def test_custom_extensions(self, notes_dir):
        files = FileScanner(extensions=(".txt",)).scan_directory(str(notes_dir))

        assert [f.file_name for f in files] == ["notes.txt"]

    def test_undecodable_file_skipped(self, notes_dir):
        (notes_dir / "broken.md").write_bytes(b"\xff\xfe\xfa")

        names = [f.file_name for f in FileScanner().scan_directory(str(notes_dir))]

        assert "broken.md" not in names
        assert "b.md" in names

    def test_not_a_directory(self, notes_dir):
        with pytest.raises(NotADirectoryError):
            FileScanner().scan_directory(str(notes_dir / "b.md"))
