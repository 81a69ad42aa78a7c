import pytest

from resume_rag.ingest.parser import ParserRegistry, document_from_upload, source_from_filename


def test_load_directory_reads_markdown_and_text(tmp_path) -> None:
    (tmp_path / "resume.md").write_text("# Jane\nEngineer.", encoding="utf-8")
    (tmp_path / "projects.txt").write_text("Project X.", encoding="utf-8")
    (tmp_path / "photo.png").write_bytes(b"\x89PNG")

    documents = ParserRegistry().load_directory(tmp_path)

    assert [(doc.source, doc.category) for doc in documents] == [
        ("projects", "project"),
        ("resume", "resume"),
    ]
    assert documents[1].text == "# Jane\nEngineer."


def test_load_directory_missing(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        ParserRegistry().load_directory(tmp_path / "nope")


def test_unknown_extension_rejected(tmp_path) -> None:
    path = tmp_path / "data.pdf"
    path.write_bytes(b"%PDF")

    with pytest.raises(ValueError):
        ParserRegistry().parse_path(path)


def test_upload_names_lose_text_suffix() -> None:
    assert source_from_filename("resume.md") == "resume"
    assert source_from_filename("notes.txt") == "notes"
    assert source_from_filename("archive.md.bak") == "archive.md.bak"

    document = document_from_upload("Jane_Resume.md", "text")
    assert document.source == "Jane_Resume"
    assert document.category == "resume"
    assert document_from_upload("x.txt", "t", "project").category == "project"
