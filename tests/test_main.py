"""Tests for the command-line runner."""

from main import _document_options, parse_arguments, run


def test_document_options_only_when_given() -> None:
    """Test that unset flags leave configuration defaults in charge."""
    assert _document_options(parse_arguments(["--input", "x.pdf"])) == {}
    assert _document_options(
        parse_arguments(["--input", "x.pdf", "--early-stop", "--max-pages", "3"])
    ) == {"early_stop": True, "max_pages": 3}


def test_run_single_file_with_validation(tmp_path, delimited_export) -> None:
    """Test one file parsed and validated."""
    path = tmp_path / "pedido.txt"
    path.write_text(delimited_export, encoding="utf-8")

    results = run(parse_arguments(["--input", str(path), "--validate"]))

    assert len(results) == 1
    assert results[0]["header"]["order_number"] == "138768"
    assert results[0]["header"]["delivery_date"] == "2024-03-15"
    assert "validation" in results[0]


def test_run_directory_reports_failures(tmp_path, delimited_export) -> None:
    """Test that batch failures are returned with their error."""
    (tmp_path / "a.txt").write_text(delimited_export, encoding="utf-8")
    (tmp_path / "b.txt").write_text("\n\n", encoding="utf-8")

    results = run(parse_arguments(["--input", str(tmp_path)]))

    assert results[0]["source_format"] == "delimited"
    assert results[1]["source_file"] == str(tmp_path / "b.txt")
    assert "no records found" in results[1]["error"]
