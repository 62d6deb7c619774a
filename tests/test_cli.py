import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from lending import database
from lending.ui_helpers import OUTPUT_MODE_ENV
from main import LibraryManager, app

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_library(lib, monkeypatch):
    monkeypatch.setattr(LibraryManager, "_instance", lib)
    monkeypatch.setattr(LibraryManager, "_db_file_snapshot", database.DATABASE_FILE)
    monkeypatch.setenv(OUTPUT_MODE_ENV, "plain")
    return lib


def test_list_authors_empty():
    result = runner.invoke(app, ["list-authors"])
    assert result.exit_code == 0
    assert "No authors in library." in result.stdout


def test_add_and_list_authors(lib):
    result = runner.invoke(app, ["add-author", "Agatha", "Christie", "--bio", "Crime writer"])
    assert result.exit_code == 0
    assert "Added author: Agatha Christie" in result.stdout

    result = runner.invoke(app, ["list-authors"])
    assert "Agatha Christie" in result.stdout


def test_list_authors_json(catalog):
    result = runner.invoke(app, ["--output", "json", "list-authors"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload[0]["last_name"] == "Austen"


def test_find_book(catalog):
    result = runner.invoke(app, ["find", str(catalog["pride"].id)])
    assert result.exit_code == 0
    assert "Book Found" in result.stdout
    assert "Title: Pride and Prejudice" in result.stdout
    assert "Author: Jane Austen" in result.stdout
    assert "Status: available" in result.stdout


def test_find_unknown_book():
    result = runner.invoke(app, ["find", "00000000-0000-0000-0000-000000000001"])
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_add_book_with_bad_isbn(catalog):
    result = runner.invoke(app, ["add-book", "123", "Persuasion", str(catalog["author"].id), "1817", "Romance"])
    assert result.exit_code == 1
    assert "Error: isbn: Invalid ISBN format." in result.stdout


def test_add_member_and_borrow_and_return(lib, catalog):
    result = runner.invoke(app, ["add-member", "M-2", "Alan", "Turing", "alan@example.com", "1912-06-23"])
    assert result.exit_code == 0
    member = lib.members.find_by_number("M-2")

    book_id = str(catalog["emma"].id)
    result = runner.invoke(app, ["borrow", book_id, str(member.id)])
    assert result.exit_code == 0
    assert "Active" in result.stdout

    result = runner.invoke(app, ["borrow", book_id, str(member.id)])
    assert result.exit_code == 1
    assert "not available" in result.stdout

    result = runner.invoke(app, ["return", book_id, str(member.id)])
    assert result.exit_code == 0
    assert "Closed" in result.stdout


def test_add_member_with_bad_date():
    result = runner.invoke(app, ["add-member", "M-3", "Bad", "Date", "bad@example.com", "23/06/1912"])
    assert result.exit_code == 1
    assert "date_of_birth must be YYYY-MM-DD." in result.stdout


def test_mark_overdue_and_deactivate(catalog):
    result = runner.invoke(app, ["mark-overdue"])
    assert result.exit_code == 0
    assert "0 loan(s) marked overdue." in result.stdout

    result = runner.invoke(app, ["deactivate-member", str(catalog["member"].id)])
    assert result.exit_code == 0
    assert "Member M-1000 deactivated." in result.stdout


@patch("subprocess.run")
def test_serve_command(mock_subprocess_run):
    result = runner.invoke(app, ["serve", "--port", "8123"])
    assert result.exit_code == 0
    assert "Starting API on" in result.stdout
    args = mock_subprocess_run.call_args[0][0]
    assert "uvicorn" in args
    assert "api:app" in args
    assert "8123" in args
