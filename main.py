import logging
import subprocess
import sys
from datetime import date
from functools import wraps
from typing import Optional

import typer

from config import settings
from lending import database
from lending.errors import InvalidInputError, LibraryError
from lending.library import Library
from lending.ui_helpers import (
    print_authors,
    print_book_details,
    print_errors,
    print_loan,
    set_output_mode,
)

logging.basicConfig(level=settings.log_level)

APP_NAME = "Lending CLI"


class LibraryManager:
    _instance: Optional[Library] = None
    _db_file_snapshot: Optional[str] = None

    @classmethod
    def get_instance(cls) -> Library:
        """Return the shared Library, rebuilding it if the database file changed."""
        current_db = database.DATABASE_FILE
        if cls._instance is None or current_db != cls._db_file_snapshot:
            cls._instance = Library()
            cls._db_file_snapshot = database.DATABASE_FILE
        return cls._instance


def reports_errors(func):
    """Print lending errors and exit with status 1 instead of a traceback."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except InvalidInputError as e:
            print_errors(e.errors)
            raise typer.Exit(code=1)
        except LibraryError as e:
            print(f"Error: {e.message}")
            raise typer.Exit(code=1)
    return wrapper


def _parse_date(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInputError([{"field": field, "message": f"{field} must be YYYY-MM-DD."}]) from None


# --- Typer CLI ---
app = typer.Typer(help=APP_NAME)


@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    )
):
    """Global CLI options (e.g. output mode)."""
    if output:
        set_output_mode(output)


@app.command("add-author")
@reports_errors
def cli_add_author(first_name: str, last_name: str,
                   bio: Optional[str] = typer.Option(None, "--bio", help="Short biography")):
    """Add an author."""
    author = LibraryManager.get_instance().add_author(first_name, last_name, bio)
    print(f"Added author: {author.full_name} ({author.id})")


@app.command("list-authors")
@reports_errors
def cli_list_authors():
    """List all authors."""
    print_authors(LibraryManager.get_instance().list_authors())


@app.command("add-book")
@reports_errors
def cli_add_book(isbn: str, title: str, author_id: str, publication_year: int, genre: str):
    """Add a book by an existing author."""
    book = LibraryManager.get_instance().add_book(isbn, title, author_id, publication_year, genre)
    print(f"Added book: {book.title} ({book.id})")


@app.command("find")
@reports_errors
def cli_find(book_id: str):
    """Show a book's details."""
    details = LibraryManager.get_instance().get_book_details(book_id)
    print_book_details(details.to_dict())


@app.command("add-member")
@reports_errors
def cli_add_member(member_number: str, first_name: str, last_name: str, email: str, date_of_birth: str):
    """Register a member (date of birth as YYYY-MM-DD)."""
    dob = _parse_date(date_of_birth, "date_of_birth")
    member = LibraryManager.get_instance().register_member(member_number, first_name, last_name, email, dob)
    print(f"Registered member: {member.full_name} ({member.id})")


@app.command("deactivate-member")
@reports_errors
def cli_deactivate_member(member_id: str):
    """Deactivate a membership. Open loans are kept."""
    member = LibraryManager.get_instance().deactivate_member(member_id)
    print(f"Member {member.member_number} deactivated.")


@app.command("borrow")
@reports_errors
def cli_borrow(book_id: str, member_id: str,
               due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD)")):
    """Borrow a book for a member."""
    due_date = _parse_date(due, "due_date") if due else None
    loan = LibraryManager.get_instance().borrow_book(book_id, member_id, due_date=due_date)
    print_loan(loan)


@app.command("return")
@reports_errors
def cli_return(book_id: str, member_id: str):
    """Return a borrowed book."""
    loan = LibraryManager.get_instance().return_book(book_id, member_id)
    print_loan(loan)


@app.command("mark-overdue")
@reports_errors
def cli_mark_overdue():
    """Flag active loans that hold items past their due date."""
    marked = LibraryManager.get_instance().mark_overdue_loans()
    print(f"{marked} loan(s) marked overdue.")


@app.command("serve")
def cli_serve(host: Optional[str] = typer.Option(None, "--host"),
              port: Optional[int] = typer.Option(None, "--port")):
    """Run the HTTP API with uvicorn."""
    host = host or settings.api_host
    port = port or settings.api_port
    print(f"Starting API on http://{host}:{port}")
    subprocess.run(
        [sys.executable, "-m", "uvicorn", "api:app", "--host", host, "--port", str(port)],
        check=False,
    )


if __name__ == "__main__":
    app()
