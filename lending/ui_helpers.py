import json
import os
from typing import Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lending.constants import DEFAULT_CURRENCY

# Environment variable controlling CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "LENDING_CLI_OUTPUT"

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()


def print_authors(authors: List[Any]) -> None:
    """Print authors according to the output mode.
    - plain: 'id - First Last' lines, or 'No authors in library.'
    - json: array of author dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if not authors:
        print("No authors in library.")
        return

    if mode == "json":
        print(json.dumps([a.to_dict() for a in authors], ensure_ascii=False))
    elif mode == "rich":
        table = Table(title="Authors", show_lines=True, header_style="bold cyan")
        table.add_column("ID", style="magenta", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Biography", style="dim")
        for a in authors:
            table.add_row(str(a.id), a.full_name, a.biography or "")
        _console.print(table)
    else:
        for a in authors:
            print(f"{a.id} - {a.full_name}")


def print_book_details(details: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(details, ensure_ascii=False))
        return

    availability = "available" if details["is_available"] else "on loan"
    lines = [
        f"Title: {details['title']}",
        f"Author: {details['author_name'] or 'Unknown'}",
        f"ISBN: {details['isbn']}",
        f"Year: {details['publication_year']}",
        f"Genre: {details['genre']}",
        f"Status: {availability}",
    ]
    if mode == "rich":
        _console.print(Panel.fit("\n".join(lines), title="Book", border_style="blue"))
    else:
        print("Book Found")
        for line in lines:
            print(line)


def print_loan(loan: Any) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(loan.to_dict(), ensure_ascii=False))
        return

    items = ", ".join(f"{i.book_id} (due {i.due_date})" for i in loan.items)
    content = f"Loan {loan.id}: {loan.status.value}\nItems: {items}"
    fine = loan.fine_due()
    if fine > 0:
        content += f"\nFine due: {fine:.2f} {DEFAULT_CURRENCY}"
    if mode == "rich":
        _console.print(Panel.fit(content, title="Loan", border_style="green"))
    else:
        print(content)


def print_errors(errors: List[Dict[str, str]]) -> None:
    for err in errors:
        print(f"Error: {err.get('field')}: {err.get('message')}")
