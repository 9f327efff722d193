import getpass
import sys
from typing import Any, Dict, List, Optional, Sequence, Tuple

from Song_Stats_Console.app.models import Account, Role
from Song_Stats_Console.app.services.dispatcher import Operation
from Song_Stats_Console.app.services.queries import (
    QueryResult,
    describe_catalog,
    get_definition,
    parse_text_arguments,
)
from Song_Stats_Console.app.services.sessions import UserSession

LOGOUT_KEY = "0"


def _is_number(text: str) -> bool:
    # ASCII only: isdigit() also accepts "²", which int() rejects
    return text.isascii() and text.isdecimal()


def _fmt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def format_table(columns: Sequence[str], rows: Sequence[Dict[str, Any]]) -> str:
    """Aligned plain-text table."""
    cells = [[_fmt(row.get(c)) for c in columns] for row in rows]
    widths = [len(c) for c in columns]
    for line in cells:
        widths = [max(w, len(v)) for w, v in zip(widths, line)]
    header = "  ".join(c.ljust(w) for c, w in zip(columns, widths))
    sep = "  ".join("-" * w for w in widths)
    body = ["  ".join(v.ljust(w) for v, w in zip(line, widths)) for line in cells]
    return "\n".join([header, sep, *body])


def account_rows(accounts: Sequence[Account]) -> List[Dict[str, Any]]:
    # never the hash
    return [
        {
            "username": a.username,
            "role": a.role,
            "created_at": a.created_at.strftime("%Y-%m-%d %H:%M") if a.created_at else "",
        }
        for a in accounts
    ]


class ConsoleIO:
    """Terminal front-end for SessionController (numbered menus, prompts, tables)."""

    def __init__(self, input_func=input, password_func=getpass.getpass, out=None):
        self._input = input_func
        self._password = password_func
        self._out = out or sys.stdout

    # --- low level -----------------------------------------------------------

    def _print(self, text: str = "") -> None:
        print(text, file=self._out)

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    # --- SessionController contract -------------------------------------------

    def ask_credentials(self) -> Optional[Tuple[str, str]]:
        try:
            username = self._ask("Username (blank to quit): ")
            if not username:
                return None
            password = self._password("Password: ")
        except EOFError:
            return None
        return username, password

    def choose_operation(
        self, session: UserSession, operations: List[Operation]
    ) -> Optional[Tuple[str, Dict[str, Any]]]:
        while True:
            title = "Admin menu" if session.is_admin else "User menu"
            self._print()
            self._print(f"== {title} ({session.username}) ==")
            for idx, op in enumerate(operations, start=1):
                self._print(f"{idx}) {op.label}")
            self._print(f"{LOGOUT_KEY}) Logout")
            try:
                choice = self._ask("Option: ")
                if choice == LOGOUT_KEY:
                    return None
                if not _is_number(choice) or not 1 <= int(choice) <= len(operations):
                    self.show_error(f"Invalid option '{choice}'.")
                    continue
                operation = operations[int(choice) - 1]
                args = self.collect_arguments(operation)
            except EOFError:
                return None
            if args is None:
                self.show_message("Cancelled.")
                continue
            return operation.id, args

    def collect_arguments(self, operation: Operation) -> Optional[Dict[str, Any]]:
        """Prompts for the arguments of one operation. None means cancelled."""
        if operation.id == "run_query":
            return self._collect_query()
        if operation.id == "list_accounts":
            return {}
        if operation.id == "create_account":
            username = self._ask("New username: ")
            password = self._password("Password: ")
            role = self._ask(f"Role [{Role.ADMIN.value}/{Role.USER.value}] (default user): ") or Role.USER.value
            return {"username": username, "password": password, "role": role}
        if operation.id == "update_account":
            username = self._ask("Username: ")
            new_password = self._password("New password (blank = keep): ") or None
            new_role = self._ask("New role (blank = keep): ") or None
            return {"username": username, "new_password": new_password, "new_role": new_role}
        if operation.id == "delete_account":
            username = self._ask("Username to delete: ")
            if self._ask(f"Delete '{username}'? [y/N]: ").lower() not in ("y", "yes"):
                return None
            return {"username": username}
        return {}

    def _collect_query(self) -> Dict[str, Any]:
        self._print("Queries:")
        for definition in describe_catalog():
            self._print(f"  {definition.id}) {definition.name}")
        raw_id = self._ask("Query number: ")
        # non-numeric ids go through get_definition so the error is the catalog's
        query_id = int(raw_id) if _is_number(raw_id) else raw_id
        definition = get_definition(query_id)
        raw_values = [self._ask(f"{p.name} ({p.help}): ") for p in definition.params]
        return {"query_id": definition.id, "parameters": parse_text_arguments(definition.id, raw_values)}

    def show_result(self, operation_id: str, result) -> None:
        if isinstance(result, QueryResult):
            if not result.rows:
                self._print("(no rows)")
                return
            self._print(format_table(result.columns, result.rows))
            self._print(f"({len(result)} row(s))")
        elif isinstance(result, Account):
            self._print(f"Account '{result.username}' saved (role={result.role}).")
        elif isinstance(result, list):
            self._print(format_table(["username", "role", "created_at"], account_rows(result)))
        else:
            self._print("Done.")

    def show_error(self, message: str) -> None:
        self._print(f"[ERROR] {message}")

    def show_message(self, message: str) -> None:
        self._print(message)
