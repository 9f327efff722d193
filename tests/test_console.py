import io

import pytest

from Song_Stats_Console.app.errors import ParameterValidationError
from Song_Stats_Console.app.services.dispatcher import OPERATIONS, available_operations
from Song_Stats_Console.app.services.queries import QueryResult
from Song_Stats_Console.app.services.sessions import UserSession
from Song_Stats_Console.ui.console import ConsoleIO, format_table
from Song_Stats_Console.run_console import _mask_db_uri


def _console(answers, passwords=()):
    answers = iter(answers)
    passwords = iter(passwords)
    out = io.StringIO()
    console = ConsoleIO(
        input_func=lambda prompt: next(answers),
        password_func=lambda prompt: next(passwords),
        out=out,
    )
    return console, out


@pytest.fixture
def admin_session(db_session, admin):
    return UserSession.open(admin)


def test_format_table_aligns_columns():
    text = format_table(["title", "popularity"], [{"title": "Alpha", "popularity": 80}, {"title": "Be", "popularity": 7}])
    lines = text.splitlines()

    assert lines[0] == "title  popularity"
    assert lines[1] == "-----  ----------"
    assert lines[2] == "Alpha  80        "
    assert lines[3] == "Be     7         "


def test_ask_credentials_uses_password_prompt():
    console, _ = _console(["admin "], ["secret"])
    assert console.ask_credentials() == ("admin", "secret")


def test_blank_username_cancels_login():
    console, _ = _console([""])
    assert console.ask_credentials() is None


def test_choose_query_collects_typed_parameters(admin_session):
    console, out = _console(["1", "3", "Rock"])

    selection = console.choose_operation(admin_session, available_operations(admin_session))

    assert selection == ("run_query", {"query_id": 3, "parameters": {"genre": "Rock"}})
    assert "Average song duration by genre" in out.getvalue()


def test_bad_query_text_raises_parameter_error(admin_session):
    console, _ = _console(["1", "1", "nineteen", "5"])
    with pytest.raises(ParameterValidationError):
        console.choose_operation(admin_session, available_operations(admin_session))


def test_invalid_option_is_reprompted_then_logout(admin_session):
    console, out = _console(["9", "0"])

    assert console.choose_operation(admin_session, available_operations(admin_session)) is None
    assert "Invalid option '9'" in out.getvalue()


def test_superscript_digits_are_not_numbers(admin_session):
    console, out = _console(["²", "0"])
    assert console.choose_operation(admin_session, available_operations(admin_session)) is None
    assert "Invalid option '²'" in out.getvalue()

    console, _ = _console(["1", "²"])
    with pytest.raises(ParameterValidationError):
        console.choose_operation(admin_session, available_operations(admin_session))


def test_create_account_prompts(admin_session):
    ops = available_operations(admin_session)
    index = [op.id for op in ops].index("create_account") + 1
    console, _ = _console([str(index), "bob", ""], ["pw"])

    assert console.choose_operation(admin_session, ops) == (
        "create_account",
        {"username": "bob", "password": "pw", "role": "user"},
    )


def test_delete_needs_confirmation(admin_session):
    ops = available_operations(admin_session)
    index = str([op.id for op in ops].index("delete_account") + 1)
    console, out = _console([index, "bob", "n", index, "bob", "y"])

    assert console.choose_operation(admin_session, ops) == ("delete_account", {"username": "bob"})
    assert "Cancelled." in out.getvalue()


def test_eof_means_logout(admin_session):
    def _eof(prompt):
        raise EOFError

    console = ConsoleIO(input_func=_eof, out=io.StringIO())
    assert console.choose_operation(admin_session, list(OPERATIONS.values())) is None
    assert console.ask_credentials() is None


def test_show_result_renders_rows_and_accounts(db_session, admin):
    console, out = _console([])

    console.show_result("run_query", QueryResult(columns=["year", "avg"], rows=[{"year": 1990, "avg": 220.0}]))
    console.show_result("list_accounts", [admin])
    console.show_result("delete_account", None)

    text = out.getvalue()
    assert "220.00" in text
    assert "(1 row(s))" in text
    assert "admin" in text
    assert admin.pass_hash not in text
    assert "Done." in text


def test_mask_db_uri_hides_password():
    masked = _mask_db_uri("mysql+pymysql://root:topsecret@db:3306/song_stats")
    assert "topsecret" not in masked
    assert masked == "mysql+pymysql://root:****@db:3306/song_stats"
