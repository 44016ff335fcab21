import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlcliq_engine import PendingAuth, execute


def _run(sql, store=None, current=None, pending=None):
    return execute(sql, current, {} if store is None else store, pending)


def test_create_database_then_show_lists_it_once():
    result = _run("CREATE DATABASE shop")
    assert result.output == ["Database 'shop' created successfully."]

    shown = _run("SHOW DATABASES", result.store)
    assert shown.output == [
        "+----------+",
        "| Database |",
        "+----------+",
        "| shop     |",
        "+----------+",
    ]


def test_show_databases_when_empty():
    assert _run("SHOW DATABASES").output == ["Empty set (0 databases)"]


def test_create_duplicate_database_leaves_store_untouched():
    store = _run("CREATE DATABASE shop").store
    result = _run("CREATE DATABASE shop", store)
    assert result.output == ["Error: Database 'shop' already exists."]
    assert result.store is store


def test_create_database_rejects_invalid_names():
    result = _run("CREATE DATABASE 1shop")
    assert result.output == [
        "Error: Invalid database name '1shop'. Names must start with a letter or underscore, "
        "followed by letters, numbers, or underscores."
    ]
    assert result.store == {}


def test_database_names_are_case_sensitive():
    store = _run("CREATE DATABASE Shop; CREATE DATABASE shop").store
    assert list(store) == ["Shop", "shop"]


def test_use_switches_current_database():
    store = _run("CREATE DATABASE shop").store
    result = _run("USE shop", store)
    assert result.current_database == "shop"
    assert result.output == ["Database changed to 'shop'."]

    missing = _run("USE nowhere", store, current="shop")
    assert missing.output == ["Error: Unknown database 'nowhere'."]
    assert missing.current_database == "shop"


def test_drop_current_database_clears_pointer():
    store = _run("CREATE DATABASE shop").store
    result = _run("DROP DATABASE shop", store, current="shop")
    assert result.output == ["Database 'shop' dropped."]
    assert result.store == {}
    assert result.current_database is None


def test_drop_unknown_database():
    assert _run("DROP DATABASE ghost").output == ["Error: Unknown database 'ghost'."]


def test_password_shorter_than_four_characters_is_rejected():
    result = _run("CREATE DATABASE secret WITH PASSWORD 'abc'")
    assert result.output == ["Error: Password must be at least 4 characters long."]
    assert result.store == {}


def test_protected_database_requires_password_for_use():
    created = _run("CREATE DATABASE secret WITH PASSWORD 'abcd'")
    assert created.output == ["Database 'secret' created successfully (password protected)."]
    store = created.store
    assert store["secret"].password_hash != "abcd"

    for _ in range(3):
        asked = _run("USE secret", store)
        assert asked.pending_auth == PendingAuth(kind="use", database="secret")
        assert asked.output == ["Database 'secret' is password protected.", "Enter password:"]
        assert asked.current_database is None

        denied = _run("nope", store, pending=asked.pending_auth)
        assert denied.output == ["Error: Access denied for database 'secret'."]
        assert denied.current_database is None
        assert denied.pending_auth is None
        assert "secret" in denied.store

    asked = _run("USE secret", store)
    granted = _run("abcd", store, pending=asked.pending_auth)
    assert granted.output == ["Database changed to 'secret'."]
    assert granted.current_database == "secret"


def test_use_of_already_selected_protected_database_needs_no_password():
    store = _run("CREATE DATABASE secret WITH PASSWORD 'abcd'").store
    result = _run("USE secret", store, current="secret")
    assert result.pending_auth is None
    assert result.current_database == "secret"


def test_drop_protected_database_requires_password():
    store = _run("CREATE DATABASE secret WITH PASSWORD 'abcd'; CREATE DATABASE other").store

    asked = _run("DROP DATABASE secret", store, current="other")
    assert asked.pending_auth == PendingAuth(kind="drop", database="secret")
    assert asked.output[0] == "Database 'secret' is password protected."

    refused = _run("wrong", store, current="other", pending=asked.pending_auth)
    assert refused.output == ["Error: Access denied. Database 'secret' was not dropped."]
    assert "secret" in refused.store

    dropped = _run("'abcd';", store, current="other", pending=asked.pending_auth)
    assert dropped.output == ["Database 'secret' dropped."]
    assert list(dropped.store) == ["other"]
    assert dropped.current_database == "other"


def test_drop_protected_current_database_is_immediate():
    store = _run("CREATE DATABASE secret WITH PASSWORD 'abcd'").store
    result = _run("DROP DATABASE secret", store, current="secret")
    assert result.pending_auth is None
    assert result.store == {}
    assert result.current_database is None


def test_pending_password_halts_remaining_statements():
    store = _run("CREATE DATABASE secret WITH PASSWORD 'abcd'").store
    result = _run("USE secret; CREATE DATABASE later", store)
    assert result.pending_auth is not None
    assert "later" not in result.store
    assert len(result.output) == 2


def test_password_attempt_for_unprotected_database():
    store = _run("CREATE DATABASE plain").store
    result = _run("abcd", store, pending=PendingAuth(kind="use", database="plain"))
    assert result.output == ["Error: Database 'plain' is not password protected."]
    assert result.current_database is None


def test_errors_do_not_abort_the_rest_of_the_line():
    result = _run("CREATE DATABASE 9bad; CREATE DATABASE good; SHOW DATABASES")
    assert result.output[0].startswith("Error: Invalid database name '9bad'")
    assert result.output[1] == "Database 'good' created successfully."
    assert "| good     |" in result.output
    assert result.errors == [result.output[0]]


def test_comment_lines_are_ignored():
    store = _run("CREATE DATABASE shop").store
    result = _run("-- DROP DATABASE shop", store)
    assert result.output == []
    assert result.store is store


def test_clear_drops_earlier_output_on_the_line():
    result = _run("CREATE DATABASE shop; clear; SHOW DATABASES")
    assert result.clear_screen is True
    assert result.output[0] == "Terminal cleared."
    assert "| shop     |" in result.output
    assert "Database 'shop' created successfully." not in result.output
    assert "shop" in result.store
    assert _run("SHOW DATABASES").clear_screen is False
