"""Tests for key-value store initialization and access."""
from learnai.db import delete_value, dump_all, get_connection, get_value, init_db, set_value


def test_init_db_creates_kv_table(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    tables = {row[0] for row in cursor.fetchall()}
    assert "kv_store" in tables
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    set_value(tmp_db, "k", "v")
    init_db(tmp_db)  # should not raise or wipe data
    assert get_value(tmp_db, "k") == "v"


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "learnai.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "learnai.db").exists()


def test_get_value_default(tmp_db):
    init_db(tmp_db)
    assert get_value(tmp_db, "missing") is None
    assert get_value(tmp_db, "missing", "dark") == "dark"


def test_set_value_overwrites(tmp_db):
    init_db(tmp_db)
    set_value(tmp_db, "theme", "light")
    set_value(tmp_db, "theme", "dark")
    assert get_value(tmp_db, "theme") == "dark"
    assert dump_all(tmp_db) == {"theme": "dark"}


def test_delete_value(tmp_db):
    init_db(tmp_db)
    set_value(tmp_db, "a", "1")
    set_value(tmp_db, "b", "2")
    delete_value(tmp_db, "a")
    delete_value(tmp_db, "never-there")
    assert dump_all(tmp_db) == {"b": "2"}
