import pytest
from vocab_deck import db

@pytest.fixture
def db_conn():
    """Create an in-memory database connection for testing."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()

def test_init_sets_schema_version(db_conn):
    row = db_conn.execute(
        "SELECT value FROM meta WHERE key = 'schema_version'"
    ).fetchone()
    assert row["value"] == db.SCHEMA_VERSION

def test_init_is_idempotent(db_conn):
    db.init_db(db_conn)
    count = db_conn.execute("SELECT COUNT(*) FROM meta").fetchone()[0]
    assert count == 2

def test_missing_state(db_conn):
    assert db.load_state(db_conn) is None

def test_save_and_load_state(db_conn):
    """Saving twice under one key keeps a single row with the latest value."""
    db.save_state(db_conn, {"words": [], "counts": {"a": 1}})
    db.save_state(db_conn, {"words": [], "counts": {"a": 2}})

    assert db.load_state(db_conn) == {"words": [], "counts": {"a": 2}}
    count = db_conn.execute("SELECT COUNT(*) FROM state").fetchone()[0]
    assert count == 1

def test_keys_are_namespaced(db_conn):
    db.save_state(db_conn, [1], key="one")
    db.save_state(db_conn, [2], key="two")
    assert db.load_state(db_conn, "one") == [1]
    assert db.load_state(db_conn, "two") == [2]
    assert db.load_state(db_conn) is None

def test_unparseable_state_is_absent(db_conn):
    db_conn.execute(
        "INSERT INTO state (key, value) VALUES (?, ?)",
        (db.STATE_KEY, "{not json"),
    )
    assert db.load_state(db_conn) is None

def test_connect_creates_parent_directory(tmp_path):
    path = tmp_path / "nested" / "dir" / "vocab.db"
    conn = db.connect(path)
    db.init_db(conn)
    conn.close()
    assert path.exists()
