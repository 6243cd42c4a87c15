import sqlite3

from social_platform.db import (
    PGConnection,
    _detect_dialect,
    _qmark_to_pct,
    connect,
    fits_db_int,
    init_db,
    is_integrity_error,
)
from social_platform.schema import SCHEMA_SQLITE, get_schema_sql


def test_qmark_placeholders_become_pyformat():
    assert _qmark_to_pct("SELECT * FROM users WHERE user_id=? AND email=?") == (
        "SELECT * FROM users WHERE user_id=%s AND email=%s"
    )


def test_qmark_inside_literals_is_left_alone():
    assert _qmark_to_pct("SELECT '?' AS q, x FROM t WHERE y=?") == "SELECT '?' AS q, x FROM t WHERE y=%s"
    assert _qmark_to_pct('SELECT "odd?col" FROM t WHERE y=?') == 'SELECT "odd?col" FROM t WHERE y=%s'


def test_qmark_with_escaped_quotes():
    # '' and "" stay inside the literal / identifier.
    assert _qmark_to_pct("SELECT 'it''s ?' WHERE a=?") == "SELECT 'it''s ?' WHERE a=%s"
    assert _qmark_to_pct('SELECT "a""?b" WHERE a=?') == 'SELECT "a""?b" WHERE a=%s'
    assert _qmark_to_pct("SELECT '' WHERE a=?") == "SELECT '' WHERE a=%s"


def test_postgres_schema_is_derived_from_sqlite():
    pg = get_schema_sql("postgres")
    assert "PRAGMA" not in pg
    assert "AUTOINCREMENT" not in pg.upper()
    assert pg.count("BIGSERIAL PRIMARY KEY") == 3
    assert "CREATE TABLE IF NOT EXISTS post_comments" in pg
    assert "ON DELETE CASCADE" in pg

    assert get_schema_sql("sqlite") == SCHEMA_SQLITE
    assert get_schema_sql("postgresql") == pg


def test_postgres_schema_splits_into_statements():
    # init_db splits on ';', so comments must not contain one.
    statements = [s.strip() for s in get_schema_sql("postgres").split(";") if s.strip()]
    assert len(statements) == 7
    assert all("CREATE " in s for s in statements)
    assert sum(1 for s in statements if "CREATE TABLE" in s) == 3


def test_detect_dialect():
    assert _detect_dialect("") == "sqlite"
    assert _detect_dialect("data/social.sqlite") == "sqlite"
    assert _detect_dialect("sqlite:///data/social.sqlite") == "sqlite"
    assert _detect_dialect("postgres://u:p@localhost/db") == "postgres"
    assert _detect_dialect("postgresql://u:p@localhost/db") == "postgres"


class _FakeCursor:
    def __init__(self, log):
        self.log = log
        self.rowcount = 1

    def execute(self, sql, params):
        self.log.append((sql, params))

    def fetchone(self):
        return {"user_id": 1}

    def fetchall(self):
        return [{"user_id": 1}]

    def close(self):
        pass


class _FakePG:
    def __init__(self):
        self.log = []
        self.committed = False

    def cursor(self):
        return _FakeCursor(self.log)

    def commit(self):
        self.committed = True


def test_pg_connection_rewrites_placeholders():
    raw = _FakePG()
    conn = PGConnection(raw)
    cur = conn.execute("SELECT * FROM users WHERE username=? AND note='?'", ["alice"])
    assert raw.log == [("SELECT * FROM users WHERE username=%s AND note='?'", ("alice",))]
    assert cur.fetchone() == {"user_id": 1}
    assert cur.rowcount == 1

    conn.execute("SELECT 1")
    assert raw.log[-1] == ("SELECT 1", ())

    conn.commit()
    assert raw.committed


def test_init_db_is_idempotent(tmp_path):
    dsn = str(tmp_path / "nested" / "social.sqlite")
    init_db(dsn)
    init_db(dsn)
    with connect(dsn) as conn:
        names = {
            r["name"]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }
    assert {"users", "posts", "post_comments"} <= names


def test_connect_rolls_back_on_error(tmp_path):
    dsn = str(tmp_path / "social.sqlite")
    init_db(dsn)
    try:
        with connect(dsn) as conn:
            conn.execute(
                "INSERT INTO users (name, username, email, password_hash, created_at, updated_at) "
                "VALUES ('A', 'a', 'a@x.com', 'h', 't', 't')"
            )
            raise RuntimeError("abort")
    except RuntimeError:
        pass
    with connect(dsn) as conn:
        assert conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"] == 0


def test_fits_db_int():
    assert fits_db_int(1)
    assert fits_db_int("42")
    assert fits_db_int(2**63 - 1)
    assert fits_db_int(-(2**63))
    assert not fits_db_int(2**63)
    assert not fits_db_int(-(2**63) - 1)
    assert not fits_db_int("abc")
    assert not fits_db_int(None)


def test_is_integrity_error():
    assert is_integrity_error(sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))
    assert not is_integrity_error(sqlite3.OperationalError("database is locked"))
    assert not is_integrity_error(ValueError("user_exists"))

    # Matches psycopg2's hierarchy (errors.UniqueViolation -> IntegrityError) by name.
    IntegrityError = type("IntegrityError", (Exception,), {"__module__": "psycopg2"})
    UniqueViolation = type("UniqueViolation", (IntegrityError,), {"__module__": "psycopg2.errors"})
    assert is_integrity_error(UniqueViolation("duplicate key value"))
