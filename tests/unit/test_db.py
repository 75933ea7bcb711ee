"""Tests for DbClient against an on-disk SQLite database."""

import pytest

from bdd_harness.db import DbClient, DbConfig


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def db(tmp_path):
    sql_dir = tmp_path / 'sql'
    sql_dir.mkdir()
    (sql_dir / 'active_users.sql').write_text(
        'SELECT id, email FROM users WHERE active = :active ORDER BY id',
        encoding='utf-8',
    )
    client = DbClient.from_url(f'sqlite:///{tmp_path / "app.db"}', sql_dir=sql_dir)
    client.run_query(
        'CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT, active INTEGER)'
    )
    client.run_query(
        'INSERT INTO users (id, email, active) VALUES '
        "(1, 'ada@example.com', 1), (2, 'bob@example.com', 0), (3, 'cy@example.com', 1)"
    )
    yield client
    client.dispose()


class TestQueries:
    def test_rows_as_dicts(self, db):
        rows = db.run_query('SELECT id, email FROM users WHERE id = :id', {'id': 1})
        assert rows == [{'id': 1, 'email': 'ada@example.com'}]

    def test_dml_returns_empty(self, db):
        assert db.run_query('UPDATE users SET active = 0 WHERE id = :id', {'id': 3}) == []
        assert db.get_record('SELECT active FROM users WHERE id = 3') == {'active': 0}

    def test_query_from_file(self, db):
        rows = db.run_query_from_file('active_users.sql', {'active': 1})
        assert [r['id'] for r in rows] == [1, 3]

    def test_missing_query_file(self, db):
        with pytest.raises(FileNotFoundError):
            db.run_query_from_file('nope.sql')

    def test_results_as_arrays(self, db):
        rows = db.save_results_to_array('SELECT id, email FROM users ORDER BY id LIMIT 2')
        assert rows == [[1, 'ada@example.com'], [2, 'bob@example.com']]

    def test_record_exists(self, db):
        assert db.record_exists('SELECT 1 FROM users WHERE email = :e', {'e': 'bob@example.com'})
        assert not db.record_exists('SELECT 1 FROM users WHERE email = :e', {'e': 'x@y.z'})

    def test_get_record_none(self, db):
        assert db.get_record('SELECT * FROM users WHERE id = 99') is None

    def test_get_records(self, db):
        assert len(db.get_records('SELECT * FROM users')) == 3


class TestVerifyValues:
    def test_match(self, db):
        assert db.verify_values(
            'SELECT email, active FROM users WHERE id = :id', {'id': 1},
            {'email': 'ada@example.com', 'active': 1},
        )

    def test_mismatch(self, db):
        assert not db.verify_values(
            'SELECT email, active FROM users WHERE id = :id', {'id': 2},
            {'active': 1},
        )

    def test_no_row(self, db):
        assert not db.verify_values('SELECT * FROM users WHERE id = 99', None, {'id': 99})


def test_config_url_defaults_to_mysql():
    url = DbConfig(host='db', user='qa', password='s3cret', database='app').url()
    assert url.drivername == 'mysql+pymysql'
    assert url.host == 'db'
    assert url.port == 3306
    assert url.database == 'app'
    assert url.password == 's3cret'
