import pytest
from mysql.connector import errors as mysql_errors

from src.hr_policy.hr_policy.audit.trail import AuditTrail
from src.hr_policy.hr_policy.core.enums import AuditAction
from src.hr_policy.hr_policy.database.mysql_base import db_cursor, retry_once


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def execute(self, sql, params=None):
        if self.conn.fail_execute:
            raise mysql_errors.OperationalError("lost connection")
        self.conn.statements.append(sql)

    def close(self):
        pass


class FakeConn:
    def __init__(self, fail_execute=False):
        self.fail_execute = fail_execute
        self.statements = []
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return FakeCursor(self)

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FlakyFactory:
    def __init__(self, connect_failures=0, fail_execute=False):
        self.connect_failures = connect_failures
        self.fail_execute = fail_execute
        self.opened = []

    def connect(self):
        if self.connect_failures:
            self.connect_failures -= 1
            raise mysql_errors.InterfaceError("server gone")
        conn = FakeConn(self.fail_execute)
        self.opened.append(conn)
        return conn


def test_failed_connect_is_retried_once():
    factory = FlakyFactory(connect_failures=1)

    with db_cursor(factory) as (_, cur):
        cur.execute("INSERT INTO audit_logs VALUES (1)")

    assert len(factory.opened) == 1
    assert factory.opened[0].statements == ["INSERT INTO audit_logs VALUES (1)"]
    assert factory.opened[0].committed


def test_second_connect_failure_surfaces():
    with pytest.raises(mysql_errors.InterfaceError):
        with db_cursor(FlakyFactory(connect_failures=2)):
            pass


def test_write_error_rolls_back_and_is_not_repeated():
    factory = FlakyFactory(fail_execute=True)

    with pytest.raises(mysql_errors.OperationalError):
        with db_cursor(factory) as (_, cur):
            cur.execute("INSERT INTO audit_logs VALUES (1)")

    assert len(factory.opened) == 1
    assert factory.opened[0].rolled_back
    assert not factory.opened[0].committed


def test_read_retry_repeats_a_lost_select_once():
    calls = []

    @retry_once
    def read():
        calls.append(1)
        if len(calls) == 1:
            raise mysql_errors.OperationalError("lost connection")
        return "row"

    assert read() == "row"
    assert len(calls) == 2


def test_audit_entry_is_written_at_most_once():
    class LostReplyRepo:
        def __init__(self):
            self.appended = []

        def append(self, entry):
            self.appended.append(entry)
            raise mysql_errors.OperationalError("lost connection after commit")

    repo = LostReplyRepo()

    assert AuditTrail(repo).record(company_id=1, table_name="employees", record_id=1, action=AuditAction.INSERT) is False
    assert len(repo.appended) == 1
