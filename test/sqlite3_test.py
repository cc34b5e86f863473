"""
SQLite3 데이터베이스 테스트

테스트 항목:
1. 기본 실행/조회 (행 매핑, 단일 결과 매핑)
2. 무결성 제약조건 위반 변환 (PK, UNIQUE)
3. 배치 실행
4. 트랜잭션 테스트 (in_transaction, 데코레이터, 수동)
5. 외부 트랜잭션 관리 모드
6. 커넥션 획득 실패
7. 로깅 테스트
8. 동시성 / 다중 DB 테스트

실행: python -m pytest test/sqlite3_test.py -v
"""

import logging
import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from dbrunner import (
    NOOP,
    SINGLE_INT,
    SINGLE_STRING,
    AlreadyInTransactionError,
    ConnectionUnavailableError,
    DatabaseError,
    IntegrityConstraintViolation,
    SingleResultExpectedError,
    SqlRunner,
    as_dict,
    batch,
    column,
    get_connection,
    named,
    params,
    transactional,
)
from dbrunner.sqlite3 import SQLiteConnection, SQLiteDataSource, SqliteOptions

logger = logging.getLogger(__name__)


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.db")


@pytest.fixture
def runner(db_path):
    """autocommit 커넥션을 쓰는 SqlRunner"""
    return SqlRunner(SQLiteDataSource(db_path))


@pytest.fixture
def table(runner):
    """column1 단일 컬럼 테이블"""
    runner.execute("CREATE TABLE table1 (column1 INTEGER)")
    return runner


def count_rows(runner: SqlRunner) -> int:
    return runner.query("SELECT count(*) FROM table1", NOOP, SINGLE_INT)


class TestExecuteAndQuery:
    """기본 실행/조회 테스트"""

    def test_basics(self, table):
        """INSERT/SELECT/UPDATE 기본 동작"""
        inserted = table.execute("INSERT INTO table1 (column1) VALUES (?)", params(1))
        assert inserted == 1

        row_mapped = table.query("SELECT * FROM table1", NOOP, column('column1'))
        assert row_mapped == [1]

        assert table.query("SELECT * FROM table1", NOOP, SINGLE_INT) == 1

        updated = table.execute(
            "UPDATE table1 SET column1 = ? WHERE column1 = ?",
            params(5, 1),
        )
        assert updated == 1
        logger.info("Basics test passed")

    def test_map_multiple_rows(self, table):
        """여러 행 순서대로 매핑"""
        table.execute("INSERT INTO table1 (column1) VALUES (1)")
        table.execute("INSERT INTO table1 (column1) VALUES (2)")

        assert table.query("SELECT * FROM table1 ORDER BY column1", NOOP, column(0)) == [1, 2]
        # 같은 쿼리를 다시 실행해도 같은 결과
        assert table.query("SELECT * FROM table1 ORDER BY column1", NOOP, column(0)) == [1, 2]

    def test_single_result(self, runner):
        """단일 결과 매퍼: 한 행이면 값, 여러 행이면 예외"""
        runner.execute("CREATE TABLE one_row (column1 INTEGER)")
        runner.execute("INSERT INTO one_row (column1) VALUES (2)")
        assert runner.query("SELECT column1 FROM one_row", NOOP, SINGLE_INT) == 2

        runner.execute("CREATE TABLE two_rows (column1 INTEGER)")
        runner.execute("INSERT INTO two_rows (column1) VALUES (1)")
        runner.execute("INSERT INTO two_rows (column1) VALUES (2)")
        with pytest.raises(SingleResultExpectedError, match="more than 1"):
            runner.query("SELECT column1 FROM two_rows", NOOP, SINGLE_INT)

    def test_single_result_none(self, table):
        """단일 결과 매퍼: 행이 없으면 예외"""
        with pytest.raises(SingleResultExpectedError, match="had none"):
            table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT)

    def test_named_parameters_and_dict_rows(self, runner):
        """이름 파라미터 바인딩과 딕셔너리 매핑"""
        runner.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT)")
        runner.execute("INSERT INTO items (id, name) VALUES (:id, :name)", named(id=1, name="apple"))

        rows = runner.query("SELECT id, name FROM items", NOOP, as_dict)
        assert rows == [{'id': 1, 'name': 'apple'}]
        assert runner.query("SELECT name FROM items WHERE id = ?", params(1), SINGLE_STRING) == "apple"

    def test_query_result_set(self, table):
        """결과셋을 매퍼가 직접 순회"""
        table.execute_batch("INSERT INTO table1 (column1) VALUES (?)", batch([(1,), (2,), (3,)]))

        total = table.query_result_set(
            "SELECT column1 FROM table1",
            NOOP,
            lambda rs: sum(row.get(0) for row in rs),
        )
        assert total == 6

    def test_non_constraint_failure(self, runner):
        """제약조건 외 실행 실패는 DatabaseError"""
        with pytest.raises(DatabaseError) as exc_info:
            runner.query("SELECT * FROM missing_table", NOOP, column(0))

        assert not isinstance(exc_info.value, IntegrityConstraintViolation)
        assert exc_info.value.cause is not None


class TestConstraintViolation:
    """무결성 제약조건 위반 변환 테스트"""

    def test_primary_key_constraint(self, runner):
        """PK 중복 -> IntegrityConstraintViolation"""
        runner.execute("CREATE TABLE table1 (column1 INTEGER PRIMARY KEY)")
        runner.execute("INSERT INTO table1 (column1) VALUES (1)")

        with pytest.raises(IntegrityConstraintViolation):
            runner.execute("INSERT INTO table1 (column1) VALUES (1)")

    def test_unique_constraint(self, table):
        """UNIQUE 인덱스 중복 -> IntegrityConstraintViolation"""
        table.execute("CREATE UNIQUE INDEX col1_uidx ON table1 (column1)")
        table.execute("INSERT INTO table1 (column1) VALUES (1)")

        with pytest.raises(IntegrityConstraintViolation):
            table.execute("INSERT INTO table1 (column1) VALUES (1)")


class TestBatch:
    """배치 실행 테스트"""

    def test_execute_batch(self, table):
        """배치 INSERT 전체 행 수 반환"""
        inserted = table.execute_batch(
            "INSERT INTO table1 (column1) VALUES (?)",
            batch([(1,), (2,), (3,)]),
        )

        assert inserted == 3
        assert count_rows(table) == 3

    def test_batch_constraint_violation(self, runner):
        """배치 중 중복 -> IntegrityConstraintViolation"""
        runner.execute("CREATE TABLE table1 (column1 INTEGER PRIMARY KEY)")

        with pytest.raises(IntegrityConstraintViolation):
            runner.execute_batch("INSERT INTO table1 (column1) VALUES (?)", batch([(1,), (1,)]))


class TestTransaction:
    """트랜잭션 테스트"""

    def test_in_transaction_commit(self, table):
        """in_transaction 커밋"""
        def work(tx):
            tx.execute("INSERT INTO table1 (column1) VALUES (?)", params(1))
            tx.execute("INSERT INTO table1 (column1) VALUES (?)", params(2))
            return count_rows(tx)

        assert table.in_transaction(work) == 2
        assert count_rows(table) == 2
        assert table.transaction_manager.current() is None

    def test_in_transaction_rollback(self, table):
        """예외 발생 시 롤백되고 원래 예외 전달"""
        def work(tx):
            tx.execute("INSERT INTO table1 (column1) VALUES (?)", params(1))
            raise ValueError("Intentional error for rollback test")

        with pytest.raises(ValueError, match="Intentional"):
            table.in_transaction(work)

        assert count_rows(table) == 0

    def test_autocommit_restored(self, table):
        """트랜잭션 동안 autocommit 해제, 종료 후 복원"""
        seen = []

        def work(tx):
            seen.append(get_connection('default').get_autocommit())

        table.in_transaction(work)
        assert seen == [False]

    def test_transactional_decorator_rollback(self, table):
        """트랜잭션 데코레이터 롤백"""
        @transactional(table)
        def insert_and_fail():
            table.execute("INSERT INTO table1 (column1) VALUES (?)", params(7))
            raise ValueError("Force rollback")

        with pytest.raises(ValueError):
            insert_and_fail()

        assert count_rows(table) == 0

    def test_manual_transaction(self, table):
        """수동 트랜잭션 (with 블록)"""
        with table.transaction() as ctx:
            assert isinstance(ctx.connection, SQLiteConnection)
            table.execute("INSERT INTO table1 (column1) VALUES (?)", params(3))

        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 3

    def test_integrity_violation_rolls_back_whole_transaction(self, runner):
        """트랜잭션 중 제약조건 위반 시 앞선 INSERT도 롤백"""
        runner.execute("CREATE TABLE table1 (column1 INTEGER PRIMARY KEY)")

        def work(tx):
            tx.execute("INSERT INTO table1 (column1) VALUES (1)")
            tx.execute("INSERT INTO table1 (column1) VALUES (1)")

        with pytest.raises(IntegrityConstraintViolation):
            runner.in_transaction(work)

        assert count_rows(runner) == 0

    def test_ddl_rolled_back(self, table):
        """트랜잭션 안의 DDL도 롤백"""
        def work(tx):
            tx.execute("CREATE TABLE table2 (column1 INTEGER)")
            tx.execute("INSERT INTO table2 (column1) VALUES (?)", params(1))
            raise ValueError("Force rollback")

        with pytest.raises(ValueError):
            table.in_transaction(work)

        created = table.query(
            "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = 'table2'", NOOP, SINGLE_INT
        )
        assert created == 0

    def test_reads_share_snapshot(self, db_path, table):
        """첫 조회부터 트랜잭션에 포함되어 같은 스냅샷을 읽음"""
        other = SqlRunner(SQLiteDataSource(db_path), 'other')

        def work(tx):
            before = count_rows(tx)
            other.execute("INSERT INTO table1 (column1) VALUES (?)", params(1))
            after = count_rows(tx)
            return before, after

        assert table.in_transaction(work) == (0, 0)
        assert count_rows(table) == 1

    def test_begin_immediate(self, db_path, table):
        """begin_mode=IMMEDIATE 트랜잭션"""
        runner = SqlRunner(SQLiteDataSource(db_path, SqliteOptions(begin_mode='IMMEDIATE')))

        runner.in_transaction(lambda tx: tx.execute("INSERT INTO table1 (column1) VALUES (?)", params(4)))

        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 4

    def test_nested_transaction_rejected(self, table):
        """중첩 트랜잭션 거부"""
        with pytest.raises(AlreadyInTransactionError):
            table.in_transaction(lambda tx: tx.in_transaction(lambda inner: None))


class TestExternallyManagedTransaction:
    """외부 트랜잭션 관리 모드 테스트"""

    def test_externally_managed_transaction(self, db_path, table):
        """commit_when_autocommit_disabled=False면 단건 실행이 커밋하지 않음"""
        external = SqlRunner(SQLiteDataSource(db_path, autocommit=False, commit_when_autocommit_disabled=False))
        internal = SqlRunner(SQLiteDataSource(db_path, autocommit=False, commit_when_autocommit_disabled=True))

        assert internal.execute("INSERT INTO table1 (column1) VALUES (?)", params(1)) == 1
        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 1

        external.execute("UPDATE table1 SET column1 = ?", params(5))
        # 커밋되지 않아야 함
        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 1

        internal.execute("UPDATE table1 SET column1 = ?", params(2))
        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 2

    def test_transaction_on_autocommit_disabled_connection(self, db_path, table):
        """autocommit이 이미 꺼진 커넥션에서도 트랜잭션 커밋"""
        runner = SqlRunner(SQLiteDataSource(db_path, autocommit=False))

        runner.in_transaction(lambda tx: tx.execute("INSERT INTO table1 (column1) VALUES (9)"))

        assert table.query("SELECT column1 FROM table1", NOOP, SINGLE_INT) == 9


    def test_begin_before_first_statement(self, db_path, table):
        """autocommit이 꺼진 커넥션은 다음 스테이트먼트 직전에 BEGIN, 커밋 후 다시 BEGIN"""
        connection = SQLiteDataSource(db_path, autocommit=False).get_connection()
        try:
            assert connection.get_autocommit() is False
            assert not connection.raw.in_transaction

            connection.prepare_statement("SELECT 1").close()
            assert connection.raw.in_transaction

            connection.commit()
            assert not connection.raw.in_transaction
            connection.prepare_statement("SELECT 1").close()
            assert connection.raw.in_transaction

            connection.set_autocommit(True)
            assert not connection.raw.in_transaction
            connection.prepare_statement("SELECT 1").close()
            assert not connection.raw.in_transaction
        finally:
            connection.close()


class TestConnectionUnavailable:
    """커넥션 획득 실패 테스트"""

    def test_unopenable_path(self, tmp_path):
        """열 수 없는 경로 -> ConnectionUnavailableError"""
        blocker = tmp_path / "not_a_directory"
        blocker.write_text("x")
        runner = SqlRunner(SQLiteDataSource(str(blocker / "test.db")))

        with pytest.raises(ConnectionUnavailableError):
            runner.execute("SELECT 1")

        with pytest.raises(ConnectionUnavailableError):
            runner.in_transaction(lambda tx: None)

        assert runner.transaction_manager.current() is None


class TestLogging:
    """SQL 로깅 테스트"""

    def test_query_logging(self, table, caplog):
        """쿼리 로깅 테스트"""
        with caplog.at_level(logging.DEBUG, logger="dbrunner"):
            table.query("SELECT * FROM table1 WHERE column1 = ?", params(1), column(0))

        log_messages = [record.getMessage() for record in caplog.records]
        sql_logged = any("[SQL]" in msg and "SELECT" in msg for msg in log_messages)
        assert sql_logged, "SQL query should be logged"
        assert any("[SQL Result] 0 row(s)" in msg for msg in log_messages)


class TestConcurrency:
    """동시성 테스트"""

    def test_concurrent_transactions(self, table):
        """스레드별 독립 트랜잭션"""
        errors = []

        @transactional(table)
        def concurrent_insert(value: int):
            table.execute("INSERT INTO table1 (column1) VALUES (?)", params(value))

        def run(value: int):
            try:
                concurrent_insert(value)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=run, args=(i,)) for i in range(3)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert table.query("SELECT column1 FROM table1 ORDER BY column1", NOOP, column(0)) == [0, 1, 2]

    def test_multi_database(self, tmp_path):
        """이름이 다른 DB 트랜잭션은 동시에 진행 가능"""
        default_db = SqlRunner(SQLiteDataSource(str(tmp_path / "default.db")), 'default')
        secondary_db = SqlRunner(
            SQLiteDataSource(str(tmp_path / "secondary.db"), SqliteOptions(journal_mode='DELETE')),
            'secondary',
        )
        for db in (default_db, secondary_db):
            db.execute("CREATE TABLE test_items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")

        def work(tx):
            tx.execute("INSERT INTO test_items (name) VALUES (?)", params("primary"))
            secondary_db.in_transaction(
                lambda other: other.execute("INSERT INTO test_items (name) VALUES (?)", params("secondary"))
            )

        default_db.in_transaction(work)

        assert default_db.query("SELECT name FROM test_items", NOOP, SINGLE_STRING) == "primary"
        assert secondary_db.query("SELECT name FROM test_items", NOOP, SINGLE_STRING) == "secondary"


class TestInMemoryDatabase:
    """인메모리 DB 테스트"""

    def test_data_kept_between_calls(self):
        """호출마다 새 연결을 열어도 같은 인메모리 DB 사용"""
        source = SQLiteDataSource(':memory:')
        runner = SqlRunner(source)
        try:
            runner.execute("CREATE TABLE table1 (column1 INTEGER)")
            runner.execute("INSERT INTO table1 (column1) VALUES (?)", params(1))

            def work(tx):
                tx.execute("INSERT INTO table1 (column1) VALUES (?)", params(2))
                raise ValueError("Force rollback")

            with pytest.raises(ValueError):
                runner.in_transaction(work)

            assert runner.query("SELECT column1 FROM table1", NOOP, column(0)) == [1]
        finally:
            source.close()

    def test_sources_are_isolated(self):
        """공급자마다 별도 인메모리 DB"""
        first_source, second_source = SQLiteDataSource(':memory:'), SQLiteDataSource(':memory:')
        first, second = SqlRunner(first_source), SqlRunner(second_source)
        try:
            first.execute("CREATE TABLE table1 (column1 INTEGER)")

            with pytest.raises(DatabaseError):
                second.execute("INSERT INTO table1 (column1) VALUES (1)")
        finally:
            first_source.close()
            second_source.close()

    def test_close_releases_database(self):
        """close() 후에는 인메모리 DB 내용이 사라짐"""
        source = SQLiteDataSource(':memory:')
        runner = SqlRunner(source)
        runner.execute("CREATE TABLE table1 (column1 INTEGER)")

        source.close()
        source.close()

        with pytest.raises(DatabaseError):
            runner.execute("INSERT INTO table1 (column1) VALUES (1)")
        source.close()
