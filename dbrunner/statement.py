"""
프리페어드 스테이트먼트 / 결과셋 모듈

DB-API 커서 위에 스테이트먼트 핸들(파라미터 바인딩, 배치)과
결과셋 핸들(행 단위 이동, 컬럼 조회)을 제공합니다.
"""

import logging
from typing import Any, Iterator, Sequence

from dbrunner.exception import DatabaseError

logger = logging.getLogger(__name__)


def _log_query(sql: str, parameters: Any = None) -> None:
    """SQL 쿼리 로깅"""
    sql_oneline = ' '.join(sql.split())
    if parameters:
        logger.debug(f"[SQL] {sql_oneline} | params: {parameters}")
    else:
        logger.debug(f"[SQL] {sql_oneline}")


def _log_result(row_count: int) -> None:
    """SQL 결과 로깅"""
    logger.debug(f"[SQL Result] {row_count} row(s)")


class ResultSet:
    """
    결과셋 핸들

    스테이트먼트 커서를 한 행씩 전진시키며 현재 행을 노출합니다.
    close() 이후에는 더 이상 읽을 수 없습니다 (커서 자체는 스테이트먼트 소유).
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self._row: Sequence[Any] | None = None
        self._row_count = 0
        self._closed = False
        description = getattr(cursor, 'description', None) or ()
        self._columns = {col[0].lower(): i for i, col in enumerate(description)}

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def row(self) -> Sequence[Any]:
        """현재 행"""
        if self._row is None:
            raise DatabaseError("No current row. Call next() first.")
        return self._row

    @property
    def row_count(self) -> int:
        """지금까지 읽은 행 수"""
        return self._row_count

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def next(self) -> bool:
        """다음 행으로 이동 (행이 없으면 False)"""
        if self._closed:
            raise DatabaseError("Result set is closed")
        if not self._columns:
            self._row = None
            return False
        self._row = self._cursor.fetchone()
        if self._row is None:
            return False
        self._row_count += 1
        return True

    def get(self, column: int | str) -> Any:
        """현재 행의 컬럼 값 (0부터 시작하는 인덱스 또는 컬럼명)"""
        row = self.row
        if isinstance(column, str):
            try:
                index = self._columns[column.lower()]
            except KeyError:
                raise DatabaseError(f"Unknown column: {column}") from None
            return row[index]
        return row[column]

    def __iter__(self) -> Iterator["ResultSet"]:
        while self.next():
            yield self

    def close(self) -> None:
        if not self._closed:
            _log_result(self._row_count)
        self._closed = True
        self._row = None


class PreparedStatement:
    """
    프리페어드 스테이트먼트 핸들

    바인더 콜백이 set_parameters()/set_named()로 파라미터를 지정하고,
    배치 실행 시에는 add_batch()로 파라미터 세트를 누적합니다.
    """

    def __init__(self, cursor: Any, sql: str):
        self._cursor = cursor
        self._sql = sql
        self._parameters: Sequence[Any] | dict[str, Any] = ()
        self._batch: list[Sequence[Any] | dict[str, Any]] = []

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def cursor(self) -> Any:
        return self._cursor

    @property
    def parameters(self) -> Sequence[Any] | dict[str, Any]:
        return self._parameters

    @property
    def batch_size(self) -> int:
        return len(self._batch)

    def set_parameters(self, *values: Any) -> None:
        """위치 파라미터 바인딩"""
        self._parameters = tuple(values)

    def set_named(self, **values: Any) -> None:
        """이름 파라미터 바인딩 (:name 스타일)"""
        self._parameters = dict(values)

    def add_batch(self) -> None:
        """현재 파라미터를 배치에 추가"""
        self._batch.append(self._parameters)
        self._parameters = ()

    def execute(self) -> None:
        """스테이트먼트 실행"""
        _log_query(self._sql, self._parameters)
        if self._parameters:
            self._cursor.execute(self._sql, self._parameters)
        else:
            self._cursor.execute(self._sql)

    def execute_batch(self) -> None:
        """누적된 파라미터 세트로 배치 실행"""
        _log_query(self._sql, f"[{len(self._batch)} rows]")
        self._cursor.executemany(self._sql, self._batch)
        self._batch = []

    @property
    def update_count(self) -> int:
        """영향받은 행 수 (드라이버가 알 수 없으면 -1)"""
        return self._cursor.rowcount

    def result_set(self) -> ResultSet:
        """실행 결과 커서에 대한 결과셋 핸들"""
        return ResultSet(self._cursor)

    def close(self) -> None:
        self._cursor.close()
