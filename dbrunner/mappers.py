"""
파라미터 바인더, 결과 매퍼, 실행 후 추출 전략
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar

from dbrunner.exception import SingleResultExpectedError
from dbrunner.release import non_throwing_close
from dbrunner.statement import PreparedStatement, ResultSet

T = TypeVar('T')

Binder = Callable[[PreparedStatement], None]
RowMapper = Callable[[ResultSet], T]


# ============================================================
# Binders
# ============================================================

def NOOP(statement: PreparedStatement) -> None:
    """파라미터 없음"""
    return None


def params(*values: Any) -> Binder:
    """위치 파라미터 바인더"""
    def bind(statement: PreparedStatement) -> None:
        statement.set_parameters(*values)
    return bind


def named(**values: Any) -> Binder:
    """이름 파라미터 바인더"""
    def bind(statement: PreparedStatement) -> None:
        statement.set_named(**values)
    return bind


def batch(rows: Iterable[Sequence[Any]]) -> Binder:
    """배치 바인더 (행마다 add_batch)"""
    def bind(statement: PreparedStatement) -> None:
        for row in rows:
            statement.set_parameters(*row)
            statement.add_batch()
    return bind


# ============================================================
# Mappers
# ============================================================

def column(index: int | str) -> RowMapper:
    """컬럼 하나를 값으로 매핑하는 행 매퍼"""
    def map_row(rs: ResultSet) -> Any:
        return rs.get(index)
    return map_row


def as_dict(rs: ResultSet) -> dict[str, Any]:
    """현재 행을 컬럼명 딕셔너리로 매핑"""
    return dict(zip(rs.columns, rs.row))


class ResultSetMapper(ABC, Generic[T]):
    """결과셋 전체를 값 하나로 매핑 (반복은 매퍼가 직접 제어)"""

    @abstractmethod
    def map(self, rs: ResultSet) -> T:
        ...

    def __call__(self, rs: ResultSet) -> T:
        return self.map(rs)


class SingleResultMapper(ResultSetMapper[T]):
    """정확히 한 행을 기대하는 결과셋 매퍼"""

    def __init__(self, row_mapper: RowMapper):
        self._row_mapper = row_mapper

    def map(self, rs: ResultSet) -> T:
        if not rs.next():
            raise SingleResultExpectedError("Expected single result in result set, but had none.")
        result = self._row_mapper(rs)
        if rs.next():
            raise SingleResultExpectedError("Expected single result in result set, but had more than 1.")
        return result


SINGLE_INT: SingleResultMapper[int] = SingleResultMapper(lambda rs: int(rs.get(0)))
SINGLE_FLOAT: SingleResultMapper[float] = SingleResultMapper(lambda rs: float(rs.get(0)))
SINGLE_STRING: SingleResultMapper[str] = SingleResultMapper(lambda rs: str(rs.get(0)))


# ============================================================
# 실행 후 추출 전략
# ============================================================

class AfterExecution(ABC, Generic[T]):
    """실행된 스테이트먼트에서 결과를 추출하는 전략"""

    @abstractmethod
    def extract(self, statement: PreparedStatement) -> T:
        ...


class UpdateCount(AfterExecution[int]):
    """영향받은 행 수 반환"""

    def extract(self, statement: PreparedStatement) -> int:
        return statement.update_count


class _WithResultSet(AfterExecution[T]):
    """결과셋을 열고, 추출 후 스테이트먼트보다 먼저 닫음"""

    def extract(self, statement: PreparedStatement) -> T:
        rs = None
        try:
            rs = statement.result_set()
            return self.map(rs)
        finally:
            non_throwing_close(rs)

    @abstractmethod
    def map(self, rs: ResultSet) -> T:
        ...


class MapRows(_WithResultSet[list]):
    """행마다 row_mapper를 적용해 리스트로 반환"""

    def __init__(self, row_mapper: RowMapper):
        self._row_mapper = row_mapper

    def map(self, rs: ResultSet) -> list:
        results = []
        while rs.next():
            results.append(self._row_mapper(rs))
        return results


class MapResultSet(_WithResultSet[T]):
    """소비하지 않은 결과셋을 매퍼에 그대로 전달"""

    def __init__(self, result_set_mapper: Callable[[ResultSet], T]):
        self._result_set_mapper = result_set_mapper

    def map(self, rs: ResultSet) -> T:
        return self._result_set_mapper(rs)
