"""
커넥션 / 커넥션 공급자 기본 인터페이스
"""

from abc import ABC, abstractmethod

from dbrunner.exception import ConnectionUnavailableError
from dbrunner.statement import PreparedStatement


class Connection(ABC):
    """데이터베이스 세션 하나를 나타내는 커넥션 핸들"""

    @property
    @abstractmethod
    def error_types(self) -> tuple[type[BaseException], ...]:
        """드라이버가 발생시키는 예외 타입 (PEP 249 Error)"""
        ...

    @abstractmethod
    def get_autocommit(self) -> bool:
        ...

    @abstractmethod
    def set_autocommit(self, autocommit: bool) -> None:
        ...

    @abstractmethod
    def prepare_statement(self, sql: str) -> PreparedStatement:
        """SQL에 대한 스테이트먼트 핸들 생성"""
        ...

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...


class ConnectionSupplier(ABC):
    """
    커넥션 공급자

    get_connection()은 호출마다 커넥션을 하나 반환하며, 반환된 커넥션은
    호출한 쪽이 닫습니다.
    """

    @abstractmethod
    def get_connection(self) -> Connection:
        """
        커넥션 획득

        Raises:
            ConnectionUnavailableError: 커넥션을 열 수 없는 경우
        """
        ...

    @abstractmethod
    def commit_when_autocommit_disabled(self) -> bool:
        """
        autocommit이 꺼진 커넥션에서 단건 실행 시 커밋/롤백할지 여부

        False면 외부 트랜잭션 관리자가 커밋을 담당하는 것으로 간주합니다.
        """
        ...

    def close(self) -> None:
        """공급자가 유지하는 리소스 해제"""
        pass


def acquire_connection(supplier: ConnectionSupplier) -> Connection:
    """공급자에서 커넥션 획득 (실패 시 ConnectionUnavailableError)"""
    try:
        return supplier.get_connection()
    except ConnectionUnavailableError:
        raise
    except Exception as e:
        raise ConnectionUnavailableError(cause=e) from e
