"""
SQL 파일 로더

aiosql 형식(-- name: ...)의 .sql 파일에서 이름이 붙은 쿼리 텍스트를 읽습니다.
"""

from pathlib import Path

import aiosql
from aiosql.queries import Queries


def load_queries(sql_path: str | Path, driver: str = "sqlite3") -> Queries:
    """aiosql로 SQL 파일(또는 디렉토리) 로드"""
    return aiosql.from_path(sql_path, driver)


def query_text(queries: Queries, name: str) -> str:
    """
    이름으로 쿼리 SQL 텍스트 반환

    Raises:
        KeyError: 정의되지 않은 쿼리 이름
    """
    if name not in queries.available_queries:
        raise KeyError(f"Query not found: {name}")
    return getattr(queries, name).sql
