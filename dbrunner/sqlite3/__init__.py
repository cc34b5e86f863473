"""
SQLite3 데이터베이스 패키지

사용 예시:
    from dbrunner import SqlRunner
    from dbrunner.sqlite3 import SQLiteDataSource

    runner = SqlRunner(SQLiteDataSource('./data/app.db'))
    runner.execute("INSERT INTO items (name) VALUES (?)", params('a'))
"""

from dbrunner.sqlite3.connection import (
    SQLiteDataSource,
    SQLiteConnection,
    SqliteOptions,
)

__all__ = [
    'SQLiteDataSource',
    'SQLiteConnection',
    'SqliteOptions',
]
