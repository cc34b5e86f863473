"""
설정 모델 및 로더

config/database.yaml 형식:
    databases:
      default:
        type: sqlite
        path: ./data/default.db
        autocommit: true
        commit_when_autocommit_disabled: false
        options:
          busy_timeout: 5000
          begin_mode: DEFERRED
    logging:
      level: INFO
      json_format: true
      sql_level: DEBUG
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from dbrunner.sqlite3 import SqliteOptions


class SqliteOptionsConfig(BaseModel):
    """SQLite 연결 옵션"""
    busy_timeout: int = Field(default=5000, ge=0)
    journal_mode: str = 'WAL'
    synchronous: str = 'NORMAL'
    cache_size: int = -2000
    foreign_keys: bool = True
    begin_mode: Literal['DEFERRED', 'IMMEDIATE', 'EXCLUSIVE'] = 'DEFERRED'

    def to_options(self) -> SqliteOptions:
        return SqliteOptions(**self.model_dump())


class DataSourceConfig(BaseModel):
    """데이터 소스 설정"""
    type: Literal['sqlite'] = 'sqlite'
    path: str = Field(description="DB 파일 경로 (':memory:' 허용)")
    autocommit: bool = True
    commit_when_autocommit_disabled: bool = False
    options: SqliteOptionsConfig = Field(default_factory=SqliteOptionsConfig)


class LoggingConfig(BaseModel):
    """로깅 설정"""
    level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] = 'INFO'
    json_format: bool = True
    log_file: str | None = None
    sql_level: Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'] | None = None


class RunnerConfig(BaseModel):
    """전체 설정"""
    databases: dict[str, DataSourceConfig] = Field(default_factory=dict)
    logging: LoggingConfig | None = None


def load_config(path: str | Path) -> RunnerConfig:
    """YAML 설정 파일 로드 및 검증"""
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return RunnerConfig.model_validate(raw)
