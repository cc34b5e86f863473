"""
이름별 SqlRunner 레지스트리

사용 예시:
    DatabaseRegistry.init_from_path('config/database.yaml')
    runner = get_db('default')
"""

import logging
from pathlib import Path
from typing import Any

from common.logging import setup_logging
from dbrunner.base import ConnectionSupplier
from dbrunner.config import DataSourceConfig, RunnerConfig, load_config
from dbrunner.release import non_throwing_close
from dbrunner.runner import SqlRunner
from dbrunner.sqlite3 import SQLiteDataSource

logger = logging.getLogger(__name__)


def create_supplier(config: DataSourceConfig) -> ConnectionSupplier:
    """설정으로부터 커넥션 공급자 생성"""
    if config.type == 'sqlite':
        return SQLiteDataSource(
            config.path,
            options=config.options.to_options(),
            autocommit=config.autocommit,
            commit_when_autocommit_disabled=config.commit_when_autocommit_disabled,
        )
    raise ValueError(f"Unsupported database type: {config.type}")


class DatabaseRegistry:
    """SqlRunner 레지스트리 (클래스 레벨)"""

    _runners: dict[str, SqlRunner] = {}

    @classmethod
    def init_from_config(cls, config: dict[str, Any] | RunnerConfig) -> None:
        """설정의 databases 항목마다 SqlRunner 등록"""
        if not isinstance(config, RunnerConfig):
            config = RunnerConfig.model_validate(config)

        for name, source_config in config.databases.items():
            if name in cls._runners:
                logger.warning(f"Database '{name}' already registered, replacing")
            cls._runners[name] = SqlRunner(create_supplier(source_config), name)
            logger.info(f"Database '{name}' registered ({source_config.type}: {source_config.path})")

    @classmethod
    def init_from_path(cls, path: str | Path) -> None:
        """YAML 설정 파일로 로깅 및 레지스트리 초기화"""
        config = load_config(path)
        if config.logging is not None:
            setup_logging(
                level=config.logging.level,
                json_format=config.logging.json_format,
                log_file=config.logging.log_file,
                sql_level=config.logging.sql_level,
            )
        cls.init_from_config(config)

    @classmethod
    def register(cls, runner: SqlRunner) -> None:
        cls._runners[runner.name] = runner

    @classmethod
    def get(cls, name: str) -> SqlRunner:
        if name not in cls._runners:
            raise KeyError(f"Database '{name}' not registered")
        return cls._runners[name]

    @classmethod
    def names(cls) -> list[str]:
        return list(cls._runners)

    @classmethod
    def close_all(cls) -> None:
        """모든 공급자 리소스 해제 후 등록 해제"""
        for runner in cls._runners.values():
            non_throwing_close(runner.supplier)
        cls._runners.clear()

    @classmethod
    def clear(cls) -> None:
        """등록 해제 (테스트용)"""
        cls._runners.clear()


def get_db(name: str = 'default') -> SqlRunner:
    """등록된 SqlRunner 반환"""
    return DatabaseRegistry.get(name)
