"""
설정 로더

settings.yaml 로드 및 원장 설정 생성
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import LedgerMode


@dataclass(frozen=True)
class LedgerSettings:
    """원장 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    ledger_mode: LedgerMode
    db_path: Path
    log_level: int


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def default_settings() -> LedgerSettings:
    """settings.yaml이 없을 때 사용하는 기본 설정"""
    return LedgerSettings(
        ledger_mode=LedgerMode(Defaults.LEDGER_MODE),
        db_path=Paths.LEDGER_DB,
        log_level=logging.getLevelName(Defaults.LOG_LEVEL),
    )


def _resolve_db_path(raw: str | None) -> Path:
    if not raw:
        return Paths.LEDGER_DB
    path = Path(raw)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def load_settings(path: Path | None = None) -> LedgerSettings:
    """settings.yaml 파일 로드

    기본 경로의 파일은 선택 사항이며 없으면 기본 설정을 반환.
    명시적으로 지정한 경로가 없으면 오류.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerSettings 인스턴스

    Raises:
        SettingsLoadError: 지정한 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode / level인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE
        if not path.exists():
            return default_settings()

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        return default_settings()

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    ledger_config = data.get("ledger") or {}
    logging_config = data.get("logging") or {}

    # mode 검증
    mode_str = ledger_config.get("mode", Defaults.LEDGER_MODE)
    try:
        mode = LedgerMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in LedgerMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    # 로그 레벨 검증
    level_name = str(logging_config.get("level", Defaults.LOG_LEVEL)).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"유효하지 않은 로그 레벨입니다: '{level_name}'")

    return LedgerSettings(
        ledger_mode=mode,
        db_path=_resolve_db_path(ledger_config.get("db_path")),
        log_level=level,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _settings: LedgerSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            self._settings = load_settings(settings_path)

    @property
    def ledger_mode(self) -> LedgerMode:
        """기본 기장 모드"""
        assert self._settings is not None
        return self._settings.ledger_mode

    @property
    def db_path(self) -> Path:
        """원장 DB 경로"""
        assert self._settings is not None
        return self._settings.db_path

    @property
    def log_level(self) -> int:
        """콘솔 로그 레벨"""
        assert self._settings is not None
        return self._settings.log_level

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
