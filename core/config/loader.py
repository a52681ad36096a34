"""
설정 로더

ledger.yaml을 불변 LedgerConfig로 로드
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import Defaults, Paths
from core.types import AccountingBasis, TaxRegime


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    database_path: Path
    tax_regime: TaxRegime = TaxRegime(Defaults.TAX_REGIME)
    basis: AccountingBasis = AccountingBasis(Defaults.BASIS)
    log_level: str = Defaults.LOG_LEVEL
    default_useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _parse_enum(enum_cls: type, value: str, field: str):
    try:
        return enum_cls(value)
    except ValueError as e:
        valid = [m.value for m in enum_cls]
        raise ConfigLoadError(
            f"Invalid {field}: '{value}'. Valid values: {valid}"
        ) from e


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    파일이 없거나 비어 있으면 기본값 사용.

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: YAML 형식 오류 또는 잘못된 값
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        return LedgerConfig(database_path=Paths.LEDGER_DB)

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse {path.name}: {e}") from e

    if data is None:
        return LedgerConfig(database_path=Paths.LEDGER_DB)

    if not isinstance(data, dict):
        raise ConfigLoadError(f"{path.name} must contain a mapping")

    # 상대 DB 경로는 설정 파일 디렉토리 기준
    db_value = data.get("database_path")
    if db_value:
        database_path = Path(db_value)
        if not database_path.is_absolute():
            database_path = path.parent / database_path
    else:
        database_path = Paths.LEDGER_DB

    tax_regime = _parse_enum(
        TaxRegime, str(data.get("tax_regime", Defaults.TAX_REGIME)), "tax_regime"
    )
    basis = _parse_enum(
        AccountingBasis, str(data.get("basis", Defaults.BASIS)).upper(), "basis"
    )

    log_level = str(data.get("log_level", Defaults.LOG_LEVEL)).upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigLoadError(f"Invalid log_level: '{log_level}'")

    depreciation = data.get("depreciation") or {}
    if not isinstance(depreciation, dict):
        raise ConfigLoadError("depreciation must be a mapping")
    life = depreciation.get("default_useful_life_months", Defaults.USEFUL_LIFE_MONTHS)
    if not isinstance(life, int) or isinstance(life, bool) or life <= 0:
        raise ConfigLoadError(
            f"depreciation.default_useful_life_months must be a positive integer: {life!r}"
        )

    return LedgerConfig(
        database_path=database_path,
        tax_regime=tax_regime,
        basis=basis,
        log_level=log_level,
        default_useful_life_months=life,
    )


class Settings:
    """애플리케이션 설정 (싱글톤)

    ledger.yaml을 한 번 로드하여 제공
    """

    _instance: "Settings | None" = None
    _config: LedgerConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(config_path)

    @property
    def config(self) -> LedgerConfig:
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """Ledger DB 경로"""
        return self.config.database_path

    @property
    def tax_regime(self) -> TaxRegime:
        return self.config.tax_regime

    @property
    def log_level(self) -> str:
        return self.config.log_level

    @classmethod
    def reset(cls) -> None:
        """싱글톤 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 싱글톤 반환

    Args:
        config_path: ledger.yaml 경로 (None이면 기본 경로 사용)
    """
    return Settings(config_path)
