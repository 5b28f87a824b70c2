"""
JSON Schema Contract Validators

Модуль для валидации JSON конфигураций согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам,
после чего данные загружаются в Pydantic модели.

Схемы:
- fee_config.json (налоги ledger)
- ledger_settings.json (параметры развёртывания, ссылается на fee_config.json)
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator
from referencing import Registry, Resource

from src.core.domain.fee_config import FeeConfig
from src.core.domain.ledger_settings import LedgerSettings


# =============================================================================
# SCHEMA LOADER
# =============================================================================

# contracts/schema/ в корне проекта (4 уровня вверх от этого файла)
DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parents[3] / "contracts" / "schema"


class SchemaLoader:
    """
    Каталог JSON Schema контрактов.

    Каждая схема проходит meta-валидацию Draft 2020-12 при первой загрузке
    и кэшируется. registry() собирает все схемы каталога по их $id,
    поэтому ссылки вида {"$ref": "fee_config.json"} разрешаются локально.
    """

    def __init__(self, schema_dir: Path | None = None):
        self.schema_dir = Path(schema_dir) if schema_dir is not None else DEFAULT_SCHEMA_DIR
        if not self.schema_dir.is_dir():
            raise RuntimeError(f"Schema directory not found: {self.schema_dir}")

        self._cache: Dict[str, Dict[str, Any]] = {}
        self._registry: Registry | None = None

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Схема по имени файла без расширения ('fee_config', 'ledger_settings').

        Raises:
            FileNotFoundError: Файла схемы нет в каталоге
            json.JSONDecodeError: Файл не является JSON
            ValueError: Документ не является валидной JSON Schema
        """
        cached = self._cache.get(schema_name)
        if cached is not None:
            return cached

        path = self.schema_dir / f"{schema_name}.json"
        if not path.is_file():
            raise FileNotFoundError(f"Schema not found: {path}")
        schema = json.loads(path.read_text(encoding="utf-8"))

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e

        self._cache[schema_name] = schema
        return schema

    def registry(self) -> Registry:
        """Registry всех схем каталога по $id (строится один раз)."""
        if self._registry is None:
            schemas = [self.load_schema(path.stem) for path in sorted(self.schema_dir.glob("*.json"))]
            self._registry = Registry().with_resources(
                (schema["$id"], Resource.from_contents(schema)) for schema in schemas
            )
        return self._registry


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Валидатор документа против одной схемы каталога.

    Скомпилированный Draft202012Validator переиспользуется всеми
    экземплярами с тем же schema_name.
    """

    _compiled: Dict[str, Draft202012Validator] = {}

    def __init__(self, schema_name: str, loader: SchemaLoader | None = None):
        loader = loader or _SCHEMA_LOADER
        self.schema_name = schema_name
        key = f"{loader.schema_dir}:{schema_name}"
        if key not in self._compiled:
            self._compiled[key] = Draft202012Validator(
                loader.load_schema(schema_name), registry=loader.registry()
            )
        self.validator = self._compiled[key]

    @property
    def schema(self) -> Dict[str, Any]:
        return self.validator.schema

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Первое (наиболее релевантное) нарушение схемы
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Все нарушения схемы (для диагностики конфигурации)."""
        return self.validator.iter_errors(data)


class FeeConfigValidator(ContractValidator):
    """fee_config.json"""

    def __init__(self):
        super().__init__("fee_config")


class LedgerSettingsValidator(ContractValidator):
    """ledger_settings.json (fee_config через $ref)"""

    def __init__(self):
        super().__init__("ledger_settings")


# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_fee_config(data: Dict[str, Any]) -> None:
    """
    Валидация fee_config данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    FeeConfigValidator().validate(data)


def validate_ledger_settings(data: Dict[str, Any]) -> None:
    """
    Валидация ledger_settings данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    LedgerSettingsValidator().validate(data)


def load_fee_config(data: Dict[str, Any]) -> FeeConfig:
    """
    Загрузка FeeConfig: сначала JSON Schema, затем Pydantic.

    JSON Schema проверяет форму документа, Pydantic — межполевой инвариант
    (суммарный налог не более 100%).

    Raises:
        ValidationError: jsonschema или pydantic ошибка
    """
    validate_fee_config(data)
    return FeeConfig.model_validate(data)


def load_ledger_settings(data: Dict[str, Any]) -> LedgerSettings:
    """
    Загрузка LedgerSettings: сначала JSON Schema, затем Pydantic.

    Raises:
        ValidationError: jsonschema или pydantic ошибка
    """
    validate_ledger_settings(data)
    return LedgerSettings.model_validate(data)


def load_ledger_settings_file(path: Path | str) -> LedgerSettings:
    """Загрузка LedgerSettings из JSON файла."""
    with open(path, "r", encoding="utf-8") as f:
        return load_ledger_settings(json.load(f))
