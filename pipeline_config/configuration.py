import math
from typing import Annotated, Any, ClassVar, Dict, List, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    RootModel,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    model_validator,
)

from .errors import SchemaError


def _truncate_number(value: Any) -> Any:
    # JSON numbers with a fractional part are truncated toward zero.
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("Input should be a finite number")
        return int(value)
    return value


# Accepts JSON integers and floats; bools and strings are rejected.
JsonInt = Annotated[StrictInt, BeforeValidator(_truncate_number)]


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def _validate_section(model, raw: Any, section: str):
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise SchemaError(describe_validation_error(exc), section=section) from exc


class SectionModel(BaseModel):
    """
    Base for every configuration section.

    Unknown fields are ignored so that newer configuration files can be read
    by older loaders. Subclasses list renamed keys in ``LEGACY_KEYS``
    (legacy name -> current name); the current name wins when both appear.
    """

    model_config = ConfigDict(extra="ignore")

    SECTION_KEY: ClassVar[str] = ""
    LEGACY_KEYS: ClassVar[Dict[str, str]] = {}

    @model_validator(mode="before")
    @classmethod
    def migrate_legacy_keys(cls, data):
        if not isinstance(data, dict) or not cls.LEGACY_KEYS:
            return data
        out = dict(data)
        for legacy, current in cls.LEGACY_KEYS.items():
            if legacy not in out:
                continue
            value = out.pop(legacy)
            out.setdefault(current, value)
        return out

    @classmethod
    def from_json(cls, raw: Any, section: Optional[str] = None):
        """Build the section from its raw JSON subtree, raising SchemaError."""
        return _validate_section(cls, raw, section or cls.SECTION_KEY)


class DataPathsConfig(SectionModel):
    """Input and output roots of the pipeline."""

    SECTION_KEY: ClassVar[str] = "data_paths"

    derivatives_root: StrictStr = Field(
        "", description="Root directory of raw derivatives (options/futures) data."
    )
    spot_root: StrictStr = Field("", description="Root directory of spot/index data.")
    export_root: StrictStr = Field("", description="Destination of processed outputs.")
    log_root: StrictStr = Field(
        "", description="Log directory. Defaults to export_root when omitted."
    )

    @model_validator(mode="before")
    @classmethod
    def default_log_root(cls, data):
        if not isinstance(data, dict) or "log_root" in data:
            return data
        out = dict(data)
        out["log_root"] = out.get("export_root", "")
        return out


class DataScopeConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "data_scope"

    underlyings: List[StrictStr] = Field(default_factory=list)
    date_from: StrictStr = ""
    date_to: StrictStr = ""
    instrument_classes: List[StrictStr] = Field(default_factory=list)
    expiry_limit: JsonInt = Field(
        0, description="Number of expiries to keep per underlying (0 keeps all)."
    )


class SymbolRegistryConfig(RootModel[Dict[str, Dict[str, StrictStr]]]):
    """
    Asset name -> (symbol type -> exchange symbol).

    Every asset key whose value is not itself an object is dropped, and a
    registry that is not an object yields no mappings.
    """

    SECTION_KEY: ClassVar[str] = "symbol_registry"

    @model_validator(mode="before")
    @classmethod
    def keep_asset_groups(cls, data):
        if isinstance(data, SymbolRegistryConfig):
            return data
        if not isinstance(data, dict):
            return {}
        return {
            asset: symbols for asset, symbols in data.items() if isinstance(symbols, dict)
        }

    @property
    def mappings(self) -> Dict[str, Dict[str, str]]:
        return self.root

    @classmethod
    def from_json(cls, raw: Any, section: Optional[str] = None):
        return _validate_section(cls, raw, section or cls.SECTION_KEY)


class SymbolMatchingConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "symbol_matching"

    options_mode: StrictStr = ""
    futures_mode: StrictStr = ""
    index_mode: StrictStr = ""
    is_case_sensitive: StrictBool = False
    trim_whitespace: StrictBool = False


class PreprocessingConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "preprocessing"

    backward_fill: StrictBool = Field(False, description="Backward fill missing values.")
    forward_fill: StrictBool = Field(False, description="Forward fill missing values.")
    ignore_empty_files: StrictBool = Field(False, description="Skip zero-row inputs.")
    merge_daily_outputs: StrictBool = Field(
        False, description="Merge daily partitions into a single output."
    )


class AccelerationConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "acceleration"

    enable_gpu: StrictBool = False


class LoggerConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "logger"

    stdout_level: StrictStr = "info"
    file_log_level: StrictStr = "info"
    log_template: StrictStr = ""
    timestamp_format: StrictStr = ""


class ExportConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "export"

    file_format: StrictStr = Field("parquet", description="Output file format.")
    codec: StrictStr = Field("none", description="Compression codec.")


class StreamLoggingConfig(SectionModel):
    """Optional data snapshots written alongside processing, for audit."""

    SECTION_KEY: ClassVar[str] = "stream_logging"

    is_enabled: StrictBool = False
    stream_log_root: StrictStr = ""
    output_formats: List[StrictStr] = Field(default_factory=list)


class ExecutionConfig(SectionModel):
    """
    Parallelism, batching and memory settings for the processing engines.

    Values are only stored here; the consuming pipeline decides how to apply
    them.
    """

    SECTION_KEY: ClassVar[str] = "execution"
    LEGACY_KEYS: ClassVar[Dict[str, str]] = {
        "cache_monthly_expiry_set": "cache_monthly_expiries",
    }

    # --- Global ---
    io_chunk_size: JsonInt = 0  # 0 means auto
    low_memory_mode: StrictBool = False
    enable_parallelism: StrictBool = True
    global_worker_cap: JsonInt = 10

    # --- Days & assets ---
    parallelize_days: StrictBool = True
    day_worker_cap: JsonInt = 10
    batch_days_mode: StrictBool = True
    days_per_batch: JsonInt = 5
    ram_limited_day_workers: JsonInt = 5
    parallelize_assets: StrictBool = False
    asset_worker_cap: JsonInt = 10
    total_worker_cap: JsonInt = 10

    # --- File IO ---
    parallel_file_io: StrictBool = True
    file_worker_cap: JsonInt = 10
    zip_streaming_mode: StrictBool = False
    process_pool_csv: StrictBool = True

    # --- Fill engine ---
    parallel_fill_engine: StrictBool = True
    multiprocess_fill_engine: StrictBool = True
    fill_worker_cap: JsonInt = 10
    fill_batch_size: JsonInt = 50
    auto_scale_fill_workers: StrictBool = True

    # --- Monthly & futures engines ---
    parallel_monthly_engine: StrictBool = True
    monthly_worker_cap: JsonInt = 10
    parallel_futures_engine: StrictBool = True
    futures_worker_cap: JsonInt = 10

    # --- Greeks & transforms ---
    parallel_greeks_engine: StrictBool = True
    greeks_worker_cap: JsonInt = 10
    greeks_block_size: JsonInt = 100_000
    transform_worker_cap: JsonInt = 10
    transform_block_size: JsonInt = 1_000

    # --- Time to expiry ---
    parallel_tte_engine: StrictBool = True
    tte_worker_cap: JsonInt = 10
    tte_block_size: JsonInt = 500_000

    # --- Synthetic futures ---
    parallel_synthetic_futures: StrictBool = True
    syn_fut_worker_cap: JsonInt = 10
    syn_fut_block_size: JsonInt = 500_000

    # --- Memory ---
    use_memory_controller: StrictBool = False
    disable_memory_controller: StrictBool = True
    cache_monthly_expiries: StrictBool = True
    omit_spot_iv: StrictBool = False
    batch_scaling_factor: JsonInt = 4


class PostComputeConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "post_compute"

    compute_synthetic_futures: StrictBool = False
    recompute_theoretical_greeks: StrictBool = False


class MarketTimingConfig(SectionModel):
    """Session hours and calendar length used for time-to-expiry."""

    SECTION_KEY: ClassVar[str] = "market_constants.trading_schedule"
    LEGACY_KEYS: ClassVar[Dict[str, str]] = {
        "minutes_per_day": "minutes_per_session",
        "trading_days_per_year": "sessions_per_year",
    }

    session_open: StrictStr = Field("", description="Session open, HH:MM:SS.")
    session_close: StrictStr = Field("", description="Session close, HH:MM:SS.")
    minutes_per_session: JsonInt = Field(
        0,
        description="Trading minutes per session; fractional values are truncated.",
    )
    sessions_per_year: JsonInt = Field(252, description="Trading sessions per year.")


class MarketConstantsConfig(SectionModel):
    SECTION_KEY: ClassVar[str] = "market_constants"

    OPTIONAL_OBJECT_KEYS: ClassVar[tuple] = (
        "calendar_month_map",
        "numeric_month_map",
        "alpha_month_map",
        "trading_schedule",
    )

    valid_underlyings: List[StrictStr] = Field(default_factory=list)
    symbol_exceptions: List[StrictStr] = Field(default_factory=list)
    expiry_cutoff_time: List[JsonInt] = Field(
        default_factory=list, description="Expiry cutoff as [hour, minute, second]."
    )
    calendar_month_map: Dict[str, StrictStr] = Field(default_factory=dict)
    numeric_month_map: Dict[str, StrictStr] = Field(default_factory=dict)
    alpha_month_map: Dict[str, StrictStr] = Field(default_factory=dict)
    trading_schedule: MarketTimingConfig = Field(default_factory=MarketTimingConfig)
    exchange_holidays: List[StrictStr] = Field(
        default_factory=list, description="Exchange holidays as date strings."
    )

    @model_validator(mode="before")
    @classmethod
    def drop_non_object_maps(cls, data):
        # Month maps and the trading schedule are only read when they are objects.
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if key not in cls.OPTIONAL_OBJECT_KEYS or isinstance(value, dict)
        }


class PipelineConfig(BaseModel):
    """
    Root configuration: twelve independently optional sections.

    A section is ``None`` when its key is absent from the source document.
    """

    model_config = ConfigDict(extra="ignore")

    data_paths: Optional[DataPathsConfig] = None
    data_scope: Optional[DataScopeConfig] = None
    symbol_registry: Optional[SymbolRegistryConfig] = None
    symbol_matching: Optional[SymbolMatchingConfig] = None
    preprocessing: Optional[PreprocessingConfig] = None
    acceleration: Optional[AccelerationConfig] = None
    logger: Optional[LoggerConfig] = None
    export: Optional[ExportConfig] = None
    stream_logging: Optional[StreamLoggingConfig] = None
    execution: Optional[ExecutionConfig] = None
    post_compute: Optional[PostComputeConfig] = None
    market_constants: Optional[MarketConstantsConfig] = None

    def present_sections(self) -> List[str]:
        return [key for key in SECTION_MODELS if getattr(self, key) is not None]

    def to_dict(self):
        return self.model_dump()


SECTION_MODELS: Dict[str, Any] = {
    "data_paths": DataPathsConfig,
    "data_scope": DataScopeConfig,
    "symbol_registry": SymbolRegistryConfig,
    "symbol_matching": SymbolMatchingConfig,
    "preprocessing": PreprocessingConfig,
    "acceleration": AccelerationConfig,
    "logger": LoggerConfig,
    "export": ExportConfig,
    "stream_logging": StreamLoggingConfig,
    "execution": ExecutionConfig,
    "post_compute": PostComputeConfig,
    "market_constants": MarketConstantsConfig,
}
