import unittest

from pipeline_config.configuration import (
    SECTION_MODELS,
    DataPathsConfig,
    DataScopeConfig,
    ExecutionConfig,
    ExportConfig,
    LoggerConfig,
    MarketConstantsConfig,
    MarketTimingConfig,
    PipelineConfig,
    PostComputeConfig,
    StreamLoggingConfig,
    SymbolMatchingConfig,
    SymbolRegistryConfig,
)
from pipeline_config.errors import SchemaError


class TestSectionDefaults(unittest.TestCase):
    def test_every_section_builds_from_empty_object(self):
        for key, model in SECTION_MODELS.items():
            with self.subTest(section=key):
                self.assertIsInstance(model.from_json({}), model)

    def test_logger_defaults(self):
        cfg = LoggerConfig.from_json({})
        self.assertEqual(cfg.stdout_level, "info")
        self.assertEqual(cfg.file_log_level, "info")
        self.assertEqual(cfg.log_template, "")
        self.assertEqual(cfg.timestamp_format, "")

    def test_export_defaults(self):
        cfg = ExportConfig.from_json({"codec": "zstd"})
        self.assertEqual(cfg.file_format, "parquet")
        self.assertEqual(cfg.codec, "zstd")

    def test_data_scope_defaults(self):
        cfg = DataScopeConfig.from_json({"date_from": "2023-01-01"})
        self.assertEqual(cfg.underlyings, [])
        self.assertEqual(cfg.instrument_classes, [])
        self.assertEqual(cfg.date_to, "")
        self.assertEqual(cfg.expiry_limit, 0)

    def test_symbol_matching_and_stream_logging_defaults(self):
        matching = SymbolMatchingConfig.from_json({"options_mode": "prefix"})
        self.assertEqual(matching.options_mode, "prefix")
        self.assertFalse(matching.is_case_sensitive)
        self.assertFalse(matching.trim_whitespace)
        stream = StreamLoggingConfig.from_json({})
        self.assertFalse(stream.is_enabled)
        self.assertEqual(stream.output_formats, [])

    def test_post_compute_defaults(self):
        cfg = PostComputeConfig.from_json({"compute_synthetic_futures": True})
        self.assertTrue(cfg.compute_synthetic_futures)
        self.assertFalse(cfg.recompute_theoretical_greeks)

    def test_execution_defaults(self):
        cfg = ExecutionConfig.from_json({})
        self.assertEqual(cfg.io_chunk_size, 0)
        self.assertEqual(cfg.global_worker_cap, 10)
        self.assertEqual(cfg.days_per_batch, 5)
        self.assertEqual(cfg.fill_batch_size, 50)
        self.assertEqual(cfg.greeks_block_size, 100_000)
        self.assertEqual(cfg.transform_block_size, 1_000)
        self.assertEqual(cfg.tte_block_size, 500_000)
        self.assertEqual(cfg.syn_fut_block_size, 500_000)
        self.assertEqual(cfg.batch_scaling_factor, 4)
        self.assertTrue(cfg.enable_parallelism)
        self.assertFalse(cfg.parallelize_assets)
        self.assertFalse(cfg.use_memory_controller)
        self.assertTrue(cfg.disable_memory_controller)
        self.assertTrue(cfg.cache_monthly_expiries)
        self.assertFalse(cfg.omit_spot_iv)

    def test_execution_fields_are_independently_overridable(self):
        cfg = ExecutionConfig.from_json({"tte_worker_cap": 3, "low_memory_mode": True})
        self.assertEqual(cfg.tte_worker_cap, 3)
        self.assertTrue(cfg.low_memory_mode)
        self.assertEqual(cfg.syn_fut_worker_cap, 10)


class TestDataPaths(unittest.TestCase):
    def test_log_root_defaults_to_export_root(self):
        cfg = DataPathsConfig.from_json({"export_root": "/out"})
        self.assertEqual(cfg.log_root, "/out")

    def test_log_root_defaults_to_empty_export_root(self):
        cfg = DataPathsConfig.from_json({"spot_root": "/spot"})
        self.assertEqual(cfg.export_root, "")
        self.assertEqual(cfg.log_root, "")

    def test_explicit_log_root_is_kept(self):
        cfg = DataPathsConfig.from_json({"export_root": "/out", "log_root": "/logs"})
        self.assertEqual(cfg.log_root, "/logs")


class TestLegacyKeys(unittest.TestCase):
    def test_sessions_per_year_prefers_new_key(self):
        cfg = MarketTimingConfig.from_json(
            {"sessions_per_year": 250, "trading_days_per_year": 240}
        )
        self.assertEqual(cfg.sessions_per_year, 250)

    def test_sessions_per_year_reads_legacy_key(self):
        cfg = MarketTimingConfig.from_json({"trading_days_per_year": 240})
        self.assertEqual(cfg.sessions_per_year, 240)

    def test_sessions_per_year_default(self):
        cfg = MarketTimingConfig.from_json({})
        self.assertEqual(cfg.sessions_per_year, 252)

    def test_minutes_per_session_truncates_fractional_value(self):
        cfg = MarketTimingConfig.from_json({"minutes_per_session": 375.9})
        self.assertEqual(cfg.minutes_per_session, 375)

    def test_minutes_per_session_reads_legacy_key(self):
        cfg = MarketTimingConfig.from_json({"minutes_per_day": 375})
        self.assertEqual(cfg.minutes_per_session, 375)

    def test_minutes_per_session_prefers_new_key(self):
        cfg = MarketTimingConfig.from_json(
            {"minutes_per_session": 390.0, "minutes_per_day": 375}
        )
        self.assertEqual(cfg.minutes_per_session, 390)

    def test_minutes_per_session_default(self):
        self.assertEqual(MarketTimingConfig.from_json({}).minutes_per_session, 0)

    def test_cache_monthly_expiries_alias(self):
        legacy = ExecutionConfig.from_json({"cache_monthly_expiry_set": False})
        self.assertFalse(legacy.cache_monthly_expiries)
        both = ExecutionConfig.from_json(
            {"cache_monthly_expiry_set": False, "cache_monthly_expiries": True}
        )
        self.assertTrue(both.cache_monthly_expiries)


class TestSymbolRegistry(unittest.TestCase):
    def test_non_object_entries_are_dropped(self):
        cfg = SymbolRegistryConfig.from_json({"A": {"x": "1"}, "B": "not-an-object"})
        self.assertEqual(cfg.mappings, {"A": {"x": "1"}})

    def test_non_object_registry_is_empty(self):
        self.assertEqual(SymbolRegistryConfig.from_json(["A"]).mappings, {})

    def test_non_string_symbol_is_schema_error(self):
        with self.assertRaises(SchemaError) as ctx:
            SymbolRegistryConfig.from_json({"A": {"x": 1}})
        self.assertEqual(ctx.exception.section, "symbol_registry")

    def test_dump_round_trip(self):
        cfg = SymbolRegistryConfig.from_json({"NIFTY": {"options": "NIFTY"}, "X": 3})
        self.assertEqual(SymbolRegistryConfig.from_json(cfg.model_dump()), cfg)


class TestMarketConstants(unittest.TestCase):
    def test_full_section(self):
        cfg = MarketConstantsConfig.from_json(
            {
                "valid_underlyings": ["NIFTY", "BANKNIFTY"],
                "expiry_cutoff_time": [15, 30, 0],
                "calendar_month_map": {"JAN": "01"},
                "trading_schedule": {
                    "session_open": "09:15:00",
                    "session_close": "15:30:00",
                    "minutes_per_session": 375,
                },
                "exchange_holidays": ["2024-01-26"],
            }
        )
        self.assertEqual(cfg.expiry_cutoff_time, [15, 30, 0])
        self.assertEqual(cfg.calendar_month_map, {"JAN": "01"})
        self.assertEqual(cfg.numeric_month_map, {})
        self.assertEqual(cfg.trading_schedule.session_open, "09:15:00")
        self.assertEqual(cfg.trading_schedule.sessions_per_year, 252)
        self.assertEqual(cfg.exchange_holidays, ["2024-01-26"])

    def test_non_object_maps_and_schedule_are_ignored(self):
        cfg = MarketConstantsConfig.from_json(
            {"alpha_month_map": ["F", "G"], "trading_schedule": "09:15-15:30"}
        )
        self.assertEqual(cfg.alpha_month_map, {})
        self.assertEqual(cfg.trading_schedule, MarketTimingConfig())

    def test_nested_error_reports_path(self):
        with self.assertRaises(SchemaError) as ctx:
            MarketConstantsConfig.from_json(
                {"trading_schedule": {"sessions_per_year": "252"}}
            )
        self.assertIn("trading_schedule.sessions_per_year", str(ctx.exception))


class TestTypeCoercion(unittest.TestCase):
    def test_integer_fields_truncate_floats(self):
        self.assertEqual(DataScopeConfig.from_json({"expiry_limit": 3.7}).expiry_limit, 3)

    def test_integer_fields_reject_strings_and_bools(self):
        for bad in ("3", True, None, float("nan")):
            with self.subTest(value=bad):
                with self.assertRaises(SchemaError):
                    DataScopeConfig.from_json({"expiry_limit": bad})

    def test_string_fields_reject_numbers(self):
        with self.assertRaises(SchemaError) as ctx:
            DataPathsConfig.from_json({"spot_root": 5})
        self.assertEqual(ctx.exception.section, "data_paths")
        self.assertIn("spot_root", ctx.exception.message)

    def test_bool_fields_reject_integers(self):
        with self.assertRaises(SchemaError):
            ExecutionConfig.from_json({"enable_parallelism": 1})

    def test_section_must_be_object(self):
        with self.assertRaises(SchemaError):
            LoggerConfig.from_json("info")

    def test_unknown_fields_are_ignored(self):
        cfg = ExportConfig.from_json({"file_format": "csv", "future_option": 1})
        self.assertEqual(cfg.file_format, "csv")
        self.assertFalse(hasattr(cfg, "future_option"))


class TestPipelineConfig(unittest.TestCase):
    def test_sections_default_to_none(self):
        cfg = PipelineConfig()
        self.assertEqual(cfg.present_sections(), [])
        self.assertIsNone(cfg.execution)

    def test_to_dict_round_trip(self):
        cfg = PipelineConfig(
            data_paths=DataPathsConfig.from_json({"export_root": "/out"}),
            symbol_registry=SymbolRegistryConfig.from_json({"A": {"x": "1"}}),
            market_constants=MarketConstantsConfig.from_json({}),
        )
        self.assertEqual(PipelineConfig.model_validate(cfg.to_dict()), cfg)

    def test_json_schema_lists_sections(self):
        schema = PipelineConfig.model_json_schema()
        self.assertEqual(set(schema["properties"]), set(SECTION_MODELS))


if __name__ == "__main__":
    unittest.main()
