"""Tests for level window and callback filters"""

import itertools

import pytest

from scribe_module.core.log_level import LevelTable
from scribe_module.core.log_record import Record
from scribe_module.errors import InvalidFilterWindowError, UnknownLevelError
from scribe_module.filters import CallbackFilter, FilterWindow, LevelFilter, accepts

TABLE = LevelTable.default()


class TestAccepts:
    """Test the window predicate."""

    def test_matches_rank_formula_for_every_window(self):
        names = TABLE.names()
        for low, high, level in itertools.product(names, names, names):
            if TABLE.rank_of(low) > TABLE.rank_of(high):
                continue
            window = FilterWindow(low, high)
            expected = TABLE.rank_of(low) <= TABLE.rank_of(level) <= TABLE.rank_of(high)
            assert accepts(Record(level, "m"), window, TABLE) is expected

    def test_unknown_level_never_passes(self):
        window = FilterWindow("error", "box")
        assert accepts(Record("trace", "m"), window, TABLE) is False

    def test_max_defaults_to_highest_rank(self):
        window = FilterWindow("debug")
        assert accepts(Record("box", "m"), window, TABLE) is True
        assert accepts(Record("info", "m"), window, TABLE) is False

    def test_inverted_window_fails(self):
        with pytest.raises(InvalidFilterWindowError):
            accepts(Record("info", "m"), FilterWindow("debug", "warn"), TABLE)


class TestLevelFilter:
    """Test LevelFilter stage."""

    def test_window_bounds_inclusive(self):
        stage = LevelFilter("warn", "debug", TABLE)
        assert stage.should_log(Record("warn", "m"))
        assert stage.should_log(Record("info", "m"))
        assert stage.should_log(Record("debug", "m"))
        assert not stage.should_log(Record("error", "m"))
        assert not stage.should_log(Record("verbose", "m"))

    def test_single_level_window(self):
        stage = LevelFilter("error", "error", TABLE)
        assert stage.should_log(Record("error", "m"))
        assert not stage.should_log(Record("warn", "m"))

    def test_process_passes_same_record(self):
        stage = LevelFilter("error", "box", TABLE)
        record = Record("info", "m")
        assert stage.process(record) is record

    def test_process_rejects_with_none(self):
        stage = LevelFilter("error", "error", TABLE)
        assert stage(Record("info", "m")) is None

    def test_unknown_record_level_rejected(self):
        stage = LevelFilter("error", "box", TABLE)
        assert stage.should_log(Record("fatal", "m")) is False

    def test_inverted_window_fails_at_construction(self):
        with pytest.raises(InvalidFilterWindowError):
            LevelFilter("box", "error", TABLE)

    def test_unknown_bound_fails_at_construction(self):
        with pytest.raises(UnknownLevelError):
            LevelFilter("trace", table=TABLE)

    def test_custom_table(self):
        table = LevelTable.from_mapping({"fatal": 0, "note": 1, "chatter": 2})
        stage = LevelFilter("fatal", "note", table)
        assert stage.should_log(Record("note", "m"))
        assert not stage.should_log(Record("chatter", "m"))
        assert not stage.should_log(Record("error", "m"))

    def test_repr(self):
        assert "warn" in repr(LevelFilter("warn", "debug", TABLE))


class TestCallbackFilter:
    """Test CallbackFilter stage."""

    def test_callback_decides(self):
        stage = CallbackFilter(lambda record: record.service == "api")
        assert stage.should_log(Record("info", "m", service="api"))
        assert not stage.should_log(Record("info", "m", service="db"))

    def test_raising_callback_rejects(self):
        def broken(record):
            raise RuntimeError("boom")

        stage = CallbackFilter(broken)
        assert stage.should_log(Record("info", "m")) is False

    def test_requires_callable(self):
        with pytest.raises(TypeError):
            CallbackFilter("not callable")

    def test_repr_uses_function_name(self):
        def only_api(record):
            return True

        assert "only_api" in repr(CallbackFilter(only_api))
