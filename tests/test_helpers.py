"""Tests for price and logging helpers"""
import io
import logging
from decimal import Decimal

import pytest

from marketplace.logging import HANDLER_NAME, PACKAGE_LOGGER, configure_logging, get_logger, safe_for_log
from marketplace.money import as_price, line_total, to_cents, to_number


class TestMoney:
    """Tests for price conversions."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (19.9, Decimal("19.9")),
            (10, Decimal("10")),
            ("5.50", Decimal("5.50")),
            (Decimal("0.1"), Decimal("0.1")),
        ],
    )
    def test_as_price(self, value, expected):
        assert as_price(value) == expected

    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("2.345")) == Decimal("2.35")

    def test_line_total(self):
        assert line_total(0.1, 3) == Decimal("0.30")

    def test_to_number_keeps_whole_prices_integral(self):
        assert to_number(Decimal("10.00")) == 10
        assert isinstance(to_number(Decimal("10.00")), int)
        assert to_number(Decimal("5.5")) == 5.5


class TestSafeForLog:
    """Tests for log value rendering."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert safe_for_log(value) == "-"

    def test_control_characters_escaped(self):
        rendered = safe_for_log("a\nINFO fake record\r")

        assert "\n" not in rendered
        assert "\r" not in rendered
        assert rendered.startswith("a\\nINFO")

    def test_long_values_truncated(self):
        assert safe_for_log("x" * 50, max_length=10) == "x" * 10 + "..."


class TestConfigureLogging:
    """Tests for the package handler."""

    @pytest.fixture
    def package_logger(self):
        logger = logging.getLogger(PACKAGE_LOGGER)
        saved_handlers, saved_level = list(logger.handlers), logger.level
        logger.handlers[:] = [h for h in saved_handlers if h.get_name() != HANDLER_NAME]
        yield logger
        logger.handlers[:] = saved_handlers
        logger.setLevel(saved_level)

    def test_handler_added_once(self, package_logger):
        configure_logging(logging.INFO)
        configure_logging(logging.INFO)

        named = [h for h in package_logger.handlers if h.get_name() == HANDLER_NAME]
        assert len(named) == 1

    def test_module_loggers_write_to_stream(self, package_logger):
        stream = io.StringIO()
        configure_logging(logging.DEBUG, stream=stream)

        get_logger("marketplace.cart.service").info("cart loaded")

        assert "cart loaded" in stream.getvalue()
        assert "[marketplace.cart.service]" in stream.getvalue()
