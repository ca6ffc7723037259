"""Tests for utility functions."""

import os
import unittest
from decimal import Decimal
from unittest.mock import Mock, patch

import requests

from utils.chains import Network
from utils.config import AlerterConfig, Config
from utils.formatting import format_token_amount, to_base_units, to_human
from utils.http import graphql_query
from utils.telegram import TelegramError, send_telegram_message


class TestConfig(unittest.TestCase):
    """Tests for the Config class."""

    def test_get_env(self):
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            self.assertEqual(Config.get_env("TEST_VAR"), "test_value")
            self.assertEqual(Config.get_env("NONEXISTENT_VAR", "default"), "default")

    def test_get_env_int(self):
        with patch.dict(os.environ, {"TEST_INT": "42", "TEST_INVALID": "not_an_int"}):
            self.assertEqual(Config.get_env_int("TEST_INT", 0), 42)
            self.assertEqual(Config.get_env_int("NONEXISTENT_VAR", 10), 10)
            self.assertEqual(Config.get_env_int("TEST_INVALID", 10), 10)

    def test_get_env_float(self):
        with patch.dict(os.environ, {"TEST_FLOAT": "3.14", "TEST_INVALID": "not_a_float"}):
            self.assertAlmostEqual(Config.get_env_float("TEST_FLOAT", 0.0), 3.14)
            self.assertAlmostEqual(Config.get_env_float("NONEXISTENT_VAR", 2.71), 2.71)
            self.assertAlmostEqual(Config.get_env_float("TEST_INVALID", 2.71), 2.71)

    def test_db_url_prefers_explicit_url(self):
        with patch.dict(os.environ, {"ABYSS_DB_URL": "sqlite:///alerts.db", "DB_PATH": "/tmp/other.db"}):
            self.assertEqual(Config.get_db_url(), "sqlite:///alerts.db")
        with patch.dict(os.environ, {"DB_PATH": "/tmp/other.db"}, clear=True):
            self.assertEqual(Config.get_db_url(), "sqlite:////tmp/other.db")

    def test_poll_interval_rejects_non_positive(self):
        with patch.dict(os.environ, {"POLL_INTERVAL": "-5"}):
            self.assertEqual(Config.get_poll_interval(), Config.DEFAULT_POLL_INTERVAL)
        with patch.dict(os.environ, {"POLL_INTERVAL": "10"}):
            self.assertEqual(Config.get_poll_interval(), 10.0)

    def test_graphql_url(self):
        with patch.dict(os.environ, {"SUI_NETWORK": "testnet"}, clear=True):
            self.assertEqual(Config.get_graphql_url(), Network.TESTNET.graphql_url)
        with patch.dict(os.environ, {"SUI_NETWORK": "devnet-unknown"}, clear=True):
            self.assertEqual(Config.get_graphql_url(), Network.MAINNET.graphql_url)
        with patch.dict(os.environ, {"SUI_GRAPHQL_URL": "http://localhost:9125/graphql"}, clear=True):
            self.assertEqual(Config.get_graphql_url(), "http://localhost:9125/graphql")

    def test_get_alerter_config(self):
        with patch.dict(
            os.environ,
            {
                "ABYSS_DB_URL": "sqlite://",
                "POLL_INTERVAL": "15",
                "POLL_MAX_WORKERS": "0",
                "TELEGRAM_BOT_TOKEN_ABYSS": "token",
            },
            clear=True,
        ):
            config = Config.get_alerter_config()
            self.assertIsInstance(config, AlerterConfig)
            self.assertEqual(config.db_url, "sqlite://")
            self.assertEqual(config.poll_interval, 15.0)
            self.assertEqual(config.max_workers, 1)
            self.assertEqual(config.telegram_bot_token, "token")
            self.assertEqual(config.graphql_url, Network.MAINNET.graphql_url)


class TestNetwork(unittest.TestCase):
    def test_from_name(self):
        self.assertIs(Network.from_name("MAINNET"), Network.MAINNET)
        with self.assertRaises(ValueError):
            Network.from_name("localnet")


class TestFormatting(unittest.TestCase):
    """Tests for base unit conversions."""

    def test_to_base_units_floors_extra_digits(self):
        self.assertEqual(to_base_units("3000", 6), 3_000_000_000)
        self.assertEqual(to_base_units("1.2345679", 6), 1_234_567)
        self.assertEqual(to_base_units(0.1, 9), 100_000_000)
        self.assertEqual(to_base_units(150000, 6), 150_000_000000)

    def test_to_base_units_rejects_non_positive(self):
        for value in (0, -1, "abc", "NaN", None):
            with self.assertRaises(ValueError):
                to_base_units(value, 6)

    def test_round_trip(self):
        for value, decimals in (("3000", 6), ("0.000001", 6), ("12345.678901", 6), ("100000.123456789", 9), ("0.5", 9)):
            self.assertEqual(to_human(to_base_units(value, decimals), decimals), Decimal(value))

    def test_round_trip_truncates_beyond_precision(self):
        self.assertEqual(to_human(to_base_units("1.0000009", 6), 6), Decimal("1"))

    def test_to_human_accepts_strings(self):
        self.assertEqual(to_human("200000000000", 6), Decimal("200000"))
        with self.assertRaises(ValueError):
            to_human("-1", 6)

    def test_format_token_amount(self):
        self.assertEqual(format_token_amount("200000000000", 6), "200,000")
        self.assertEqual(format_token_amount(1_500_000, 6), "1.5")
        self.assertEqual(format_token_amount(1, 9), "0.000000001")
        self.assertEqual(format_token_amount(0, 6), "0")
        self.assertEqual(format_token_amount(2**70, 9), "1,180,591,620,717.411303424")


class TestGraphql(unittest.TestCase):
    @patch("utils.http.requests.request")
    def test_returns_data(self, mock_request):
        mock_request.return_value = Mock(status_code=200, json=Mock(return_value={"data": {"x": 1}}))
        self.assertEqual(graphql_query("http://sui", "query { x }", timeout=5), {"x": 1})
        _, kwargs = mock_request.call_args
        self.assertEqual(kwargs["json"], {"query": "query { x }", "variables": {}})
        self.assertEqual(kwargs["timeout"], 5)

    @patch("utils.http.requests.request")
    def test_graphql_errors_yield_none(self, mock_request):
        mock_request.return_value = Mock(status_code=200, json=Mock(return_value={"errors": [{"message": "boom"}]}))
        self.assertIsNone(graphql_query("http://sui", "query { x }"))

    @patch("utils.http.requests.request")
    def test_transport_failure_yields_none(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("down")
        self.assertIsNone(graphql_query("http://sui", "query { x }"))

    @patch("utils.http.requests.request")
    def test_http_error_yields_none(self, mock_request):
        mock_request.return_value = Mock(status_code=503, text="unavailable")
        self.assertIsNone(graphql_query("http://sui", "query { x }"))


class TestTelegram(unittest.TestCase):
    """Tests for Telegram utility functions."""

    @patch("utils.telegram.requests.post")
    def test_send_telegram_message_success(self, mock_post):
        mock_post.return_value = Mock(status_code=200)

        send_telegram_message(42, "Test message", bot_token="test_token")

        mock_post.assert_called_once()
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], "https://api.telegram.org/bottest_token/sendMessage")
        self.assertEqual(kwargs["json"]["chat_id"], 42)
        self.assertEqual(kwargs["json"]["text"], "Test message")
        self.assertEqual(kwargs["json"]["parse_mode"], "HTML")

    @patch("utils.telegram.requests.post")
    def test_long_message_is_truncated(self, mock_post):
        mock_post.return_value = Mock(status_code=200)
        send_telegram_message(42, "x" * 5000, bot_token="test_token")
        text = mock_post.call_args[1]["json"]["text"]
        self.assertEqual(len(text), 4096)
        self.assertTrue(text.endswith("..."))

    @patch("utils.telegram.requests.post")
    def test_send_telegram_message_missing_credentials(self, mock_post):
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(TelegramError):
                send_telegram_message(42, "Test message")
        mock_post.assert_not_called()

    @patch("utils.telegram.requests.post")
    def test_send_telegram_message_failure(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("Connection error")
        with self.assertRaises(TelegramError):
            send_telegram_message(42, "Test message", bot_token="test_token")

    @patch("utils.telegram.requests.post")
    def test_send_telegram_message_rejected(self, mock_post):
        mock_post.return_value = Mock(status_code=403, text="Forbidden: bot was blocked by the user")
        with self.assertRaises(TelegramError):
            send_telegram_message(42, "Test message", bot_token="test_token")


if __name__ == "__main__":
    unittest.main()
