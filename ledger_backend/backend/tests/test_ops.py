# backend/tests/test_ops.py

from django.test import SimpleTestCase, TestCase

from backend.logging_config import APP_LOGGERS, get_logging_config


class LoggingConfigTests(SimpleTestCase):
    def test_defaults(self):
        config = get_logging_config()

        self.assertEqual(config["loggers"][""]["level"], "INFO")
        self.assertEqual(config["handlers"]["console"]["formatter"], "verbose")
        for name in APP_LOGGERS:
            self.assertIn(name, config["loggers"])

    def test_debug_and_overrides(self):
        self.assertEqual(get_logging_config(debug=True)["loggers"]["accounting"]["level"], "DEBUG")

        config = get_logging_config(level="warning", fmt="SIMPLE")
        self.assertEqual(config["loggers"]["inventory"]["level"], "WARNING")
        self.assertEqual(config["handlers"]["console"]["formatter"], "simple")

    def test_unknown_format_falls_back_to_verbose(self):
        self.assertEqual(
            get_logging_config(fmt="json")["handlers"]["console"]["formatter"],
            "verbose",
        )


class HealthCheckTests(TestCase):
    def test_health_reports_db_ok(self):
        response = self.client.get("/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok", "db": "ok"})
