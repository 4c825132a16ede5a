# =============================================================================
# UNIT TESTS - LOGGING SETUP
# =============================================================================

import logging

from shared.logging_config import PACKAGE_LOGGERS, setup_logging


def _read_log(log_dir):
    files = list((log_dir / "registry").glob("registry_*.log"))
    assert len(files) == 1
    return files[0].read_text(encoding="utf-8")


class TestSetupLogging:

    def test_both_packages_reach_log_file(self, tmp_path):
        setup_logging(level="INFO", console_output=False, log_dir=tmp_path)
        logging.getLogger("dips.registry").info("registry message")
        logging.getLogger("shared.config").warning("config message")

        content = _read_log(tmp_path)
        assert "dips.registry | registry message" in content
        assert "shared.config | config message" in content

    def test_level_applies_to_both_packages(self, tmp_path):
        setup_logging(level="WARNING", console_output=False, log_dir=tmp_path)
        logging.getLogger("shared.config").info("hidden")
        logging.getLogger("dips.parser").info("hidden too")

        assert "hidden" not in _read_log(tmp_path)

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        setup_logging(console_output=True, file_output=False)
        setup_logging(console_output=True, file_output=False)
        for name in PACKAGE_LOGGERS:
            assert len(logging.getLogger(name).handlers) == 1

    def test_returns_package_logger(self):
        logger = setup_logging(console_output=False, file_output=False)
        assert logger.name == "dips"
