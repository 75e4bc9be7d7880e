import logging

from usergate.core.logging import get_logger, setup_logger


class TestLogger:
    """Unit tests for logger setup and retrieval in usergate.core.logging."""

    def test_setup_logger_creates_log_file_and_handlers(self, tmp_path):
        logger = setup_logger(
            name="test_logger",
            log_dir=tmp_path,
            logger_level=logging.INFO,
            stream_level=logging.WARNING,
            file_level=logging.INFO,
            file_mode="w",
            propagate=False,
            max_bytes=1024,
            backup_count=1,
        )

        assert logger.name == "test_logger"
        handler_types = {type(h) for h in logger.handlers}
        assert logging.StreamHandler in handler_types
        assert any("RotatingFileHandler" in str(type(h)) for h in logger.handlers)

        log_file = tmp_path / "modules" / "test_logger.log"
        assert log_file.exists()
        logger.info("Test log message")
        for handler in logger.handlers:
            handler.flush()
        assert "Test log message" in log_file.read_text()

    def test_root_logger_file_is_not_in_modules(self, tmp_path):
        logger = setup_logger(name="usergate", log_dir=tmp_path, add_stream_handler=False, propagate=True)

        assert (tmp_path / "usergate.log").exists()
        assert logger.propagate is True

    def test_setup_logger_is_idempotent(self, tmp_path):
        setup_logger(name="repeat_logger", log_dir=tmp_path)
        logger = setup_logger(name="repeat_logger", log_dir=tmp_path)

        assert len(logger.handlers) == 2

    def test_get_logger_prefixes_namespace(self, tmp_path):
        logger = get_logger("unit.test_get_logger", log_dir=tmp_path)

        assert logger.name == "usergate.unit.test_get_logger"
        assert logger.propagate is True
        # Propagating children leave console output to the root logger.
        assert all("RotatingFileHandler" in str(type(h)) for h in logger.handlers)
        assert (tmp_path / "modules" / "usergate.unit.test_get_logger.log").exists()

    def test_get_logger_does_not_double_prefix(self, tmp_path):
        logger = get_logger("usergate.already.prefixed", log_dir=tmp_path)

        assert logger.name == "usergate.already.prefixed"

    def test_get_logger_without_propagation_adds_stream_handler(self, tmp_path):
        logger = get_logger("unit.standalone", log_dir=tmp_path, propagate=False)

        assert logging.StreamHandler in {type(h) for h in logger.handlers}

    def test_messages_reach_caplog(self, tmp_path, caplog):
        logger = get_logger("unit.caplog", log_dir=tmp_path)
        logger.warning("visible to caplog")

        assert "visible to caplog" in caplog.text

    def test_structlog_logger(self, tmp_path):
        logger = setup_logger(name="structured", log_dir=tmp_path, use_structlog=True, add_stream_handler=False)

        assert hasattr(logger, "bind")
