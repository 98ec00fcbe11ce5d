import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fastmcp import Client

from bidcheck.context import ValidatorContext
from bidcheck.server import _reset_context, app_lifespan, get_context, initialize, mcp, setup_logging


class TestSetupLogging:
    """Test setup_logging configuration."""

    def setup_method(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def teardown_method(self):
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def test_sets_root_logger_level(self, tmp_path):
        setup_logging("DEBUG", tmp_path)
        assert logging.getLogger().level == logging.DEBUG

    def test_creates_console_handler(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        assert len(stream_handlers) == 1

    def test_log_file_path(self, tmp_path):
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        file_handler = next(h for h in root.handlers if isinstance(h, RotatingFileHandler))
        assert Path(file_handler.baseFilename) == tmp_path / "logs" / "bidcheck.log"
        assert file_handler.maxBytes == 5 * 1024 * 1024
        assert file_handler.backupCount == 3

    def test_returns_log_file_path(self, tmp_path):
        assert setup_logging("INFO", tmp_path) == tmp_path / "logs" / "bidcheck.log"

    def test_console_writes_to_stderr(self, tmp_path):
        setup_logging("INFO", tmp_path)
        console = next(h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler)
        assert console.stream is sys.stderr

    def test_no_duplicate_handlers_on_second_call(self, tmp_path):
        setup_logging("INFO", tmp_path)
        setup_logging("INFO", tmp_path)
        root = logging.getLogger()
        stream_handlers = [h for h in root.handlers if type(h) is logging.StreamHandler]
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(stream_handlers) == 1
        assert len(file_handlers) == 1

    def test_invalid_log_level_falls_back_to_info(self, tmp_path):
        setup_logging("INVALID_LEVEL", tmp_path)
        assert logging.getLogger().level == logging.INFO


class TestInitialize:
    """Test the initialize function."""

    def setup_method(self):
        from bidcheck.config import reset_settings

        reset_settings()
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def teardown_method(self):
        from bidcheck.config import reset_settings

        reset_settings()
        root = logging.getLogger()
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()

    def test_returns_mcp_instance(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        assert initialize() is mcp

    def test_creates_data_and_logs_dirs(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "new_data"
        monkeypatch.setenv("DATA_DIR", str(data_dir))
        initialize()
        assert (data_dir / "logs").exists()

    def test_configures_logging(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        initialize()
        root = logging.getLogger()
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)

    async def test_registers_tools(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        async with Client(initialize()) as client:
            names = {tool.name for tool in await client.list_tools()}
        assert {
            "validate_request",
            "validate_batch",
            "cache_stats",
            "clear_cache",
            "list_templates",
            "generate_from_template",
        } <= names


class TestAppLifespan:
    """Test the validator context lifecycle."""

    def setup_method(self):
        from bidcheck.config import reset_settings

        reset_settings()
        _reset_context()

    def teardown_method(self):
        from bidcheck.config import reset_settings

        reset_settings()
        _reset_context()

    async def test_lifespan_creates_and_destroys_context(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        import bidcheck.server as server_module

        async with app_lifespan(mcp) as result:
            assert isinstance(result["context"], ValidatorContext)
            assert get_context() is result["context"]

        assert server_module._context is None

    async def test_lifespan_context_validates(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))

        async with app_lifespan(mcp):
            result = await get_context().validator.validate_single({"id": "x", "at": 1})
            assert not result.is_valid


class TestGetContext:
    def setup_method(self):
        _reset_context()

    def test_raises_when_not_initialized(self):
        with pytest.raises(RuntimeError, match="Validator not initialized"):
            get_context()

    def test_reset_clears_reference(self):
        import bidcheck.server as server_module

        server_module._context = "sentinel"  # type: ignore[assignment]
        _reset_context()
        assert server_module._context is None


class TestMain:
    """Test the ``python -m bidcheck`` entry point."""

    def setup_method(self):
        from bidcheck.config import reset_settings

        reset_settings()

    def teardown_method(self):
        from bidcheck.config import reset_settings

        reset_settings()

    def test_stdio_by_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.delenv("MCP_TRANSPORT", raising=False)
        app = MagicMock()
        with patch("bidcheck.__main__.initialize", return_value=app):
            from bidcheck.__main__ import main

            main()
        app.run.assert_called_once_with(transport="stdio")

    def test_streamable_http_uses_host_and_port(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        monkeypatch.setenv("MCP_TRANSPORT", "streamable-http")
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("MCP_PORT", "9100")
        app = MagicMock()
        with patch("bidcheck.__main__.initialize", return_value=app):
            from bidcheck.__main__ import main

            main()
        app.run.assert_called_once_with(transport="streamable-http", host="127.0.0.1", port=9100)
