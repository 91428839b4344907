"""Tests for the cache administration CLI."""

from unittest.mock import MagicMock, patch

import pytest

from common.cache import cli
from common.cache.config import CacheConfig
from common.cache.manager import CacheManager
from common.cache.memory_store import ArrayStore


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "cache.yaml"
    path.write_text("cache:\n  driver: mysql\n  prefix: 'q:'\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def array_config_file(tmp_path):
    path = tmp_path / "array.yaml"
    path.write_text("cache:\n  driver: array\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def manager():
    # A shared-driver config whose store is swapped for an in-memory one
    manager = CacheManager(CacheConfig(driver="mysql", prefix="q:"))
    manager._store = ArrayStore(prefix="q:")
    with patch.object(cli, "CacheManager", return_value=manager):
        yield manager


class TestCli:
    def test_no_command_prints_help(self, capsys) -> None:
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_flush_all(self, config_file, manager, capsys) -> None:
        manager.store().forever("k", 1)

        assert cli.main(["--log-level", "ERROR", "flush", config_file]) == 0
        assert not manager.store().has("k")
        assert "Cache flushed" in capsys.readouterr().out

    def test_flush_tags(self, config_file, manager, capsys) -> None:
        store = manager.store()
        store.tags("users").forever("a", 1)
        store.forever("b", 2)

        assert cli.main(["--log-level", "ERROR", "flush", config_file, "--tags", "users"]) == 0
        assert store.tags("users").get("a") is None
        assert store.get("b") == 2
        assert "Flushed tags: users" in capsys.readouterr().out

    def test_forget(self, config_file, manager, capsys) -> None:
        manager.store().forever("k", 1)

        assert cli.main(["--log-level", "ERROR", "forget", config_file, "k"]) == 0
        assert cli.main(["--log-level", "ERROR", "forget", config_file, "k"]) == 0
        out = capsys.readouterr().out
        assert "Forgot k" in out
        assert "No entry for k" in out

    def test_info(self, config_file, capsys) -> None:
        assert cli.main(["--log-level", "ERROR", "info", config_file]) == 0
        out = capsys.readouterr().out
        assert "Driver: mysql" in out
        assert "Prefix: q:" in out

    def test_bad_config_returns_error(self, tmp_path) -> None:
        assert cli.main(["flush", str(tmp_path / "missing.yaml")]) == 1


class TestCliArrayDriver:
    """The array driver lives in-process, so the CLI refuses to pretend it changed anything."""

    def test_flush_is_refused(self, array_config_file, capsys) -> None:
        assert cli.main(["--log-level", "ERROR", "flush", array_config_file]) == 1
        assert "Cache flushed" not in capsys.readouterr().out

    def test_forget_is_refused(self, array_config_file, capsys) -> None:
        assert cli.main(["--log-level", "ERROR", "forget", array_config_file, "k"]) == 1
        assert capsys.readouterr().out == ""

    def test_info_still_works(self, array_config_file, capsys) -> None:
        assert cli.main(["--log-level", "ERROR", "info", array_config_file]) == 0
        assert "Driver: array" in capsys.readouterr().out


class TestCliStoreErrors:
    """Backend failures surface as an exit code, not a traceback."""

    @pytest.fixture
    def broken_manager(self):
        manager = CacheManager(CacheConfig(driver="mysql"))
        store = MagicMock()
        store.flush.side_effect = Exception("Lost connection to MySQL server")
        store.forget.side_effect = Exception("Lost connection to MySQL server")
        store.tags.return_value.flush.side_effect = Exception("Lost connection to MySQL server")
        manager._store = store
        with patch.object(cli, "CacheManager", return_value=manager):
            yield manager

    def test_flush_failure(self, config_file, broken_manager, capsys) -> None:
        assert cli.main(["--log-level", "CRITICAL", "flush", config_file]) == 1
        assert "Cache flushed" not in capsys.readouterr().out

    def test_flush_tags_failure(self, config_file, broken_manager) -> None:
        assert cli.main(["--log-level", "CRITICAL", "flush", config_file, "--tags", "users"]) == 1

    def test_forget_failure(self, config_file, broken_manager, capsys) -> None:
        assert cli.main(["--log-level", "CRITICAL", "forget", config_file, "k"]) == 1
        assert capsys.readouterr().out == ""

    def test_store_creation_failure(self, config_file) -> None:
        manager = CacheManager(CacheConfig(driver="mysql"))
        with patch.object(cli, "CacheManager", return_value=manager), \
                patch.object(manager, "store", side_effect=RuntimeError("PyMySQL package is required")):
            assert cli.main(["--log-level", "CRITICAL", "flush", config_file]) == 1
