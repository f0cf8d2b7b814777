from __future__ import annotations

from sqlite_audit.shared.logging import get_logger, quiet_logger


def test_logger_info_routes_to_stderr(capfd) -> None:
    logger = get_logger()

    logger.info("structured log to stderr")

    captured = capfd.readouterr()
    assert "structured log to stderr" in captured.err
    assert "structured log to stderr" not in captured.out


def test_debug_only_when_verbose(capfd) -> None:
    get_logger().debug("hidden detail")
    get_logger(verbose=True).debug("shown detail")

    captured = capfd.readouterr()
    assert "hidden detail" not in captured.err
    assert "shown detail" in captured.err


def test_quiet_logger_keeps_errors_only(capfd) -> None:
    logger = quiet_logger()

    logger.info("chatter")
    logger.warning("careful")
    logger.error("broken [shard_1]")

    captured = capfd.readouterr()
    assert "chatter" not in captured.err
    assert "careful" not in captured.err
    assert "broken [shard_1]" in captured.err


def test_bind_prefixes_messages(capfd) -> None:
    logger = get_logger().bind("security").bind("shard_2")

    logger.warning("sampling failed")

    captured = capfd.readouterr()
    assert "[security] [shard_2] sampling failed" in captured.err
