import json
import logging
from pathlib import Path

from module_importer.exceptions import ResetError
from module_importer.logging_config import (
    ImportContext,
    JsonFormatter,
    TaggedFormatter,
    get_logger,
    log_exception,
    setup_logging,
)


class ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _record(logger: logging.Logger, message: str) -> logging.LogRecord:
    return logging.getLogRecordFactory()(logger.name, logging.INFO, __file__, 1, message, None, None)


def test_get_logger_is_child_of_package_logger() -> None:
    assert get_logger("importer").name == "module_importer.importer"


def test_import_context_adds_module_and_stage_to_json() -> None:
    logger = get_logger("test")

    with ImportContext("m1") as context:
        before_stage = _record(logger, "starting")
        context.stage = "import_quizzes"
        inside = _record(logger, "inside")
    outside = _record(logger, "outside")

    data = json.loads(JsonFormatter().format(inside))
    assert data["module_id"] == "m1"
    assert data["stage"] == "import_quizzes"
    assert "stage" not in json.loads(JsonFormatter().format(before_stage))
    assert "module_id" not in json.loads(JsonFormatter().format(outside))


def test_text_format_prefixes_import_context() -> None:
    logger = get_logger("test")
    formatter = TaggedFormatter("%(tag)s%(message)s")

    with ImportContext("m1") as context:
        module_only = _record(logger, "hello")
        context.stage = "reset"
        with_stage = _record(logger, "hello")
    outside = _record(logger, "hello")

    assert formatter.format(module_only) == "[m1] hello"
    assert formatter.format(with_stage) == "[m1/reset] hello"
    assert formatter.format(outside) == "hello"


def test_setup_logging_writes_json_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "import.log"
    root = setup_logging(level="DEBUG", log_file=str(log_file), json_format=True, console=False)
    try:
        get_logger("test").debug("written to file")
        for handler in root.handlers:
            handler.flush()

        line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
        data = json.loads(line)
        assert data["message"] == "written to file"
        assert data["level"] == "DEBUG"
        assert data["logger"] == "module_importer.test"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()


def test_log_exception_attaches_details() -> None:
    root = setup_logging(level="INFO", console=False)
    handler = ListHandler()
    root.addHandler(handler)
    try:
        try:
            raise ResetError("modules/m1/videos", deleted=3, reason="boom")
        except ResetError as error:
            log_exception(get_logger("test"), error, "Reset failed", level=logging.WARNING)

        record = handler.records[-1]
        assert record.levelno == logging.WARNING
        assert record.details["deleted"] == 3
        assert record.exc_info[0] is ResetError
        assert "Reset failed" in record.getMessage()
    finally:
        root.handlers.clear()


def test_importer_records_carry_stage(store, tmp_path: Path, write_fixture) -> None:
    from module_importer.fixtures import FixtureLoader
    from module_importer.importer import ModuleImporter

    write_fixture("modules.json", [{"id": "m1"}])
    root = setup_logging(level="DEBUG", console=False)
    handler = ListHandler()
    root.addHandler(handler)
    try:
        ModuleImporter(store, FixtureLoader(tmp_path)).run()
    finally:
        root.handlers.clear()

    tagged = [record for record in handler.records if getattr(record, "module_id", None) == "m1"]
    assert tagged
    assert {record.stage for record in tagged} >= {None, "finalize_counts"}
