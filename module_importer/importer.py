"""Import orchestration: modules, their fiches, videos and quizzes.

Each module goes through a fixed sequence of stages, one at a time:

    START -> RESET (with reset only) -> UPSERT_MODULE -> IMPORT_FICHES
          -> IMPORT_VIDEOS -> IMPORT_QUIZZES -> FINALIZE_COUNTS -> DONE

Every write completes before the next one starts. A failed reset is logged
and the module is imported anyway; any other error stops the run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .config import MAX_BATCH_SIZE, CollectionsConfig
from .exceptions import ModuleImporterError, ResetError
from .fixtures import Dataset, FixtureLoader
from .logging_config import ImportContext, get_logger
from .normalizer import normalize_module, normalize_quiz, record_id
from .reset import reset_collection

logger = get_logger('importer')


class ImportStage(Enum):
    """Stage of a single module import."""
    START = "start"
    RESET = "reset"
    UPSERT_MODULE = "upsert_module"
    IMPORT_FICHES = "import_fiches"
    IMPORT_VIDEOS = "import_videos"
    IMPORT_QUIZZES = "import_quizzes"
    FINALIZE_COUNTS = "finalize_counts"
    DONE = "done"


TRANSITIONS = {
    ImportStage.START: ImportStage.RESET,
    ImportStage.RESET: ImportStage.UPSERT_MODULE,
    ImportStage.UPSERT_MODULE: ImportStage.IMPORT_FICHES,
    ImportStage.IMPORT_FICHES: ImportStage.IMPORT_VIDEOS,
    ImportStage.IMPORT_VIDEOS: ImportStage.IMPORT_QUIZZES,
    ImportStage.IMPORT_QUIZZES: ImportStage.FINALIZE_COUNTS,
    ImportStage.FINALIZE_COUNTS: ImportStage.DONE,
}


@dataclass
class ModuleResult:
    """Outcome of importing one module.

    fiches/videos are None when the module has no fixture file for them.
    reset_ok is None when no reset was requested.
    """
    module_id: str
    stage: ImportStage = ImportStage.START
    stages: list[ImportStage] = field(default_factory=list)
    fiches: Optional[int] = None
    videos: Optional[int] = None
    quizzes: int = 0
    deleted: int = 0
    reset_ok: Optional[bool] = None
    reset_error: Optional[str] = None


@dataclass
class ImportSummary:
    """Outcome of a complete run."""
    reset: bool
    modules: list[ModuleResult] = field(default_factory=list)

    @property
    def total_fiches(self) -> int:
        return sum(m.fiches or 0 for m in self.modules)

    @property
    def total_videos(self) -> int:
        return sum(m.videos or 0 for m in self.modules)

    @property
    def total_quizzes(self) -> int:
        return sum(m.quizzes for m in self.modules)

    @property
    def reset_failures(self) -> list[ModuleResult]:
        return [m for m in self.modules if m.reset_ok is False]


class ModuleImporter:
    """Imports fixture data into the document store, one module at a time."""

    def __init__(
        self,
        store,
        fixtures: FixtureLoader,
        reset: bool = False,
        collections: Optional[CollectionsConfig] = None,
        batch_size: int = MAX_BATCH_SIZE,
        on_progress: Optional[Callable[[str, str], None]] = None,
    ):
        """
        Args:
            store: ContentStore, or any object with the same four methods
            fixtures: Loader for the modules list and per-module datasets
            reset: Empty each module's child collections before importing
            collections: Collection names (defaults: modules, fichesSynthese, videos, quizzes)
            batch_size: Deletes per batched write during reset
            on_progress: Callback for progress lines (module_id, message)
        """
        self.store = store
        self.fixtures = fixtures
        self.reset = reset
        self.collections = collections or CollectionsConfig()
        self.batch_size = batch_size
        self.on_progress = on_progress

        self._handlers = {
            ImportStage.START: lambda raw, result: None,
            ImportStage.RESET: self._reset_children,
            ImportStage.UPSERT_MODULE: self._upsert_module,
            ImportStage.IMPORT_FICHES: self._import_fiches,
            ImportStage.IMPORT_VIDEOS: self._import_videos,
            ImportStage.IMPORT_QUIZZES: self._import_quizzes,
            ImportStage.FINALIZE_COUNTS: self._finalize_counts,
        }

    def _progress(self, module_id: str, message: str) -> None:
        if self.on_progress:
            self.on_progress(module_id, message)

    def _child_path(self, module_id: str, child: str) -> str:
        return f"{self.collections.modules}/{module_id}/{child}"

    def next_stage(self, stage: ImportStage) -> ImportStage:
        """Return the stage after stage, skipping RESET unless reset is enabled."""
        following = TRANSITIONS[stage]
        if following is ImportStage.RESET and not self.reset:
            following = TRANSITIONS[following]
        return following

    def run(self, modules: Optional[list] = None) -> ImportSummary:
        """Import every module in list order.

        Args:
            modules: Raw module records; loaded from the modules fixture if None

        Raises:
            ModuleImporterError: on anything but a reset failure. Modules
                finished before the error keep their writes.
        """
        if modules is None:
            modules = self.fixtures.load_modules()

        logger.info(f"Importing {len(modules)} module(s) (reset={self.reset})")
        summary = ImportSummary(reset=self.reset)
        for raw in modules:
            summary.modules.append(self.import_module(raw))

        logger.info(
            f"Import finished: {len(summary.modules)} modules, {summary.total_fiches} fiches, "
            f"{summary.total_videos} videos, {summary.total_quizzes} quizzes"
        )
        return summary

    def import_module(self, raw: dict) -> ModuleResult:
        """Run all stages for one raw module record."""
        module_id = record_id(raw, self.collections.modules)
        result = ModuleResult(module_id=module_id)

        with ImportContext(module_id) as context:
            logger.info(f"Importing module {module_id}")
            stage = ImportStage.START
            try:
                while stage is not ImportStage.DONE:
                    result.stage = stage
                    context.stage = stage.value
                    self._handlers[stage](raw, result)
                    result.stages.append(stage)
                    stage = self.next_stage(stage)
            except ModuleImporterError:
                logger.error(f"Module {module_id} failed during {stage.value}")
                raise
            context.stage = None
            result.stage = ImportStage.DONE
            logger.info(f"Module {module_id} done ({result.quizzes} quizzes)")

        return result

    # ==========================================================================
    # Stages
    # ==========================================================================

    def _reset_children(self, raw: dict, result: ModuleResult) -> None:
        module_id = result.module_id
        for child in (self.collections.fiches, self.collections.videos, self.collections.quizzes):
            try:
                result.deleted += reset_collection(
                    self.store, self._child_path(module_id, child), self.batch_size
                )
            except ResetError as e:
                result.deleted += e.deleted
                result.reset_ok = False
                result.reset_error = str(e)
                logger.warning(f"Partial reset for module {module_id}: {e}")
                self._progress(module_id, f"partial reset: {e.message}")
                return

        result.reset_ok = True
        logger.debug(f"Reset {module_id}: {result.deleted} documents deleted")
        self._progress(module_id, "child collections reset")

    def _upsert_module(self, raw: dict, result: ModuleResult) -> None:
        document = normalize_module(raw).to_document()
        document['updatedAt'] = self.store.server_timestamp()
        self.store.merge(self.collections.modules, result.module_id, document)

    def _import_records(self, dataset: Dataset, child: str, result: ModuleResult) -> Optional[int]:
        """Merge-write a dataset's records as given, each at its own id."""
        module_id = result.module_id
        records = self.fixtures.load_dataset(dataset, module_id)
        if records is None:
            self._progress(module_id, f"no {dataset.value} file (ok)")
            return None

        path = self._child_path(module_id, child)
        for record in records:
            self.store.merge(path, record_id(record, dataset.value), record)

        logger.debug(f"Imported {len(records)} {dataset.value} into {path}")
        self._progress(module_id, f"{dataset.value} imported: {len(records)}")
        return len(records)

    def _import_fiches(self, raw: dict, result: ModuleResult) -> None:
        result.fiches = self._import_records(Dataset.FICHES, self.collections.fiches, result)

    def _import_videos(self, raw: dict, result: ModuleResult) -> None:
        result.videos = self._import_records(Dataset.VIDEOS, self.collections.videos, result)

    def _import_quizzes(self, raw: dict, result: ModuleResult) -> None:
        module_id = result.module_id
        quizzes = self.fixtures.load_dataset(Dataset.QUIZZES, module_id)
        if quizzes is None:
            self._progress(module_id, "no quizzes file (ok)")
            return

        path = self._child_path(module_id, self.collections.quizzes)
        for raw_quiz in quizzes:
            quiz_id = record_id(raw_quiz, Dataset.QUIZZES.value)
            document = normalize_quiz(raw_quiz, module_id).to_document()
            # createdAt is rewritten on every import, not kept from the first one
            document['createdAt'] = self.store.server_timestamp()
            document['updatedAt'] = self.store.server_timestamp()
            self.store.merge(path, quiz_id, document)
            result.quizzes += 1

        logger.debug(f"Imported {result.quizzes} quizzes into {path}")
        self._progress(module_id, f"quizzes imported: {result.quizzes}")

    def _finalize_counts(self, raw: dict, result: ModuleResult) -> None:
        self.store.merge(self.collections.modules, result.module_id, {
            'countQuizzes': result.quizzes,
            'updatedAt': self.store.server_timestamp(),
        })
        logger.debug(f"countQuizzes for {result.module_id} set to {result.quizzes}")
