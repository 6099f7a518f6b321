"""Fixture loading from local JSON files."""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

from .config import FixturesConfig
from .exceptions import FixtureNotFoundError, FixtureParseError
from .logging_config import get_logger

logger = get_logger('fixtures')


class Dataset(str, Enum):
    """Per-module fixture datasets."""
    FICHES = "fiches"
    VIDEOS = "videos"
    QUIZZES = "quizzes"


class FixtureLoader:
    """Reads the modules list and per-module dataset files from one directory."""

    def __init__(self, directory: Path, config: Optional[FixturesConfig] = None):
        self.directory = Path(directory)
        self.config = config or FixturesConfig()

    def modules_path(self) -> Path:
        return self.directory / self.config.modules_file

    def dataset_path(self, dataset: Dataset, module_id: str) -> Path:
        pattern = {
            Dataset.FICHES: self.config.fiches_pattern,
            Dataset.VIDEOS: self.config.videos_pattern,
            Dataset.QUIZZES: self.config.quizzes_pattern,
        }[dataset]
        return self.directory / pattern.format(module_id=module_id)

    def _read_array(self, path: Path) -> list:
        try:
            data = json.loads(path.read_text(encoding=self.config.encoding))
        except json.JSONDecodeError as e:
            raise FixtureParseError(str(path), reason=str(e))
        except (OSError, UnicodeDecodeError) as e:
            raise FixtureParseError(str(path), reason=f"unreadable: {e}")
        if not isinstance(data, list):
            raise FixtureParseError(str(path), reason=f"expected a JSON array, got {type(data).__name__}")
        logger.debug(f"Loaded {len(data)} records from {path}")
        return data

    def load_modules(self) -> list:
        """Load the modules list.

        Raises:
            FixtureNotFoundError: the modules file does not exist
            FixtureParseError: the file is not a JSON array
        """
        path = self.modules_path()
        if not path.is_file():
            raise FixtureNotFoundError(str(path))
        return self._read_array(path)

    def load_dataset(self, dataset: Dataset, module_id: str) -> Optional[list]:
        """Load one dataset for a module, or None when its file does not exist."""
        path = self.dataset_path(dataset, module_id)
        if not path.is_file():
            logger.debug(f"No {dataset.value} fixture for {module_id}: {path}")
            return None
        return self._read_array(path)
