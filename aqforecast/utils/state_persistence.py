"""Key-value persistence of series snapshots and trained pipelines."""

import logging
import shutil
from pathlib import Path
from typing import Iterator, Optional, Union
from urllib.parse import quote, unquote

from ..data.structs import Series
from ..pipeline.state import PipelineState
from .serialization import dumps_pipeline, dumps_series, loads_pipeline, loads_series

logger = logging.getLogger(__name__)

SERIES_KEY = "airQualityData"
PIPELINE_KEY = "airQualityModelInfo"


class KeyValueStore:
    """
    String-to-string store backed by one file per key in a directory.

    Keys are percent-encoded into file names, so any string is a valid key.
    """

    def __init__(self, state_dir: Union[str, Path] = "logs/pipeline_state"):
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key:
            raise ValueError("Key must be a non-empty string")
        return self.state_dir / f"{quote(key, safe='')}.txt"

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug(f"Saved {len(value)} characters under '{key}'")

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return default
        return path.read_text(encoding="utf-8")

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._path(key).exists()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.debug(f"Deleted '{key}'")

    def keys(self) -> Iterator[str]:
        for path in sorted(self.state_dir.glob("*.txt")):
            yield unquote(path.stem)

    def clear(self) -> None:
        """Remove every stored key."""
        if self.state_dir.exists():
            shutil.rmtree(self.state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Cleared state in {self.state_dir}")


def save_series(store: KeyValueStore, series: Series, key: str = SERIES_KEY) -> None:
    store.set(key, dumps_series(series))
    logger.info(f"Saved {len(series)} observations to '{key}'")


def load_series(store: KeyValueStore, key: str = SERIES_KEY) -> Series:
    """Raises KeyError when nothing was saved under ``key``."""
    return loads_series(store[key])


def save_pipeline(store: KeyValueStore, state: PipelineState, key: str = PIPELINE_KEY) -> None:
    store.set(key, dumps_pipeline(state))
    logger.info(f"Saved pipeline for target '{state.target}' to '{key}'")


def load_pipeline(store: KeyValueStore, key: str = PIPELINE_KEY) -> PipelineState:
    """Raises KeyError when nothing was saved under ``key``."""
    return loads_pipeline(store[key])
