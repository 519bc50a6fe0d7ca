"""
Sample Navigator.

Cycles through a fixed list of sample files. Loading failures skip the
file without disturbing the sample on display.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Union
from loguru import logger

from deepends.core.contracts import DepthSample
from deepends.core.errors import DecodeFailure
from deepends.depth.sample_loader import DepthSampleLoader


class SampleNavigator:
    """
    Cyclic navigation over sample files.

    Guarantees:
    - Advancing past the last source wraps to the first
    - A failed load leaves the current sample unchanged
    - The cursor still moves on failure, so the next advance tries
      the following file instead of retrying the broken one
    """

    def __init__(
        self,
        sources: Sequence[Union[str, Path]],
        loader: Optional[DepthSampleLoader] = None,
    ):
        """
        Initialize navigator.

        Args:
            sources: Sample files, in display order
            loader: Sample loader (default loader if None)
        """
        self.sources: List[Path] = [Path(source) for source in sources]
        self.loader = loader or DepthSampleLoader()

        self._cursor: Optional[int] = None
        self._current: Optional[DepthSample] = None
        self._last_failure: Optional[DecodeFailure] = None

    @property
    def current(self) -> Optional[DepthSample]:
        return self._current

    @property
    def last_failure(self) -> Optional[DecodeFailure]:
        """Failure of the most recent advance, None if it succeeded."""
        return self._last_failure

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    def next_source(self) -> Optional[Path]:
        """Source the next advance will load."""
        if not self.sources:
            return None
        if self._cursor is None:
            return self.sources[0]
        return self.sources[(self._cursor + 1) % len(self.sources)]

    def advance(self) -> bool:
        """
        Load the next sample.

        Returns:
            True if a new sample is now current
        """
        if not self.sources:
            logger.warning("No samples to show")
            return False

        if self._cursor is None:
            self._cursor = 0
        else:
            self._cursor = (self._cursor + 1) % len(self.sources)
        source = self.sources[self._cursor]

        try:
            sample = self.loader.load(source)
        except DecodeFailure as e:
            self._last_failure = e
            logger.warning(f"Skipping sample: {e}")
            return False

        self._current = sample
        self._last_failure = None
        return True
