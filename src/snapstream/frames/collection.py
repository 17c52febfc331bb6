"""
Frame Collection
================

Ordered, immutable sequence of captured frames.

Insertion order is the stitching order (top to bottom). Every mutation
returns a new FrameCollection, so a render pass holding a reference keeps
observing the snapshot it started from.

Storage:
    Snapshots derived by append share one append-only frame list and an
    id -> position index; each snapshot only sees the first `size` entries.
    Appending to the newest snapshot extends the shared list in place
    (amortized O(1)). Appending to an older snapshot copies its prefix
    first. delete and swap always build a fresh list (O(n)).

Design Rules:
    - No duplicate frame ids
    - Mutations never modify what the receiver observes
    - delete and swap are no-ops for unknown ids
    - Callers serialize mutations
"""

import itertools
import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from snapstream.frames.frame import Frame


logger = logging.getLogger(__name__)


class SwapDirection(str, Enum):
    """Direction for adjacent-swap reordering."""

    UP = "up"
    DOWN = "down"


class FrameCollection:
    """
    Immutable ordered sequence of frames.

    Example:
        frames = FrameCollection()
        frames = frames.append(frame_a).append(frame_b)
        frames = frames.swap(frame_b.frame_id, SwapDirection.UP)
        frames = frames.delete(frame_a.frame_id)
    """

    __slots__ = ("_store", "_positions", "_size")

    def __init__(self, frames: Iterable[Frame] = ()) -> None:
        """
        Initialize collection.

        Args:
            frames: Initial frames in stitching order

        Raises:
            ValueError: If two frames share an id
        """
        store = list(frames)
        positions: Dict[str, int] = {}
        for index, frame in enumerate(store):
            if frame.frame_id in positions:
                raise ValueError(f"Duplicate frame id: {frame.frame_id}")
            positions[frame.frame_id] = index
        self._store: List[Frame] = store
        self._positions: Dict[str, int] = positions
        self._size: int = len(store)

    @property
    def frames(self) -> Tuple[Frame, ...]:
        """Frames in stitching order."""
        return tuple(self)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(frame.frame_id for frame in self)

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Frame]:
        return itertools.islice(self._store, self._size)

    def __getitem__(self, index: int) -> Frame:
        if index < 0:
            index += self._size
        if not 0 <= index < self._size:
            raise IndexError("frame index out of range")
        return self._store[index]

    def __bool__(self) -> bool:
        return self._size > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FrameCollection):
            return NotImplemented
        return self.frames == other.frames

    def __hash__(self) -> int:
        return hash(self.frames)

    def __repr__(self) -> str:
        return f"FrameCollection(size={self._size})"

    def index_of(self, frame_id: str) -> Optional[int]:
        """Position of a frame, or None if absent."""
        index = self._positions.get(frame_id)
        if index is None or index >= self._size:
            return None
        return index

    def get(self, frame_id: str) -> Optional[Frame]:
        index = self.index_of(frame_id)
        return None if index is None else self._store[index]

    def append(self, frame: Frame) -> "FrameCollection":
        """
        Add a frame to the end.

        Raises:
            ValueError: If a frame with the same id is already present
        """
        if self.index_of(frame.frame_id) is not None:
            raise ValueError(f"Duplicate frame id: {frame.frame_id}")

        if self._size == len(self._store):
            store, positions = self._store, self._positions
        else:
            # A newer snapshot already extended the shared list
            store = self._store[:self._size]
            positions = {f.frame_id: i for i, f in enumerate(store)}

        store.append(frame)
        positions[frame.frame_id] = len(store) - 1
        return self._view(store, positions, len(store))

    def delete(self, frame_id: str) -> "FrameCollection":
        """Remove the frame with matching id. No-op if absent."""
        index = self.index_of(frame_id)
        if index is None:
            logger.debug(f"delete: frame {frame_id} not found")
            return self
        frames = self._store[:self._size]
        del frames[index]
        return self._derive(frames)

    def swap(self, frame_id: str, direction: SwapDirection) -> "FrameCollection":
        """
        Exchange a frame with its immediate neighbour.

        No-op when the frame is already at the requested boundary or
        the id is unknown.
        """
        direction = SwapDirection(direction)
        index = self.index_of(frame_id)
        if index is None:
            logger.debug(f"swap: frame {frame_id} not found")
            return self

        other = index - 1 if direction == SwapDirection.UP else index + 1
        if other < 0 or other >= self._size:
            return self

        frames = self._store[:self._size]
        frames[index], frames[other] = frames[other], frames[index]
        return self._derive(frames)

    @classmethod
    def _derive(cls, frames: List[Frame]) -> "FrameCollection":
        # Uniqueness already holds for anything derived from a valid collection
        positions = {frame.frame_id: i for i, frame in enumerate(frames)}
        return cls._view(frames, positions, len(frames))

    @classmethod
    def _view(
        cls,
        store: List[Frame],
        positions: Dict[str, int],
        size: int,
    ) -> "FrameCollection":
        collection = cls.__new__(cls)
        collection._store = store
        collection._positions = positions
        collection._size = size
        return collection
