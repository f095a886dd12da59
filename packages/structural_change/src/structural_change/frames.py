"""
Frame access.

The engine never touches a frame directly. It goes through a FrameAccess,
which knows how to:

    values(frame)            → mutable float32 view of the frame's numbers
    create(n_values)         → a new zeroed output frame
    copy_meta(dest, source)  → carry non-numeric fields (timestamp) across

Two accesses ship with the package:

    ArrayAccess    frames are plain 1-D numpy arrays, no metadata
    FeatureAccess  frames are Feature records (values + optional timestamp)

Hosts with their own frame type subclass FrameAccess and pass it to
StructuralChange.calculate().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np


class FrameAccess(ABC):
    """Adapter between the engine and a concrete frame type."""

    @abstractmethod
    def values(self, frame) -> np.ndarray:
        """Return the frame's numeric payload as a 1-D float32 array."""
        pass

    @abstractmethod
    def create(self, n_values: int):
        """Return a new frame holding n_values zeros."""
        pass

    def copy_meta(self, dest, source) -> None:
        """Copy descriptive fields from source to dest. No-op by default."""
        pass


class ArrayAccess(FrameAccess):
    """Frames are bare numeric vectors."""

    def values(self, frame) -> np.ndarray:
        if isinstance(frame, np.ndarray) and frame.dtype == np.float32 and frame.ndim == 1:
            return frame
        return np.asarray(frame, dtype=np.float32).ravel()

    def create(self, n_values: int) -> np.ndarray:
        return np.zeros(n_values, dtype=np.float32)


@dataclass
class Feature:
    """
    A host feature frame: numeric values plus an optional timestamp.

    has_timestamp tells whether timestamp means anything; the engine
    never reads either field, it only copies them to output frames.
    """
    values: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float32))
    has_timestamp: bool = False
    timestamp: Optional[Any] = None

    def __post_init__(self):
        self.values = np.asarray(self.values, dtype=np.float32).ravel()


class FeatureAccess(FrameAccess):
    """
    Frames are Feature records.

    Feature → Feature copies the timestamp flag (and the timestamp when
    set). From any other frame type the output has no timestamp.
    """

    def values(self, frame: Feature) -> np.ndarray:
        return frame.values

    def create(self, n_values: int) -> Feature:
        return Feature(values=np.zeros(n_values, dtype=np.float32))

    def copy_meta(self, dest: Feature, source) -> None:
        if isinstance(source, Feature):
            dest.has_timestamp = source.has_timestamp
            if source.has_timestamp:
                dest.timestamp = source.timestamp
        else:
            dest.has_timestamp = False


def access_for(frame) -> FrameAccess:
    """Pick the shipped access matching a frame value."""
    if isinstance(frame, Feature):
        return FeatureAccess()
    return ArrayAccess()
