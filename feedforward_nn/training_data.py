from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .errors import IndexRangeError, InvalidConstructionError


@dataclass(frozen=True)
class TrainingExample:
    inputs: np.ndarray
    target_outputs: np.ndarray
    highest_target_index: int


def one_hot(label: int, num_classes: int) -> np.ndarray:
    y = np.zeros(num_classes, dtype=np.float64)
    y[label] = 1.0
    return y


class TrainingDataSource(ABC):
    """
    Indexed, read-only collection of TrainingExample objects.
    Subclasses implement get_size() and get_item(); len(), [] and
    iteration come for free.
    """

    @abstractmethod
    def get_size(self) -> int:
        ...

    @abstractmethod
    def get_item(self, index: int) -> TrainingExample:
        ...

    def __len__(self):
        return self.get_size()

    def __getitem__(self, index: int) -> TrainingExample:
        return self.get_item(index)

    def __iter__(self):
        for i in range(self.get_size()):
            yield self.get_item(i)


class ArrayTrainingData(TrainingDataSource):
    """
    In-memory source over a (N, D) input array and N integer labels.
    Targets are one-hot vectors of length num_classes.
    """

    def __init__(self, inputs: np.ndarray, labels, num_classes: int):
        inputs = np.asarray(inputs, dtype=np.float64)
        labels = np.asarray(labels, dtype=np.int64)
        if inputs.ndim != 2:
            inputs = inputs.reshape(inputs.shape[0], -1)
        if inputs.shape[0] != labels.shape[0]:
            raise InvalidConstructionError(
                f"{inputs.shape[0]} inputs but {labels.shape[0]} labels")
        if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
            raise InvalidConstructionError(f"labels must lie in 0..{num_classes - 1}")
        self.inputs = inputs
        self.labels = labels
        self.num_classes = num_classes

    def get_size(self) -> int:
        return self.labels.shape[0]

    def get_item(self, index: int) -> TrainingExample:
        if index < 0 or index >= self.get_size():
            raise IndexRangeError(f"index is not in range: {index}")
        label = int(self.labels[index])
        return TrainingExample(self.inputs[index], one_hot(label, self.num_classes), label)


class TrainingDataRandom(TrainingDataSource):
    """
    Shuffled view over another source. The permutation only changes when
    randomise() is called; the underlying source must not change size.
    """

    def __init__(self, source: TrainingDataSource):
        self.source = source
        self.index = np.arange(source.get_size())

    def randomise(self, rng: np.random.Generator):
        # Fisher-Yates: move a uniformly chosen remaining entry to the end of the window
        i = self.index.shape[0]
        while i > 1:
            x = int(rng.integers(i))
            i -= 1
            self.index[x], self.index[i] = self.index[i], self.index[x]

    def get_item(self, index: int) -> TrainingExample:
        if index < 0 or index >= self.index.shape[0]:
            raise IndexRangeError(f"index is not in range: {index}")
        return self.source.get_item(int(self.index[index]))

    def get_size(self) -> int:
        return self.index.shape[0]


class TrainingDataSubset(TrainingDataSource):
    """Contiguous window [start, start + length) of another source."""

    def __init__(self, source: TrainingDataSource, start: int, length: int):
        if start < 0 or length <= 0 or start + length > source.get_size():
            raise IndexRangeError("start / length do not describe valid subset")
        self.source = source
        self.start = start
        self.length = length

    def get_item(self, index: int) -> TrainingExample:
        if index < 0 or index >= self.length:
            raise IndexRangeError(f"index is not in range: {index}")
        return self.source.get_item(self.start + index)

    def get_size(self) -> int:
        return self.length
