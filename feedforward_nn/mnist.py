"""
MNIST ingestion: raw IDX files or torchvision, both ending up as an
ArrayTrainingData with pixel values scaled into [0, 1).
"""
import gzip
import struct
from typing import Tuple

import numpy as np

from .errors import IdxFormatError
from .training_data import ArrayTrainingData, TrainingDataSource, TrainingDataSubset

IMAGES_MAGIC = 2051
LABELS_MAGIC = 2049
NUM_CLASSES = 10
PIXEL_SCALE = 256.0


def _read_bytes(path: str) -> bytes:
    opener = gzip.open if str(path).endswith(".gz") else open
    with opener(path, "rb") as f:
        return f.read()


def _header(buf: bytes, magic: int, n_dims: int, path: str) -> Tuple[int, ...]:
    need = 4 * (1 + n_dims)
    if len(buf) < need:
        raise IdxFormatError(f"{path}: unexpected EOF in header")
    fields = struct.unpack(f">{1 + n_dims}I", buf[:need])
    if fields[0] != magic:
        raise IdxFormatError(f"{path}: incorrect magic number {fields[0]} (expected {magic})")
    return fields[1:]


def read_idx_images(path: str) -> np.ndarray:
    """Returns uint8 array of shape (num_images, rows, cols)."""
    buf = _read_bytes(path)
    n, rows, cols = _header(buf, IMAGES_MAGIC, 3, path)
    body = buf[16:]
    if len(body) < n * rows * cols:
        raise IdxFormatError(f"{path}: unexpected EOF, expected {n * rows * cols} pixel bytes")
    return np.frombuffer(body, dtype=np.uint8, count=n * rows * cols).reshape(n, rows, cols)


def read_idx_labels(path: str) -> np.ndarray:
    buf = _read_bytes(path)
    (n,) = _header(buf, LABELS_MAGIC, 1, path)
    body = buf[8:]
    if len(body) < n:
        raise IdxFormatError(f"{path}: unexpected EOF, expected {n} labels")
    return np.frombuffer(body, dtype=np.uint8, count=n).astype(np.int64)


def to_training_data(images: np.ndarray, labels: np.ndarray) -> ArrayTrainingData:
    if images.shape[0] != labels.shape[0]:
        raise IdxFormatError(f"{images.shape[0]} images but {labels.shape[0]} labels")
    X = images.reshape(images.shape[0], -1).astype(np.float64) / PIXEL_SCALE
    return ArrayTrainingData(X, labels, NUM_CLASSES)


def load_idx_dataset(images_path: str, labels_path: str) -> ArrayTrainingData:
    return to_training_data(read_idx_images(images_path), read_idx_labels(labels_path))


def load_torchvision_mnist(root: str = "./data", train: bool = True, download: bool = True) -> ArrayTrainingData:
    import torchvision as thv

    ds = thv.datasets.MNIST(root, train=train, download=download)
    images = ds.data.numpy().astype(np.uint8)
    labels = ds.targets.numpy().astype(np.int64)
    return to_training_data(images, labels)


def train_test_split(source: TrainingDataSource, train_size: int) -> Tuple[TrainingDataSubset, TrainingDataSubset]:
    """First train_size items for training, the remainder held out."""
    n = source.get_size()
    return (TrainingDataSubset(source, 0, train_size),
            TrainingDataSubset(source, train_size, n - train_size))
