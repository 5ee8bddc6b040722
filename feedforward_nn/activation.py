import numpy as np

from .errors import InvalidConstructionError


def sigmoid(z):
    """
    Logistic function 1 / (1 + e^-z).
    Works on scalars and numpy arrays; z is clipped to [-500, 500] so exp never overflows.
    """
    z = np.clip(z, -500.0, 500.0)
    return 1.0 / (1.0 + np.exp(-z))


def sigmoid_prime(z):
    s = sigmoid(z)
    return s * (1.0 - s)


def index_of_highest(values) -> int:
    # first occurrence wins on ties
    values = np.asarray(values, dtype=np.float64).ravel()
    if values.shape[0] == 0:
        raise InvalidConstructionError("Cannot take the highest index of an empty vector")
    return int(np.argmax(values))
