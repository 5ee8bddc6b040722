import numpy as np

from .activation import sigmoid
from .matrix import matrix_t


class input_layer_t:
    """
    First layer of a network. Has no parameters; its outputs are whatever
    input vector was last handed to set_inputs().
    """

    def __init__(self, size: int):
        self.size = size
        self.outputs = matrix_t(size, 1)

    def set_inputs(self, inputs):
        # no length check, callers supply vectors of the right size
        self.outputs = matrix_t.from_vector(inputs)


class hidden_layer_t:
    """
    Fully connected sigmoid layer fed by `previous`.
      weights: (size, previous.size)
      biases:  (size, 1)
      forward: outputs = sigmoid(weights . previous.outputs + biases)
    """

    def __init__(self, previous, size: int):
        self.previous = previous
        self.size = size
        self.weights = matrix_t(size, previous.size)
        self.biases = matrix_t(size, 1)
        self.outputs = matrix_t(size, 1)

    def init(self, rng: np.random.Generator):
        # standard normal init, weights first then biases
        self.weights.fill_gaussian(rng)
        self.biases.fill_gaussian(rng)

    def weighted_input(self, activation: matrix_t) -> matrix_t:
        return self.weights.dot(activation) + self.biases

    def iterate(self) -> matrix_t:
        z = self.weighted_input(self.previous.outputs)
        self.outputs = z.apply(sigmoid)
        return self.outputs

    def zero_biases(self) -> matrix_t:
        return matrix_t(self.size, 1)

    def zero_weights(self) -> matrix_t:
        return matrix_t(self.size, self.previous.size)
