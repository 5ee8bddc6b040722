"""
Fully connected sigmoid network trained with mini-batch stochastic gradient
descent and backpropagation on a quadratic cost.
"""
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from .activation import index_of_highest, sigmoid, sigmoid_prime
from .errors import InvalidConstructionError, ParameterRangeError
from .layer import hidden_layer_t, input_layer_t
from .matrix import matrix_t
from .training_data import (TrainingDataRandom, TrainingDataSource,
                            TrainingDataSubset, TrainingExample)

logger = logging.getLogger(__name__)

MIN_EPOCHS = 1
MAX_EPOCHS = 200


@dataclass
class EpochResult:
    epoch: int
    elapsed: float
    correct: Optional[int] = None
    total: Optional[int] = None

    @property
    def accuracy(self) -> Optional[float]:
        if self.correct is None or not self.total:
            return None
        return self.correct / self.total


class network_t:

    def __init__(self, *layer_sizes: int):
        if len(layer_sizes) < 2:
            raise InvalidConstructionError("Must have 2 or more layers")
        for s in layer_sizes:
            if int(s) != s or s <= 0:
                raise InvalidConstructionError(f"layer sizes must be positive integers, got {s!r}")
        self.sizes = tuple(int(s) for s in layer_sizes)
        self.input_layer = input_layer_t(self.sizes[0])
        self.hidden_layers: List[hidden_layer_t] = []
        previous = self.input_layer
        for size in self.sizes[1:]:
            previous = hidden_layer_t(previous, size)
            self.hidden_layers.append(previous)

    @property
    def num_layers(self) -> int:
        return len(self.sizes)

    @property
    def layers(self):
        return [self.input_layer] + self.hidden_layers

    @property
    def output_layer(self) -> hidden_layer_t:
        # every layer after the input is a hidden_layer_t; the last one is the output
        return self.hidden_layers[-1]

    @property
    def outputs(self) -> matrix_t:
        return self.output_layer.outputs

    def init(self, rng: Optional[np.random.Generator] = None):
        """Gaussian-initialise every parameterised layer; pass a seeded rng for repeatable runs."""
        if rng is None:
            rng = np.random.default_rng()
        for h in self.hidden_layers:
            h.init(rng)

    # ---------------- forward ----------------
    def set_inputs(self, inputs):
        self.input_layer.set_inputs(inputs)

    def iterate(self) -> matrix_t:
        for h in self.hidden_layers:
            h.iterate()
        return self.outputs

    def feedforward(self, inputs) -> np.ndarray:
        self.set_inputs(inputs)
        return self.iterate().values.copy()

    def classify(self, inputs) -> int:
        return index_of_highest(self.feedforward(inputs))

    # ---------------- backward ----------------
    def backprop(self, example: TrainingExample) -> Tuple[List[matrix_t], List[matrix_t]]:
        """
        Gradient of the quadratic cost for one example.
        Returns (nabla_b, nabla_w), one entry per parameterised layer in chain order.
        """
        x = matrix_t.from_vector(example.inputs)
        y = matrix_t.from_vector(example.target_outputs)
        n = len(self.hidden_layers)
        nabla_b: List[Optional[matrix_t]] = [None] * n
        nabla_w: List[Optional[matrix_t]] = [None] * n

        # forward, keeping every z and activation
        activation = x
        activations = [x]
        zs = []
        for h in self.hidden_layers:
            z = h.weighted_input(activation)
            zs.append(z)
            activation = z.apply(sigmoid)
            activations.append(activation)

        # output layer
        delta = self.cost_derivative(activations[-1], y) * zs[-1].apply(sigmoid_prime)
        nabla_b[-1] = delta
        nabla_w[-1] = delta.dot(activations[-2].transpose())

        # l counts back from the output: l = 2 is the layer before it
        for l in range(2, self.num_layers):
            sp = zs[-l].apply(sigmoid_prime)
            delta = self.hidden_layers[-l + 1].weights.transpose().dot(delta) * sp
            nabla_b[-l] = delta
            nabla_w[-l] = delta.dot(activations[-l - 1].transpose())

        return nabla_b, nabla_w

    @staticmethod
    def cost_derivative(output_activations: matrix_t, y: matrix_t) -> matrix_t:
        return output_activations - y

    def update_mini_batch(self, mini_batch: TrainingDataSource, eta: float):
        nabla_b = [h.zero_biases() for h in self.hidden_layers]
        nabla_w = [h.zero_weights() for h in self.hidden_layers]

        for example in mini_batch:
            delta_b, delta_w = self.backprop(example)
            for i in range(len(self.hidden_layers)):
                nabla_b[i] += delta_b[i]
                nabla_w[i] += delta_w[i]

        step = eta / mini_batch.get_size()
        for h, nb, nw in zip(self.hidden_layers, nabla_b, nabla_w):
            h.weights -= nw * step
            h.biases -= nb * step

    # ---------------- training ----------------
    def sgd(self, training_data: TrainingDataSource, epochs: int, mini_batch_size: int,
            eta: float, rng: Optional[np.random.Generator] = None,
            test_data: Optional[TrainingDataSource] = None,
            progress: bool = False) -> List[EpochResult]:
        """
        Mini-batch stochastic gradient descent.

        Each epoch reshuffles the training data with `rng`, walks it in windows of
        `mini_batch_size` (the last one may be shorter) and applies update_mini_batch
        to each. If test_data is given the network is evaluated after every epoch.
        """
        if not MIN_EPOCHS <= epochs <= MAX_EPOCHS:
            raise ParameterRangeError(f"number of epochs must be in range {MIN_EPOCHS}..{MAX_EPOCHS}")
        if mini_batch_size < 1:
            raise ParameterRangeError("mini-batch size must be at least 1")
        if eta <= 0:
            raise ParameterRangeError("learning rate must be positive")
        if rng is None:
            rng = np.random.default_rng()

        logger.info("Stochastic Gradient Descent on %r; training data %d; %d epochs; "
                    "mini-batch size %d; eta %s",
                    self, training_data.get_size(), epochs, mini_batch_size, eta)

        tdr = TrainingDataRandom(training_data)
        n = tdr.get_size()
        history = []
        for epoch in range(1, epochs + 1):
            t0 = time.time()
            tdr.randomise(rng)
            for k in tqdm(range(0, n, mini_batch_size), desc=f"epoch {epoch}",
                          disable=not progress, leave=False):
                mini_batch = TrainingDataSubset(tdr, k, min(mini_batch_size, n - k))
                self.update_mini_batch(mini_batch, eta)
            elapsed = time.time() - t0
            logger.info("Completed epoch %d (%dms)", epoch, int(elapsed * 1000))

            result = EpochResult(epoch=epoch, elapsed=elapsed)
            if test_data is not None:
                t1 = time.time()
                result.correct = self.evaluate(test_data)
                result.total = test_data.get_size()
                logger.info("Correctly identified %d of %d (%dms)",
                            result.correct, result.total, int((time.time() - t1) * 1000))
            history.append(result)
        return history

    def evaluate(self, test_data: TrainingDataSource) -> int:
        """Number of examples whose highest output matches highest_target_index."""
        return sum(1 for td in test_data if self.classify(td.inputs) == td.highest_target_index)

    def total_cost(self, data: TrainingDataSource) -> float:
        """Mean quadratic cost 0.5 * ||a - y||^2 over `data`."""
        n = data.get_size()
        if n == 0:
            return 0.0
        cost = 0.0
        for td in data:
            a = self.feedforward(td.inputs)
            cost += 0.5 * float(np.sum((a - np.asarray(td.target_outputs, dtype=np.float64)) ** 2))
        return cost / n

    def __repr__(self):
        return "Network[" + ",".join(str(s) for s in self.sizes) + "]"
