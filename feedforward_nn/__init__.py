from .activation import index_of_highest, sigmoid, sigmoid_prime
from .errors import (DimensionMismatchError, IdxFormatError, IndexRangeError,
                     InvalidConstructionError, NetworkError, ParameterRangeError)
from .layer import hidden_layer_t, input_layer_t
from .matrix import matrix_t
from .network import EpochResult, network_t
from .training_data import (ArrayTrainingData, TrainingDataRandom, TrainingDataSource,
                            TrainingDataSubset, TrainingExample, one_hot)

__all__ = [
    'matrix_t', 'input_layer_t', 'hidden_layer_t', 'network_t', 'EpochResult',
    'sigmoid', 'sigmoid_prime', 'index_of_highest',
    'TrainingExample', 'TrainingDataSource', 'ArrayTrainingData',
    'TrainingDataRandom', 'TrainingDataSubset', 'one_hot',
    'NetworkError', 'DimensionMismatchError', 'InvalidConstructionError',
    'ParameterRangeError', 'IndexRangeError', 'IdxFormatError',
]
