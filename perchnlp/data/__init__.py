from .split import DatasetSplit, as_split
from .minibatch import MinibatchCursor, make_partition, validate_size_minibatch

__all__ = [
    "DatasetSplit",
    "as_split",
    "MinibatchCursor",
    "make_partition",
    "validate_size_minibatch",
]
