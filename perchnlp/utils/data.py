import numpy as np
import torch
from sklearn.model_selection import train_test_split, StratifiedShuffleSplit
from sklearn.preprocessing import StandardScaler, MinMaxScaler

from ..data.split import DatasetSplit


def make_splits(
    X,
    y,
    *,
    test_split: float = 0.2,
    seed: int | None = None,
    stratify: bool = False,
    normalize: str | None = None,  # None | "standard" | "minmax"
    dtype: torch.dtype = torch.float32,
    return_scaler: bool = False,
):
    """
    Create train and test DatasetSplits from numpy arrays or tensors.

    Args:
        X, y: numpy arrays or tensors
        test_split: fraction of data held out for the test split
        seed: RNG seed for reproducible splits
        stratify: whether to stratify (requires 1D class labels)
        normalize: optional normalization fitted on the train split:
            - None      (no scaling)
            - "standard" (mean=0, std=1)
            - "minmax"  (scaled to 0–1)
        dtype: floating dtype of the feature tensors
        return_scaler: if True, return (train, test, scaler)

    Returns:
        train, test
        OR
        train, test, scaler (if return_scaler=True)
    """

    # Convert numpy -> torch
    if isinstance(X, np.ndarray):
        X = torch.tensor(X, dtype=dtype)
    if isinstance(y, np.ndarray):
        y = torch.tensor(y)

    # ------------------------------------------------------
    # STRATIFIED OR STANDARD SPLIT
    # ------------------------------------------------------
    if stratify:
        if y.dim() != 1:
            raise ValueError("Stratified split requires 1D target array.")

        splitter = StratifiedShuffleSplit(
            n_splits=1, test_size=test_split, random_state=seed
        )
        idx_train, idx_test = next(splitter.split(X, y))
        X_train, X_test = X[idx_train], X[idx_test]
        y_train, y_test = y[idx_train], y[idx_test]

    else:
        X_train, X_test, y_train, y_test = train_test_split(
            X, y, test_size=test_split, random_state=seed
        )

    # ------------------------------------------------------
    # NORMALIZATION
    # ------------------------------------------------------
    scaler = None

    if normalize is not None:
        if normalize == "standard":
            scaler = StandardScaler()
        elif normalize == "minmax":
            scaler = MinMaxScaler()
        else:
            raise ValueError("normalize must be None, 'standard', or 'minmax'")

        # fit on train, transform both
        X_train_np = X_train.numpy()
        X_test_np = X_test.numpy()

        scaler.fit(X_train_np)

        X_train = torch.tensor(scaler.transform(X_train_np), dtype=dtype)
        X_test = torch.tensor(scaler.transform(X_test_np), dtype=dtype)

    train = DatasetSplit(X_train, y_train)
    test = DatasetSplit(X_test, y_test)

    if return_scaler:
        return train, test, scaler

    return train, test
