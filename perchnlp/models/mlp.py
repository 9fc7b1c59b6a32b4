import torch
from torch import nn


ACTS = {
    "relu": nn.ReLU,
    "leaky_relu": nn.LeakyReLU,
    "tanh": nn.Tanh,
    "sigmoid": nn.Sigmoid,
    "softplus": nn.Softplus,
}


class SimpleMLP(nn.Module):
    """
    A configurable feed-forward MLP.

    Parameters are registered layer by layer (weight then bias), which is
    the order used when the network is flattened into a vector.

    Parameters:
        input_dim (int): Number of input features.
        hidden (list[int]): Hidden layer sizes.
        output_dim (int): Output units (N for N-class logits, 1 for regression).
        activation (str): Activation function for hidden layers.
        dtype (torch.dtype): Parameter precision.
    """

    def __init__(self, input_dim, hidden, output_dim, activation="relu", dtype=torch.float32):
        super().__init__()

        if activation not in ACTS:
            raise ValueError(f"Unknown activation '{activation}'")

        act = ACTS[activation]

        layers = []
        prev = input_dim
        for h in hidden:
            layers.append(nn.Linear(prev, h, dtype=dtype))
            layers.append(act())
            prev = h

        layers.append(nn.Linear(prev, output_dim, dtype=dtype))

        self.net = nn.Sequential(*layers)

    @property
    def linear_layers(self):
        return [m for m in self.net if isinstance(m, nn.Linear)]

    def forward(self, x):
        return self.net(x)
