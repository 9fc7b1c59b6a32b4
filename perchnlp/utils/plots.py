from __future__ import annotations

from typing import Dict, List

import matplotlib.pyplot as plt


def plot_history(history: Dict) -> None:
    """Objective and gradient norm per solver iteration (log-scaled norm)."""
    iterations: List[int] = history.get("iteration", [])
    objective = history.get("objective", [])
    grad_norm = history.get("grad_norm", [])

    fig, (ax_f, ax_g) = plt.subplots(1, 2, figsize=(9, 3.5))
    if objective:
        ax_f.plot(iterations, objective, label="objective")
    ax_f.set_xlabel("iteration")
    ax_f.set_ylabel("minibatch loss")

    if grad_norm:
        ax_g.semilogy(iterations, grad_norm, label="|g|")
    ax_g.set_xlabel("iteration")
    ax_g.set_ylabel("gradient norm")
    fig.tight_layout()


def plot_accuracy(history: Dict, split: str = "test") -> None:
    iterations: List[int] = history.get("iteration", [])
    acc = history.get("accuracy", [])

    if not acc:
        print("No accuracy values found in history.")
        return

    plt.figure()
    plt.plot(iterations, acc, label=f"{split}_accuracy")
    plt.ylim(0.0, 1.0)
    plt.xlabel("iteration")
    plt.ylabel("accuracy")
    plt.legend()
    plt.grid(True)
    plt.tight_layout()
