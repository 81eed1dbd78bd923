from __future__ import annotations

from typing import Protocol

import numpy as np

from rbmvmc.config.schemas import OptimizerConfig
from rbmvmc.types import ScalarArray


class Optimizer(Protocol):
    """Turns a natural-gradient direction into the step added to the parameters."""

    def get_update(self, gradient: ScalarArray) -> ScalarArray:
        ...

    def params(self) -> dict[str, object]:
        ...


class Sgd:
    """Plain (optionally momentum) gradient descent: ``step = -eta * v``."""

    def __init__(self, eta: float, momentum: float = 0.0) -> None:
        if eta <= 0.0:
            raise ValueError("eta must be > 0")
        if not 0.0 <= momentum < 1.0:
            raise ValueError("momentum must lie in [0, 1)")
        self.eta = eta
        self.momentum = momentum
        self._velocity: ScalarArray | None = None

    def get_update(self, gradient: ScalarArray) -> ScalarArray:
        if self.momentum == 0.0:
            return -self.eta * gradient
        if self._velocity is None:
            self._velocity = np.zeros_like(gradient)
        self._velocity = self.momentum * self._velocity + gradient
        return -self.eta * self._velocity

    def params(self) -> dict[str, object]:
        return {"name": "SGD", "eta": self.eta, "momentum": self.momentum}


class Adam:
    """Adam with bias correction; complex gradients use ``|g|^2`` for the second moment."""

    def __init__(
        self,
        eta: float = 1.0e-3,
        beta1: float = 0.9,
        beta2: float = 0.999,
        eps: float = 1.0e-8,
    ) -> None:
        if eta <= 0.0:
            raise ValueError("eta must be > 0")
        if not (0.0 <= beta1 < 1.0 and 0.0 <= beta2 < 1.0):
            raise ValueError("beta1 and beta2 must lie in [0, 1)")
        self.eta = eta
        self.beta1 = beta1
        self.beta2 = beta2
        self.eps = eps
        self._t = 0
        self._m: ScalarArray | None = None
        self._v: np.ndarray | None = None

    def get_update(self, gradient: ScalarArray) -> ScalarArray:
        if self._m is None or self._v is None:
            self._m = np.zeros_like(gradient)
            self._v = np.zeros(gradient.shape, dtype=np.float64)

        self._t += 1
        self._m = self.beta1 * self._m + (1.0 - self.beta1) * gradient
        self._v = self.beta2 * self._v + (1.0 - self.beta2) * np.abs(gradient) ** 2

        m_hat = self._m / (1.0 - self.beta1 ** self._t)
        v_hat = self._v / (1.0 - self.beta2 ** self._t)
        return -self.eta * m_hat / (np.sqrt(v_hat) + self.eps)

    def params(self) -> dict[str, object]:
        return {
            "name": "Adam",
            "eta": self.eta,
            "beta1": self.beta1,
            "beta2": self.beta2,
            "eps": self.eps,
        }


def build_optimizer(config: OptimizerConfig) -> Optimizer:
    """Fresh optimizer (zeroed internal state) from its configuration."""

    if config.name == "adam":
        return Adam(eta=config.eta, beta1=config.beta1, beta2=config.beta2, eps=config.eps)
    return Sgd(eta=config.eta, momentum=config.momentum)
