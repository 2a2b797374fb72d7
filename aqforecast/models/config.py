"""Forecaster hyperparameters."""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

ARCHITECTURES = ("dense", "linear", "recurrent")


@dataclass
class ForecasterConfig:
    """
    Hyperparameters of a forecaster.

    Attributes:
        architecture: One of 'dense', 'linear', 'recurrent'
        epochs: Number of training epochs (> 0)
        batch_size: Training batch size (> 0)
        learning_rate: Adam learning rate
        seed: Optional random seed for reproducible initialisation
    """
    architecture: str = "dense"
    epochs: int = 50
    batch_size: int = 32
    learning_rate: float = 0.001
    seed: Optional[int] = None

    def __post_init__(self):
        if self.architecture not in ARCHITECTURES:
            raise ValueError(
                f"Unknown architecture: {self.architecture}. Supported architectures are: {list(ARCHITECTURES)}"
            )
        if int(self.epochs) <= 0:
            raise ValueError(f"epochs must be positive, got {self.epochs}")
        if int(self.batch_size) <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if float(self.learning_rate) <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        self.epochs = int(self.epochs)
        self.batch_size = int(self.batch_size)
        self.learning_rate = float(self.learning_rate)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForecasterConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
