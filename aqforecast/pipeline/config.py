"""Typed pipeline configuration."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..models.config import ForecasterConfig


@dataclass
class PipelineConfig:
    """
    Configuration of one training run.

    Attributes:
        target: Feature to forecast
        features: Input features of each window
        window_size: Observations per window
        training_ratio: Share of windows used for training; the rest validates
        forecaster: Forecaster hyperparameters
    """
    target: str
    features: List[str]
    window_size: int = 7
    training_ratio: float = 0.8
    forecaster: ForecasterConfig = field(default_factory=ForecasterConfig)

    def __post_init__(self):
        if not self.features:
            raise ValueError("Please select at least one input feature.")
        if int(self.window_size) < 1:
            raise ValueError(f"window_size must be positive, got {self.window_size}")
        if not 0 < float(self.training_ratio) <= 1:
            raise ValueError(f"training_ratio must be in (0, 1], got {self.training_ratio}")
        self.features = list(dict.fromkeys(self.features))
        self.window_size = int(self.window_size)
        self.training_ratio = float(self.training_ratio)

    @property
    def stat_features(self) -> List[str]:
        """Features that need statistics: inputs plus target."""
        return list(dict.fromkeys([*self.features, self.target]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": {
                "target": self.target,
                "features": list(self.features),
                "window_size": self.window_size,
                "training_ratio": self.training_ratio,
            },
            "forecaster": self.forecaster.to_dict(),
        }

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "PipelineConfig":
        """Build from the nested layout of ``config/pipeline.yaml``."""
        data = config.get("data", {})
        return cls(
            target=data["target"],
            features=list(data["features"]),
            window_size=data.get("window_size", 7),
            training_ratio=data.get("training_ratio", 0.8),
            forecaster=ForecasterConfig.from_dict(config.get("forecaster", {})),
        )
