"""Trainers estimating the parameters of machines from data."""
from .em import EMTrainer, EMTrainerConfig
from .kmeans import KMeansTrainer, KMeansTrainerConfig

__all__ = ["EMTrainer", "EMTrainerConfig", "KMeansTrainer", "KMeansTrainerConfig"]
