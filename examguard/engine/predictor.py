"""
ExamGuard Engine - Base Predictor Class

Handles inference logic with preprocessing, inference, and postprocessing.
"""

import time
from abc import ABC, abstractmethod
from typing import Any

from examguard.cfg import BaseConfig
from examguard.engine.results import Results


class BasePredictor(ABC):
    """
    Base class for all predictors.

    Predictors handle the inference pipeline:
    1. preprocess() - Prepare input data
    2. inference() - Run the heuristic or model
    3. postprocess() - Turn raw outputs into a Results object

    Each stage is timed into ``Results.speed``.

    Attributes:
        cfg: Configuration for prediction
    """

    def __init__(self, cfg: BaseConfig):
        """
        Initialize predictor.

        Args:
            cfg: Predictor configuration
        """
        self.cfg = cfg
        self._callbacks = {}

    @abstractmethod
    def preprocess(self, source: Any) -> Any:
        """
        Preprocess input before inference.

        Args:
            source: Raw input (frame sample, image, ...)

        Returns:
            Preprocessed input
        """

    @abstractmethod
    def inference(self, data: Any) -> Any:
        """
        Run inference.

        Args:
            data: Preprocessed input

        Returns:
            Raw outputs
        """

    @abstractmethod
    def postprocess(self, preds: Any, source: Any) -> Results:
        """
        Postprocess raw outputs.

        Args:
            preds: Raw predictions
            source: Original input for reference

        Returns:
            Results object with processed predictions
        """

    def __call__(self, source: Any, **kwargs) -> Results:
        """
        Run full prediction pipeline.

        Args:
            source: Input source
            **kwargs: Additional arguments

        Returns:
            Prediction results
        """
        t0 = time.perf_counter()
        preprocessed = self.preprocess(source)
        t1 = time.perf_counter()
        preds = self.inference(preprocessed)
        t2 = time.perf_counter()
        results = self.postprocess(preds, source)
        t3 = time.perf_counter()

        results.speed = {
            "preprocess": (t1 - t0) * 1000,
            "inference": (t2 - t1) * 1000,
            "postprocess": (t3 - t2) * 1000,
        }
        self.run_callbacks("on_predict_end", results)
        return results

    def add_callback(self, event: str, callback):
        """Add callback for an event."""
        if event not in self._callbacks:
            self._callbacks[event] = []
        self._callbacks[event].append(callback)

    def run_callbacks(self, event: str, *args, **kwargs):
        """Run all callbacks for an event."""
        for callback in self._callbacks.get(event, []):
            callback(*args, **kwargs)
