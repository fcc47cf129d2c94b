#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Container for a clear-sky model run together with the observed irradiance
and the detected clear points.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
import pandas as pd

from clearskies import csd_reno_hansen_2016 as rhcsd

logger = logging.getLogger(__name__)

# minutes per day, used to count the days covered by the predicted series
MINUTES_PER_DAY = 1440


@dataclass(eq=False)
class ClearSky:
    """
    Clear-sky irradiance of a model, optionally with the corresponding
    observed irradiance and the clear-sky detection result.

    Attributes
    ----------
    predicted : array, float
        Clear-sky irradiance predicted by the model.
    observed : array, float, optional
        Measured irradiance, same length as predicted.
    model : str, optional
        Name of the clear-sky model.
    time_interval : int
        Minutes between two samples.
    clear : array, bool, optional
        Clear-sky detection, "True" means the sample is clear.
    """
    predicted: np.ndarray
    observed: Optional[np.ndarray] = None
    model: Optional[str] = None
    time_interval: int = 1
    clear: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.predicted is not None:
            self.predicted = np.asarray(self.predicted, dtype=float)
        if self.observed is not None:
            observed = np.asarray(self.observed)
            if observed.dtype == bool or not np.issubdtype(observed.dtype,
                                                           np.number):
                raise TypeError("observed must be numeric")
            self.observed = observed.astype(float)
        if self.clear is not None:
            self.clear = np.asarray(self.clear, dtype=bool)
        if self.time_interval <= 0:
            raise ValueError("time_interval must be positive")

    def clear_points(self, thresholds=rhcsd.RENO_THRESHOLDS,
                     window_len=rhcsd.WINDOW_LENGTH, **kwargs):
        """
        Run the clear-sky detection on observed and predicted irradiance.
        Keyword arguments are passed on to csd_reno_hansen_2016.clear_points.

        Returns
        -------
        ClearSky
            A copy with the clear attribute set.
        """
        if self.observed is None:
            raise ValueError("No observed irradiance to detect clear points")
        logger.debug("Detecting clear points of model %s", self.model)
        clear = rhcsd.clear_points(self.observed, self.predicted,
                                   thresholds, window_len, **kwargs)
        return replace(self, clear=clear)

    def summary(self):
        """Text summary of the model run and the detected clear points."""
        day_length = MINUTES_PER_DAY / self.time_interval
        n = len(self.predicted)
        number_days = int(n // day_length)

        lines = ["Model: {}".format(self.model),
                 "{} predicted points over {} days".format(n, number_days),
                 ""]
        if self.observed is not None and len(self.observed):
            lines += ["Observed:",
                      pd.Series(self.observed).describe().to_string(),
                      ""]
        lines += ["Predicted:",
                  pd.Series(self.predicted).describe().to_string(),
                  ""]
        if self.clear is not None and len(self.clear):
            avg = round(float(np.mean(self.clear)), 4)
            lines.append("Number of clear points: {}  Percent clear: {:g}%"
                         .format(np.count_nonzero(self.clear), avg * 100))
        return "\n".join(lines)

    def plot(self, ax=None):
        """
        Plot predicted and observed irradiance over the sample index.
        Clear points are drawn on top of the observed irradiance.

        Requires matplotlib.
        """
        import matplotlib.pyplot as plt

        if self.predicted is None or not len(self.predicted):
            raise ValueError("No predicted model to plot")
        if ax is None:
            _, ax = plt.subplots()

        # bring clear points to the forefront
        clear_alpha = 0.8
        alpha = clear_alpha * 0.35

        ix = np.arange(len(self.predicted))
        ax.plot(ix, self.predicted, 'c', alpha=alpha, lw=1.5,
                label='Predicted')
        if self.observed is not None:
            ax.plot(ix, self.observed, 'r', alpha=alpha, lw=1.5,
                    label='Observed')
            if self.clear is not None:
                ax.plot(ix[self.clear], self.observed[self.clear], 'r.',
                        alpha=clear_alpha, label='Clear')
        ax.set_ylabel('GHI [Wm-2]')
        ax.grid(True)
        ax.legend()
        return ax
