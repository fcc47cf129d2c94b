#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The Reno-Hansen clear-sky detection methodology.
A point of a measured irradiance time series is declared clear if at least
one rolling window containing it satisfies five criteria when compared with
the same window of a modelled clear-sky irradiance:
    1. difference of the window means
    2. difference of the window maxima
    3. difference of the line lengths
    4. difference of the normalized standard deviation of the slopes
    5. maximum deviation from the clear-sky slope

The clear-sky irradiance is a first guess which has to be supplied by the
caller (e.g. from pvlib or any other clear-sky model).

References
----------
Reno, M. J.; Hansen, C. W. and Stein, J. S. 2012.:
    Global Horizontal Irradiance Clear Sky Models: Implementation and
    Analysis. SANDIA report SAND2012-2389, pp. 28-36.

Reno, M. J. and Hansen, C. W. 2016.:
    Identification of periods of clear sky irradiance in time series of
    GHI measurements. Renewable Energy. 90, 520-531.

Inman et al. 2015:
    Inman, Rich H; Edson, James G and Coimbra, Carlos F M. 2015. Impact of
    local broadband turbidity estimation on forecasting of clear sky direct
    normal irradiance Solar Energy. 117, 125-138

"""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy.linalg import hankel

logger = logging.getLogger(__name__)


### Parameterisation
# Reno 2012 thresholds for 10 min windows (Table 3, pp. 34). Criteria 1-4 are
# differences measured - clear sky, criterion 5 is an absolute deviation.
RENO_MEAN_DIFF = 75.
RENO_MAX_DIFF = 75.
RENO_LOWER_LINE_LEN = -5.
RENO_UPPER_LINE_LEN = 10.
RENO_SIGMA_DIFF = 0.005
RENO_SLOPE_DEV = 8.
# the window length is as standard across the Reno variants at 10 samples
WINDOW_LENGTH = 10
# canonical order of the criteria, thresholds are matched by position only
CRITERIA_NAMES = ("mean", "max", "line_length", "sigma", "slope_deviation")
N_CRITERIA = len(CRITERIA_NAMES)
RENO_THRESHOLDS = ((-RENO_MEAN_DIFF, RENO_MEAN_DIFF),
                   (-RENO_MAX_DIFF, RENO_MAX_DIFF),
                   (RENO_LOWER_LINE_LEN, RENO_UPPER_LINE_LEN),
                   (-RENO_SIGMA_DIFF, RENO_SIGMA_DIFF),
                   (0., RENO_SLOPE_DEV))


class ClearSkyInputError(ValueError):
    """Invalid input to the clear-sky detection."""


class LengthMismatch(ClearSkyInputError):
    """Measured and predicted irradiance differ in length."""


class InvalidWindowLength(ClearSkyInputError):
    """Window length is not within 1 and the length of the series."""


class InvalidThresholdCount(ClearSkyInputError):
    """Thresholds do not contain exactly one range per criterion."""


class ScanCancelled(Exception):
    """
    The window scan was cancelled by the caller before it finished.
    No clear-sky mask is available for the cancelled call.
    """

    def __init__(self, position):
        super().__init__("Clear sky scan cancelled at window {}".format(position))
        self.position = position


def _check_series(measured, predicted, window_len):
    measured = np.asarray(measured, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    window_len = int(window_len)
    n = len(measured)
    if n != len(predicted):
        raise LengthMismatch("measured must be the same length as predicted")
    if window_len <= 0 or window_len > n:
        raise InvalidWindowLength("Incorrect value to window_len")
    return measured, predicted, window_len


def _check_thresholds(thresholds):
    if len(thresholds) != N_CRITERIA:
        raise InvalidThresholdCount(
            "Thresholds must be a sequence of length {}".format(N_CRITERIA))


def line_length(irradiance):
    """
    Line length of an irradiance window (criterion 3).

    L = sum( sqrt( (GHI_(i+1) - GHI_i)^2 + (t_(i+1) - t_i)^2 ) )

    The time step between samples is always 1. A window with a single
    sample has no consecutive pairs and a line length of 0.
    """
    irradiance = np.asarray(irradiance, dtype=float)
    return float(np.sum(np.sqrt(np.diff(irradiance)**2 + 1)))


def sigma(irradiance):
    """
    Normalized standard deviation of the slope between sequential points
    (criterion 4).

    sigma = std(s) / mean(GHI), with s_i = GHI_(i+1) - GHI_i and std being
    the sample standard deviation (normalization by N-1).

    Returns 0 if the result is not finite, e.g. for a window mean of 0 or
    for windows with fewer than two slopes.
    """
    irradiance = np.asarray(irradiance, dtype=float)
    slope = np.diff(irradiance)
    if len(slope) < 2:
        return 0.
    with np.errstate(divide='ignore', invalid='ignore'):
        slope_nstd = np.std(slope, ddof=1) / np.mean(irradiance)
    if not np.isfinite(slope_nstd):
        # catch division by 0
        return 0.
    return float(slope_nstd)


def max_slope_deviation(measured, predicted):
    """
    Maximum deviation of the measured irradiance from the clear-sky slope
    (criterion 5).

    S = max( |s_i - d_i| ), with s_i = GHI_(i+1) - GHI_i and
    d_i = GHIcs_(i+1) - GHIcs_i.
    """
    deviation = np.abs(np.diff(np.asarray(measured, dtype=float))
                       - np.diff(np.asarray(predicted, dtype=float)))
    if deviation.size == 0:
        return 0.
    return float(np.max(deviation))


def calculate_criteria(measured, predicted):
    """
    Calculate the five clear-sky criteria of one window.

    Parameters
    ----------
    measured : array, float
        Measured irradiance of the window.
    predicted : array, float
        Clear-sky irradiance of the window. Should be the same length as
        measured, this is not checked.

    Returns
    -------
    criteria : array, float
        mean difference, max difference, line length difference,
        sigma difference and max slope deviation, in this order.

    """
    measured = np.asarray(measured, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    return np.array([np.mean(measured) - np.mean(predicted),
                     np.max(measured) - np.max(predicted),
                     line_length(measured) - line_length(predicted),
                     sigma(measured) - sigma(predicted),
                     max_slope_deviation(measured, predicted)])


def evaluate_criteria(criteria, thresholds):
    """
    Check if all criteria are within their threshold ranges, inclusive.
    The smallest and largest value of each range are used as bounds.
    Criteria are compared to thresholds by position, not by name, so the
    thresholds have to follow the order of CRITERIA_NAMES.
    """
    for criterion, bounds in zip(criteria, thresholds):
        if criterion < np.min(bounds) or criterion > np.max(bounds):
            return False
    return True


def _scan_windows(measured, predicted, thresholds, window_len, positions,
                  cancel_event=None):
    clear = np.zeros(len(measured), dtype=bool)
    for p in positions:
        if cancel_event is not None and cancel_event.is_set():
            raise ScanCancelled(int(p))
        criteria = calculate_criteria(measured[p:p + window_len],
                                      predicted[p:p + window_len])
        if evaluate_criteria(criteria, thresholds):
            # mark the window clear, never reset points found clear before
            clear[p:p + window_len] = True
    return clear


def clear_points(measured, predicted, thresholds, window_len=WINDOW_LENGTH,
                 cancel_event=None, n_jobs=1):
    """
    Clear-sky detection from a rolling window and five clear-sky criteria.
    A point is declared clear if it is determined to be clear in at least
    one window containing it.

    Parameters
    ----------
    measured : array, float
        Measured irradiance, e.g. GHI.
    predicted : array, float
        Clear-sky irradiance from a clear-sky model, same length as measured.
    thresholds : sequence
        One range per criterion, in the order of CRITERIA_NAMES (mean, max,
        line length, sigma, slope deviation). Each range holds two or more
        values, its minimum and maximum are used as inclusive bounds.
        RENO_THRESHOLDS holds the Reno 2012 values for 10 min windows.
    window_len : int
        Number of samples per window, 1 <= window_len <= len(measured).
    cancel_event : threading.Event, optional
        Checked once per window. If set, the scan stops and ScanCancelled
        is raised.
    n_jobs : int, optional
        Number of worker threads the windows are distributed on. The result
        does not depend on it.

    Returns
    -------
    clear : array, bool
        Same length as measured. "True" means the point is clear.

    Raises
    ------
    LengthMismatch, InvalidWindowLength, InvalidThresholdCount
        On invalid input, before any window is processed.
    ScanCancelled
        If cancel_event was set during the scan.

    """
    measured, predicted, window_len = _check_series(measured, predicted,
                                                    window_len)
    _check_thresholds(thresholds)

    n_windows = len(measured) - window_len + 1
    logger.debug("Scanning %d windows of length %d", n_windows, window_len)
    try:
        if n_jobs is None or n_jobs <= 1 or n_windows < 2:
            clear = _scan_windows(measured, predicted, thresholds, window_len,
                                  range(n_windows), cancel_event)
        else:
            clear = _scan_windows_parallel(measured, predicted, thresholds,
                                           window_len, n_jobs, cancel_event)
    except ScanCancelled as e:
        logger.info("Clear sky scan cancelled at window %d of %d",
                    e.position, n_windows)
        raise
    logger.debug("%d of %d points clear", np.count_nonzero(clear), len(clear))
    return clear


def _scan_windows_parallel(measured, predicted, thresholds, window_len,
                           n_jobs, cancel_event=None):
    n_windows = len(measured) - window_len + 1
    n_jobs = min(int(n_jobs), n_windows)
    chunks = np.array_split(np.arange(n_windows), n_jobs)
    logger.debug("Distributing %d windows on %d workers", n_windows, n_jobs)
    with ThreadPoolExecutor(max_workers=n_jobs) as executor:
        futures = [executor.submit(_scan_windows, measured, predicted,
                                   thresholds, window_len, chunk,
                                   cancel_event)
                   for chunk in chunks]
        partial = [future.result() for future in futures]
    # partial masks only ever hold True for clear windows, merge order
    # does not matter
    return np.logical_or.reduce(partial)


def _calculate_statistics(irradiance, window_len):
    """
    Calculate statistics of all windows for use in the Reno criteria.

    Parameters
    ----------
    irradiance : array, float
        Irradiance time series.
    window_len : int
        Number of samples per window.

    Returns
    -------
    i_mean : array, float
        Window means.
    i_max : array, float
        Window maxima.
    i_diff : array, float
        Slopes within each window, shape (n_windows, window_len - 1).
    i_slope_nstd : array, float
        Normalized standard deviation of the slopes, 0 where not finite.
    i_line_length : array, float
        Line length of each window.

    """
    # produce a Hankel matrix as defined by window_len. Each row holds the
    # "window" starting at the time step of the row. Rows running over the
    # end of the series are padded with nan, only complete windows are kept.
    n_windows = len(irradiance) - window_len + 1
    i_window = hankel(irradiance, [np.nan]*window_len)[:n_windows]

    i_mean = np.mean(i_window, axis=1) # mean is taken on a row wise basis
    i_max = np.max(i_window, axis=1)
    # diff reduces the window size by 1 due to delta between
    i_diff = np.diff(i_window, axis=1)
    i_line_length = np.sum(np.sqrt(i_diff**2 + 1), axis=1)

    # row wise standard deviation. pass ddof=1 for normalization by N-1,
    # which needs at least two slopes per window
    i_slope_nstd = np.zeros(n_windows)
    if window_len > 2:
        with np.errstate(divide='ignore', invalid='ignore'):
            i_slope_nstd = np.std(i_diff, axis=1, ddof=1) / i_mean
        i_slope_nstd[~np.isfinite(i_slope_nstd)] = 0.
    return i_mean, i_max, i_diff, i_slope_nstd, i_line_length


def calculate_window_criteria(measured, predicted, window_len=WINDOW_LENGTH):
    """
    Calculate the five clear-sky criteria for every window at once.

    Returns
    -------
    criteria : array, float
        Shape (len(measured) - window_len + 1, 5). Row p holds the criteria
        of the window starting at sample p, columns follow CRITERIA_NAMES.

    """
    measured, predicted, window_len = _check_series(measured, predicted,
                                                    window_len)
    meas_mean, meas_max, meas_slope, meas_slope_nstd, meas_line_length = \
        _calculate_statistics(measured, window_len)
    clear_mean, clear_max, clear_slope, clear_slope_nstd, clear_line_length = \
        _calculate_statistics(predicted, window_len)

    if window_len > 1:
        slope_dev = np.max(np.abs(meas_slope - clear_slope), axis=1)
    else:
        slope_dev = np.zeros(len(meas_mean))

    return np.column_stack((meas_mean - clear_mean,
                            meas_max - clear_max,
                            meas_line_length - clear_line_length,
                            meas_slope_nstd - clear_slope_nstd,
                            slope_dev))


def clear_windows(criteria, thresholds):
    """
    Evaluate a matrix of window criteria, as returned by
    calculate_window_criteria, against the thresholds.

    Returns
    -------
    clear : array, bool
        One value per window, "True" if all criteria are within range.

    """
    _check_thresholds(thresholds)
    criteria = np.atleast_2d(criteria)
    lower = np.array([np.min(bounds) for bounds in thresholds])
    upper = np.array([np.max(bounds) for bounds in thresholds])
    return ~np.any((criteria < lower) + (criteria > upper), axis=1)


def clear_points_vectorized(measured, predicted, thresholds,
                            window_len=WINDOW_LENGTH):
    """
    Same as clear_points, but all windows are evaluated at once. Faster for
    long time series, needs memory for (n_windows x window_len) matrices and
    can not be cancelled.
    """
    measured, predicted, window_len = _check_series(measured, predicted,
                                                    window_len)
    _check_thresholds(thresholds)
    criteria = calculate_window_criteria(measured, predicted, window_len)
    csd_window = clear_windows(criteria, thresholds)
    # a point is covered by the windows starting at most window_len-1 samples
    # before it, so the full convolution counts its clear windows
    n_clear = np.convolve(csd_window.astype(int),
                          np.ones(window_len, dtype=int))
    clear = n_clear > 0
    logger.debug("%d of %d points clear", np.count_nonzero(clear), len(clear))
    return clear


def rmse(x, y):
    """
    Root mean squared error between x and y.
    Lengths are not checked.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    return float(np.sqrt(np.mean((x - y)**2)))
