"""
# Clear sky detection...
... using the Reno-Hansen (2016) algorithm.

This algorithm requires a clear sky first guess.
Here, the [python-pvlib](https://pvlib-python.readthedocs.io/en/stable/)
package is used to do this, so its required to run this example.
Any other clear sky model works as well, as long as it returns a clear sky
irradiance for every measured sample.

To keep the example self contained, the "measurement" is the pvlib clear
sky irradiance with some noise and a few synthetic clouds.
"""

import logging

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from clearskies import csd_reno_hansen_2016 as rhcsd
from clearskies.clearsky import ClearSky

logging.basicConfig(level=logging.DEBUG)


def get_clearsky_pvlib(times, latitude, longitude, altitude):
    from pvlib.location import Location
    loc = Location(latitude, longitude, 'UTC', altitude)
    return loc.get_clearsky(times).ghi.values


def synthetic_measurement(ghics, seed=1):
    rng = np.random.default_rng(seed)
    ghi = ghics + rng.normal(0, 2, len(ghics))
    # broken clouds in the afternoon
    for start in rng.integers(len(ghi)//2, len(ghi) - 60, 8):
        ghi[start:start+rng.integers(5, 40)] *= rng.uniform(0.2, 0.7)
    return np.clip(ghi, 0, None)


# 1 min resolution is required for the 10 min window thresholds
times = pd.date_range("2019-07-16", periods=1440, freq="1min", tz="UTC")
ghics = get_clearsky_pvlib(times, 51.35, 12.43, 125)
ghi = synthetic_measurement(ghics)

CS = ClearSky(predicted=ghics, observed=ghi, model="Ineichen",
              time_interval=1)
CS = CS.clear_points(rhcsd.RENO_THRESHOLDS, rhcsd.WINDOW_LENGTH)
print(CS.summary())
print("RMSE clear points: {:.2f} Wm-2".format(
    rhcsd.rmse(ghi[CS.clear], ghics[CS.clear])))

ax = CS.plot()
ax.set_xlabel('minute of day [UTC]')
plt.tight_layout()
plt.savefig("csd_pvlib.png")
