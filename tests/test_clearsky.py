"""
Tests for the ClearSky container.
"""
import numpy as np
import pytest

from clearskies import csd_reno_hansen_2016 as rhcsd
from clearskies.clearsky import ClearSky


@pytest.fixture
def two_days():
    t = np.linspace(0, 2 * np.pi, 2880)
    predicted = np.clip(900. * np.sin(t), 0, None)
    return ClearSky(predicted=predicted, observed=predicted.copy(),
                    model="RS")


class TestConstruction:

    def test_arrays_are_converted(self):
        cs = ClearSky(predicted=[1, 2, 3], observed=[1, 2, 3],
                      clear=[1, 0, 1])
        assert cs.predicted.dtype == float
        assert cs.observed.dtype == float
        np.testing.assert_array_equal(cs.clear, [True, False, True])

    @pytest.mark.parametrize("observed", [["a", "b"], [True, False]])
    def test_observed_must_be_numeric(self, observed):
        with pytest.raises(TypeError, match="numeric"):
            ClearSky(predicted=[1., 2.], observed=observed)

    def test_time_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            ClearSky(predicted=[1., 2.], time_interval=0)


class TestClearPoints:

    def test_returns_copy_with_mask(self, two_days):
        result = two_days.clear_points(rhcsd.RENO_THRESHOLDS, 10)
        assert two_days.clear is None
        assert result is not two_days
        assert result.model == "RS"
        assert len(result.clear) == len(two_days.predicted)
        assert result.clear.all()

    def test_keyword_arguments_passed_on(self, two_days):
        result = two_days.clear_points(rhcsd.RENO_THRESHOLDS, 10, n_jobs=2)
        assert result.clear.all()

    def test_requires_observed(self):
        cs = ClearSky(predicted=np.ones(20))
        with pytest.raises(ValueError, match="observed"):
            cs.clear_points(rhcsd.RENO_THRESHOLDS, 10)

    def test_input_errors_propagate(self):
        cs = ClearSky(predicted=np.ones(20), observed=np.ones(19))
        with pytest.raises(rhcsd.LengthMismatch):
            cs.clear_points(rhcsd.RENO_THRESHOLDS, 10)


class TestSummary:

    def test_model_and_days(self, two_days):
        text = two_days.summary()
        assert "Model: RS" in text
        assert "2880 predicted points over 2 days" in text
        assert "Observed:" in text
        assert "Predicted:" in text
        assert "clear points" not in text

    def test_time_interval(self):
        cs = ClearSky(predicted=np.ones(300), time_interval=10)
        assert "300 predicted points over 2 days" in cs.summary()

    def test_without_observed(self):
        text = ClearSky(predicted=np.ones(10)).summary()
        assert "Observed:" not in text
        assert "Model: None" in text

    def test_percent_clear(self):
        cs = ClearSky(predicted=np.ones(4), observed=np.ones(4),
                      clear=[True, True, False, False])
        assert "Number of clear points: 2  Percent clear: 50%" in cs.summary()

    def test_percent_clear_is_rounded(self):
        cs = ClearSky(predicted=np.ones(3), clear=[True, False, False])
        assert "Percent clear: 33.33%" in cs.summary()


class TestPlot:

    @pytest.fixture(autouse=True)
    def agg_backend(self):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        yield
        plt.close("all")

    def test_predicted_only(self):
        ax = ClearSky(predicted=np.arange(10.)).plot()
        assert len(ax.get_lines()) == 1

    def test_with_clear_points(self, two_days):
        result = two_days.clear_points(rhcsd.RENO_THRESHOLDS, 10)
        ax = result.plot()
        labels = [line.get_label() for line in ax.get_lines()]
        assert labels == ["Predicted", "Observed", "Clear"]

    def test_no_predicted(self):
        with pytest.raises(ValueError, match="No predicted"):
            ClearSky(predicted=[]).plot()
