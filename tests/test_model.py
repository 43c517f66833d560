import numpy as np
import pytest

import pheno_tools.model as model_module
from pheno_tools.data import PhenologyData
from pheno_tools.model import (
    NOT_REACHED,
    PhenologyModel,
    ThermalTime,
    estimate_phenology,
    get_model,
    list_models,
    register_model,
    threshold_date,
)
from pheno_tools.utils.errors import ConfigurationError, UnknownModelError


def _constant(T=15.0, L=12.0, n_days=30, n_records=2):
    return PhenologyData(
        doy=np.arange(1, n_days + 1),
        transition_dates=np.full(n_records, 10.0),
        Ti=np.full((n_days, n_records), T),
        Li=np.full((n_days, n_records), L),
    )


def test_model_inheritance():
    assert issubclass(ThermalTime, PhenologyModel)


def test_reference_models_are_registered():
    assert list_models() == ["NULL", "LIN", "TT", "TTs", "PTT", "PTTs", "M1", "M1s", "AT"]
    assert get_model("M1").param_names == ("t0", "T_base", "k", "F_crit")


def test_unknown_model_raises():
    with pytest.raises(UnknownModelError) as exc:
        get_model("XYZ")
    assert "Unknown model 'XYZ'" in str(exc.value)
    assert isinstance(exc.value, ConfigurationError)
    assert isinstance(exc.value, KeyError)


def test_wrong_parameter_count_raises():
    with pytest.raises(ValueError):
        estimate_phenology(_constant(), "TT", [1, 5])


def test_threshold_date():
    rate = np.ones((10, 1))
    doy = np.arange(1, 11)

    # accumulation starts on day 3 and first exceeds 2.5 on day 5
    assert threshold_date(rate, doy, 3, 2.5).tolist() == [5.0]
    assert threshold_date(rate, doy, 3, 50).tolist() == [NOT_REACHED]


def test_thermal_time_constant_temperature():
    # 10 degree days per day, 95 exceeded on the tenth day
    predicted = estimate_phenology(_constant(), "TT", [1, 5, 95])
    assert predicted.tolist() == [10.0, 10.0]


def test_photothermal_time_full_daylength_equals_thermal_time():
    data = _constant(L=24.0)
    assert np.array_equal(
        estimate_phenology(data, "PTT", [1, 5, 95]),
        estimate_phenology(data, "TT", [1, 5, 95]),
    )


def test_m1_with_zero_exponent_equals_thermal_time():
    data = _constant(L=8.0)
    assert np.array_equal(
        estimate_phenology(data, "M1", [1, 5, 0, 95]),
        estimate_phenology(data, "TT", [1, 5, 95]),
    )


def test_sigmoid_models_saturate_without_warnings():
    data = _constant(T=-1000.0)
    with np.errstate(all="raise"):
        predicted = estimate_phenology(data, "TTs", [1, 2, 10, 5])
    assert (predicted == NOT_REACHED).all()


def test_alternating_model_without_chilling_response():
    # c = 0 gives a constant requirement a + b
    predicted = estimate_phenology(_constant(), "AT", [1, 5, 50, 45, 0])
    assert predicted.tolist() == [10.0, 10.0]


def test_null_model_predicts_rounded_mean():
    data = PhenologyData(
        doy=np.arange(1, 4),
        transition_dates=[100.0, 101.0, np.nan, 103.0],
        Ti=np.zeros((3, 4)),
        Li=np.zeros((3, 4)),
    )
    assert estimate_phenology(data, "NULL", []).tolist() == [101.0] * 4


def test_linear_model_uses_spring_mean():
    data = _constant(T=4.0, n_days=120)
    assert estimate_phenology(data, "LIN", [-2, 130]).tolist() == [122.0, 122.0]


def test_register_model(monkeypatch):
    monkeypatch.setattr(model_module, "_models", dict(model_module._models))

    class Constant(PhenologyModel):
        name = "CONST"
        param_names = ("doy",)

        def predict(self, par, data):
            return np.full(data.n_records, par[0])

    register_model(Constant())
    assert "CONST" in list_models()
    assert estimate_phenology(_constant(), "CONST", [42]).tolist() == [42.0, 42.0]

    with pytest.raises(TypeError):
        register_model(object())
