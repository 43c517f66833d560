import numpy as np
import pytest

from pheno_tools.utils.errors import InsufficientDataError
from pheno_tools.utils.metric import aicc, null_rmse, rmse, valid_pairs


def test_rmse_zero_for_exact_match():
    assert rmse([120, 130, 125], [120, 130, 125]) == 0.0


def test_rmse_positive_for_any_difference():
    assert rmse([120, 130, 125], [120, 130, 126]) > 0


def test_rmse_ignores_missing_measurements():
    measured = np.array([120.0, np.nan, 131.0, 127.0])
    predicted = np.array([118.0, 140.0, 133.0, 127.0])
    assert rmse(measured, predicted) == pytest.approx(np.sqrt(8 / 3))


def test_rmse_without_measurements_raises():
    with pytest.raises(InsufficientDataError):
        rmse([np.nan, np.nan], [1, 2])


def test_valid_pairs_length_mismatch_raises():
    with pytest.raises(ValueError):
        valid_pairs([1, 2, 3], [1, 2])


def test_null_rmse_uses_rounded_mean():
    # mean 2.33 rounds to 2, residuals -1, 0, 2
    assert null_rmse([1.0, 2.0, 4.0, np.nan]) == pytest.approx(np.sqrt(5 / 3))


def test_aicc_components():
    measured = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0])
    predicted = measured + np.array([1, -1, 1, -1, 1, -1, 1])
    res = aicc(measured, predicted, k=2)

    assert res.n == 7
    assert res.rss == 7
    assert res.aic == pytest.approx(2 * 2 + 7 * np.log(1.0))
    assert res.correction == pytest.approx(2 * 2 * 3 / 4)
    assert res.aicc == pytest.approx(res.aic + res.correction)
    assert res.aicc >= res.aic


def test_aicc_correction_is_infinite_for_too_few_records():
    res = aicc([1.0, 2.0, 3.0], [1.5, 2.0, 3.5], k=3)
    assert np.isinf(res.correction)
    assert np.isinf(res.aicc)


def test_aicc_correction_shrinks_with_sample_size():
    rng = np.random.default_rng(0)

    def correction(n):
        measured = rng.normal(120, 10, n)
        return aicc(measured, measured + rng.normal(0, 3, n), k=3).correction

    small, large = correction(500), correction(5000)
    assert large < small
    assert large == pytest.approx(small / 10, rel=0.02)


def test_aicc_perfect_fit():
    res = aicc([1.0, 2.0, 3.0, 4.0, 5.0], [1.0, 2.0, 3.0, 4.0, 5.0], k=1)
    assert res.rss == 0
    assert res.aic == -np.inf


def test_aicc_perfect_fit_with_too_few_records():
    res = aicc([1.0, 2.0, 3.0], [1.0, 2.0, 3.0], k=3)
    assert res.aic == -np.inf
    assert res.aicc == np.inf
    assert res.aicc >= res.aic


def test_aicc_negative_k_raises():
    with pytest.raises(ValueError):
        aicc([1.0, 2.0], [1.0, 2.0], k=-1)
