import pytest

from pitchengine.frequency_smoother import MedianSmoother, median
from pitchengine.settings import ConfigurationError


def push_all(smoother, values):
    result = None
    for value in values:
        result = smoother.push(value)
    return result


def test_median_of_constant_history():
    assert push_all(MedianSmoother(5), [100, 100, 100, 100, 100]) == 100


def test_zero_outlier_is_rejected():
    smoother = MedianSmoother(5)
    assert push_all(smoother, [100, 0, 100, 100, 100]) == 100
    # 0Hz も履歴には残る
    assert smoother.snapshot() == (100.0, 0.0, 100.0, 100.0, 100.0)


def test_even_count_averages_middle_pair():
    assert push_all(MedianSmoother(5), [90, 100]) == 95


def test_octave_error_does_not_drag_value():
    assert push_all(MedianSmoother(5), [220, 220, 440, 220, 110]) == 220


def test_capacity_and_fifo_eviction():
    smoother = MedianSmoother(5)
    for value in [1, 2, 3, 4, 5, 6]:
        smoother.push(value)
        assert len(smoother.history) <= 5

    assert smoother.snapshot() == (2.0, 3.0, 4.0, 5.0, 6.0)
    assert smoother.last_value == 4.0


def test_many_pushes_never_exceed_capacity():
    smoother = MedianSmoother(3)
    for i in range(100):
        smoother.push(float(i))
    assert len(smoother.history) == 3
    assert smoother.snapshot() == (97.0, 98.0, 99.0)


def test_window_of_one_is_unsmoothed():
    smoother = MedianSmoother(1)
    assert smoother.push(100.0) == 100.0
    assert smoother.push(0.0) == 0.0
    assert smoother.push(250.0) == 250.0


def test_reset_clears_history():
    smoother = MedianSmoother(5)
    push_all(smoother, [100, 200])
    smoother.reset()
    assert smoother.snapshot() == ()
    assert smoother.last_value == 0.0


def test_update_config_shrinks_keeping_newest():
    smoother = MedianSmoother(5)
    push_all(smoother, [10, 20, 30, 40, 50])

    smoother.update_config({"smoothing_window_size": 3})

    assert smoother.window_size == 3
    assert smoother.snapshot() == (30.0, 40.0, 50.0)
    assert smoother.last_value == 40.0


def test_update_config_grows():
    smoother = MedianSmoother(2)
    push_all(smoother, [10, 20, 30])
    smoother.update_config({"smoothing_window_size": 4})
    smoother.push(40)
    assert smoother.snapshot() == (20.0, 30.0, 40.0)


@pytest.mark.parametrize("size", [0, -3])
def test_invalid_window_size(size):
    with pytest.raises(ConfigurationError):
        MedianSmoother(size)


def test_median_function():
    assert median([]) == 0.0
    assert median([3.0]) == 3.0
    assert median([5.0, 1.0, 3.0]) == 3.0
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5


def test_median_does_not_reorder_input():
    values = [3.0, 1.0, 2.0]
    median(values)
    assert values == [3.0, 1.0, 2.0]


def test_median_accepts_any_iterable():
    assert median([]) == 0.0
    assert median(iter([3.0, 1.0, 2.0])) == 2.0
    assert median((v for v in [4.0, 1.0, 3.0, 2.0])) == 2.5
