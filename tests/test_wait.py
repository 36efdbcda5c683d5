import time
import unittest
from unittest import mock

from src.testenv.errors import KubeError, WaitTimeoutError
from src.testenv.wait import poll_immediate


class _Countdown:
    def __init__(self, satisfied_after: int) -> None:
        self.satisfied_after = satisfied_after
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.calls > self.satisfied_after


class PollImmediateTests(unittest.TestCase):
    def test_first_attempt_has_no_delay(self) -> None:
        condition = _Countdown(0)
        with mock.patch("src.testenv.wait.time.sleep") as sleep:
            poll_immediate(1.0, 60.0, condition)
        self.assertEqual(condition.calls, 1)
        sleep.assert_not_called()

    def test_succeeds_after_k_intervals(self) -> None:
        condition = _Countdown(4)
        with mock.patch("src.testenv.wait.time.sleep") as sleep:
            poll_immediate(1.0, 60.0, condition)
        self.assertEqual(condition.calls, 5)
        self.assertEqual(sleep.call_count, 4)
        sleep.assert_called_with(1.0)

    def test_predicate_error_is_not_retried(self) -> None:
        calls = []

        def condition() -> bool:
            calls.append(1)
            raise KubeError("forbidden")

        with self.assertRaises(KubeError):
            poll_immediate(0.01, 5.0, condition)
        self.assertEqual(len(calls), 1)

    def test_timeout_never_fires_early(self) -> None:
        start = time.monotonic()
        with self.assertRaises(WaitTimeoutError):
            poll_immediate(0.01, 0.1, lambda: False)
        self.assertGreaterEqual(time.monotonic() - start, 0.1)

    def test_timeout_is_distinct_from_predicate_errors(self) -> None:
        self.assertFalse(issubclass(WaitTimeoutError, KubeError))

    def test_rejects_non_positive_interval(self) -> None:
        with self.assertRaises(ValueError):
            poll_immediate(0, 1.0, lambda: True)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
