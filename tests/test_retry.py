import unittest

from support import PROJECT_ROOT  # noqa: F401

from mockmate.ai.retry import is_rate_limit_error, retry_delay_hint, retry_with_backoff
from mockmate.ai.types import AIProviderError


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FlakyCall:
    def __init__(self, failures, result="ok"):
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


class RateLimitDetectionTests(unittest.TestCase):
    def test_status_attribute(self):
        self.assertTrue(is_rate_limit_error(AIProviderError("Too many requests", status=429)))

    def test_quota_in_message(self):
        self.assertTrue(is_rate_limit_error(RuntimeError("RESOURCE_EXHAUSTED: Quota exceeded for metric")))

    def test_other_errors(self):
        self.assertFalse(is_rate_limit_error(AIProviderError("Bad request", status=400)))
        self.assertFalse(is_rate_limit_error(ValueError("boom")))

    def test_retry_hint_keeps_fractional_seconds(self):
        exc = AIProviderError("429 quota exceeded. Please retry in 13.456s.", status=429)
        self.assertAlmostEqual(retry_delay_hint(exc), 13.456)

    def test_no_hint(self):
        self.assertIsNone(retry_delay_hint(RuntimeError("429")))


class RetryWithBackoffTests(unittest.IsolatedAsyncioTestCase):
    async def test_two_rate_limits_then_success(self):
        call = FlakyCall([AIProviderError("429", status=429), AIProviderError("429", status=429)])
        sleep = RecordingSleep()

        result = await retry_with_backoff(call, 3, 1.0, sleep=sleep)

        self.assertEqual(result, "ok")
        self.assertEqual(call.calls, 3)
        self.assertEqual(sleep.delays, [1.0, 2.0])

    async def test_non_rate_limit_error_is_not_retried(self):
        call = FlakyCall([AIProviderError("invalid argument", status=400)])
        sleep = RecordingSleep()

        with self.assertRaises(AIProviderError):
            await retry_with_backoff(call, 3, 1.0, sleep=sleep)

        self.assertEqual(call.calls, 1)
        self.assertEqual(sleep.delays, [])

    async def test_server_retry_hint_wins_over_backoff(self):
        call = FlakyCall([AIProviderError("Quota exceeded, retry in 7s", status=429)])
        sleep = RecordingSleep()

        await retry_with_backoff(call, 3, 1.0, sleep=sleep)

        self.assertEqual(sleep.delays, [7.0])

    async def test_last_rate_limit_error_propagates(self):
        errors = [AIProviderError("429", status=429) for _ in range(3)]
        call = FlakyCall(errors)
        sleep = RecordingSleep()

        with self.assertRaises(AIProviderError) as ctx:
            await retry_with_backoff(call, 3, 0.5, sleep=sleep)

        self.assertEqual(ctx.exception.status, 429)
        self.assertEqual(call.calls, 3)
        self.assertEqual(sleep.delays, [0.5, 1.0])


if __name__ == "__main__":
    unittest.main()
