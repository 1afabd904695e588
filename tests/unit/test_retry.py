from unittest.mock import Mock, patch

import pytest

from coursify.utils.retry import retry_call


@pytest.mark.unit
class TestRetryCall:
    def test_returns_first_success(self):
        func = Mock(return_value=42)

        assert retry_call(func, 1, key="v") == 42
        func.assert_called_once_with(1, key="v")

    def test_retries_listed_exceptions(self):
        func = Mock(side_effect=[FileNotFoundError("gone"), ValueError("bad"), "ok"])

        with patch("coursify.utils.retry.time.sleep") as mock_sleep:
            result = retry_call(func, attempts=3, delay=0.05, exceptions=(FileNotFoundError, ValueError))

        assert result == "ok"
        assert func.call_count == 3
        mock_sleep.assert_called_with(0.05)
        assert mock_sleep.call_count == 2

    def test_reraises_last_error(self):
        func = Mock(side_effect=[ValueError("first"), ValueError("last")])

        with patch("coursify.utils.retry.time.sleep"):
            with pytest.raises(ValueError, match="last"):
                retry_call(func, attempts=2, exceptions=(ValueError,))

    def test_other_exceptions_are_not_retried(self):
        func = Mock(side_effect=KeyError("nope"))

        with patch("coursify.utils.retry.time.sleep") as mock_sleep:
            with pytest.raises(KeyError):
                retry_call(func, attempts=3, exceptions=(ValueError,))

        func.assert_called_once()
        mock_sleep.assert_not_called()

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValueError, match="attempts"):
            retry_call(Mock(), attempts=0)
