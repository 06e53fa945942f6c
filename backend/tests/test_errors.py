"""
Error classification, retry policy and user-facing messages.
"""

import pytest

from homebake.errors import (
    backoff_delay,
    classify_error,
    error_body,
    is_network_error,
    is_retryable_error,
    status_for,
    success_message,
    user_message,
    with_retry,
)
from homebake.validation import ConflictError, NotFoundError, ValidationError


class TestClassification:

    @pytest.mark.parametrize("text,category", [
        ("Connection refused by host", "connection_failed"),
        ("Request timed out after 30s", "timeout"),
        ("getaddrinfo ENOTFOUND api.example", "dns_error"),
        ("429 Too Many Requests", "rate_limited"),
        ("503 Service Unavailable", "server_error"),
        ("401 Unauthorized", "unauthorized"),
        ("403 Forbidden", "forbidden"),
        ("Bread type not found", "not_found"),
        ("Invalid quantity", "validation_error"),
    ])
    def test_categories(self, text, category):
        assert classify_error(Exception(text)) == category

    def test_unknown_and_missing(self):
        assert classify_error(Exception("something odd")) is None
        assert classify_error(None) is None

    def test_retryable_only_for_transient_failures(self):
        assert is_retryable_error(Exception("connection reset by peer"))
        assert is_retryable_error(Exception("read timeout"))
        assert is_retryable_error(Exception("500 Internal Server Error"))
        assert not is_retryable_error(Exception("400 Bad Request"))
        assert not is_retryable_error(Exception("429 Too Many Requests"))
        assert not is_retryable_error(None)

    def test_rate_limit_is_network_but_not_retryable(self):
        err = Exception("rate limit exceeded")
        assert is_network_error(err)
        assert not is_retryable_error(err)

    def test_status_for_service_errors(self):
        assert status_for(NotFoundError("x")) == 404
        assert status_for(ConflictError("x")) == 409
        assert status_for(ValidationError("x")) == 400
        assert status_for(ValueError("x")) == 400
        assert status_for(RuntimeError("x")) == 500


class TestWithRetry:

    def test_retries_transient_errors_with_linear_backoff(self):
        sleeps = []
        attempts = []

        def operation():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("connection reset")
            return "ok"

        assert with_retry(operation, delay_seconds=0.5, sleep=sleeps.append) == "ok"
        assert len(attempts) == 3
        assert sleeps == [0.5, 1.0]

    def test_gives_up_after_max_attempts(self):
        sleeps = []

        def operation():
            raise TimeoutError("operation timed out")

        with pytest.raises(TimeoutError):
            with_retry(operation, max_attempts=3, delay_seconds=1, sleep=sleeps.append)
        assert sleeps == [1, 2]

    def test_exponential_backoff_doubles(self):
        sleeps = []

        def operation():
            raise ConnectionError("connection reset by peer")

        with pytest.raises(ConnectionError):
            with_retry(operation, max_attempts=5, delay_seconds=0.5, backoff="exponential", sleep=sleeps.append)
        assert sleeps == [0.5, 1.0, 2.0, 4.0]

    def test_backoff_is_capped(self):
        assert [backoff_delay(n, delay_seconds=10, backoff="exponential") for n in (1, 2, 3, 4)] == [10, 20, 30, 30]
        assert backoff_delay(5, delay_seconds=10, max_delay_seconds=25) == 25

    def test_unknown_backoff_mode(self):
        with pytest.raises(ValueError):
            backoff_delay(1, delay_seconds=1, backoff="random")

    def test_non_retryable_error_raises_immediately(self):
        sleeps = []
        attempts = []

        def operation():
            attempts.append(1)
            raise ValueError("invalid payload")

        with pytest.raises(ValueError):
            with_retry(operation, sleep=sleeps.append)
        assert len(attempts) == 1
        assert sleeps == []


class TestUserMessages:

    def test_success_message(self):
        msg = user_message("bread_type", "create", "success", name="Agege Loaf")
        assert msg.type == "success"
        assert msg.title == "Bread Type Created"
        assert msg.message == '"Agege Loaf" has been added.'

    def test_delete_success_is_shorter(self):
        assert user_message("batch", "delete", "success").duration == 4000

    def test_connection_error_is_retryable(self):
        msg = user_message("sale", "record", "error", error=Exception("network error"))
        assert msg.type == "error"
        assert "connection issue" in msg.message
        assert msg.retryable is True

    def test_rejected_input_carries_reason(self):
        msg = user_message("sale", "record", "error", error=ValidationError("Discount cannot exceed the sale total"))
        assert msg.title == "Failed to Record Sale"
        assert msg.message == "Could not record the sale: Discount cannot exceed the sale total"
        assert msg.retryable is False

    def test_error_body_and_success_message_shapes(self):
        body = error_body(ConflictError("duplicate name"), "bread_type", "create")
        assert body["error"] == "duplicate name"
        assert body["message"]["type"] == "error"

        message = success_message("invite", "delete")
        assert message == {
            "title": "Invite Removed",
            "message": "The invite has been deleted.",
            "type": "success",
            "duration": 4000,
            "retryable": False,
        }
