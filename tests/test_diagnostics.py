"""
Tests for diagnostic classification, including property-based checks.
"""
import pytest
from hypothesis import given, settings, strategies as st

from crowdfund_sdk.diagnostics import (
    classify_confirmation_failure, classify_signer_error, classify_simulation_error,
    confirmation_timeout, is_user_rejection,
)
from crowdfund_sdk.exceptions import ErrorKind

# Text that cannot accidentally contain any of the known markers
noise = st.text(alphabet="xyzqwXYZ0123456789 :#()", max_size=40)


@settings(max_examples=100)
@given(prefix=noise, suffix=noise, marker=st.sampled_from(["campaign has ended", "deadline"]))
def test_campaign_ended_markers(prefix, suffix, marker):
    error = classify_simulation_error(prefix + marker + suffix)
    assert error.kind == ErrorKind.CAMPAIGN_ENDED


@settings(max_examples=100)
@given(prefix=noise, suffix=noise)
def test_goal_not_reached_marker(prefix, suffix):
    error = classify_simulation_error(f"{prefix}goal not reached{suffix}")
    assert error.kind == ErrorKind.GOAL_NOT_REACHED


@settings(max_examples=100)
@given(prefix=noise, suffix=noise)
def test_already_claimed_marker(prefix, suffix):
    error = classify_simulation_error(f"{prefix}already claimed{suffix}")
    assert error.kind == ErrorKind.CONTRACT_ERROR
    assert error.message == "Funds have already been claimed."


@settings(max_examples=100)
@given(diagnostic=noise)
def test_unmatched_diagnostic_falls_back_to_contract_error(diagnostic):
    error = classify_simulation_error(diagnostic)
    assert error.kind == ErrorKind.CONTRACT_ERROR
    assert error.details == (diagnostic or "Simulation failed")


def test_campaign_ended_takes_precedence():
    error = classify_simulation_error("deadline passed and goal not reached")
    assert error.kind == ErrorKind.CAMPAIGN_ENDED


def test_goal_and_ended_messages_differ():
    ended = classify_simulation_error("campaign has ended")
    goal = classify_simulation_error("goal not reached")
    assert ended.message != goal.message


def test_missing_simulation_diagnostic():
    error = classify_simulation_error(None)
    assert error.kind == ErrorKind.CONTRACT_ERROR
    assert error.message == "Simulation failed"


@settings(max_examples=100)
@given(
    prefix=noise,
    suffix=noise,
    phrase=st.sampled_from(["declined", "rejected", "cancel", "denied"]),
    upper=st.booleans(),
)
def test_signer_rejection_phrases(prefix, suffix, phrase, upper):
    message = prefix + (phrase.upper() if upper else phrase) + suffix
    error = classify_signer_error(message)
    assert error.kind == ErrorKind.TRANSACTION_REJECTED
    assert error.details == message
    assert is_user_rejection(message)


@settings(max_examples=100)
@given(message=noise)
def test_signer_failures_are_always_rejected(message):
    error = classify_signer_error(message)
    assert error.kind == ErrorKind.TRANSACTION_REJECTED
    assert error.details == message


@pytest.mark.parametrize("detail, kind", [
    ("Insufficient balance", ErrorKind.INSUFFICIENT_BALANCE),
    ("trustline balance underfunded", ErrorKind.INSUFFICIENT_BALANCE),
    ("INSUFFICIENT", ErrorKind.INSUFFICIENT_BALANCE),
    ("txFAILED", ErrorKind.CONTRACT_ERROR),
    ("", ErrorKind.CONTRACT_ERROR),
    (None, ErrorKind.CONTRACT_ERROR),
])
def test_confirmation_failure(detail, kind):
    assert classify_confirmation_failure(detail).kind == kind


def test_confirmation_timeout_warning():
    warning = confirmation_timeout("abc123")
    assert warning.kind == ErrorKind.NETWORK_ERROR
    assert warning.details == "abc123"
    assert "block explorer" in warning.message
