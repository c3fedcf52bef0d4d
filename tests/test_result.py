import pytest

from sagatest import Err, Ok


def test_ok_outcome():
    outcome = Ok({"id": 1})

    assert not outcome.is_err()
    assert outcome.ok() == {"id": 1}
    assert outcome.err() is None
    assert outcome.unwrap() == {"id": 1}


def test_err_outcome_raises_on_unwrap():
    error = ValueError("boom")
    outcome = Err(error)

    assert outcome.is_err()
    assert outcome.ok() is None
    assert outcome.err() is error
    with pytest.raises(ValueError, match="boom"):
        outcome.unwrap()


def test_outcomes_compare_by_content():
    assert Ok(None) == Ok(None)
    assert Ok(1) != Ok(2)
