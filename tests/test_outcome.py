from uuid import uuid4

import pytest

from versioned_upsert import (
    Proposal,
    UpsertResult,
    WriteFailure,
    WriteOutcome,
    classify_rows_affected,
)


def _proposal(version: int = 3) -> Proposal:
    return Proposal(id=uuid4(), name="First event", version=version)


def test_zero_rows_is_no_op():
    assert classify_rows_affected(0) is WriteOutcome.NO_OP


@pytest.mark.parametrize("rows", [1, 2, 3, -1])
def test_any_nonzero_count_is_applied(rows):
    # 1 = insert, 2 = MySQL "changed update", -1 = driver could not tell
    assert classify_rows_affected(rows) is WriteOutcome.APPLIED


def test_success_follows_outcome():
    proposal = _proposal()
    assert UpsertResult(proposal, WriteOutcome.APPLIED, 1).success
    assert UpsertResult(proposal, WriteOutcome.NO_OP, 0).success
    assert not UpsertResult(
        proposal, WriteOutcome.FAILED, None, WriteFailure("boom")
    ).success


def test_result_is_immutable():
    result = UpsertResult(_proposal(), WriteOutcome.APPLIED, 1)
    with pytest.raises(AttributeError):
        result.outcome = WriteOutcome.NO_OP  # type: ignore[misc]


def test_describe_distinguishes_uncommitted_write():
    proposal = _proposal(7)
    uncommitted = UpsertResult(proposal, WriteOutcome.FAILED, 1, WriteFailure("lost"))
    never_written = UpsertResult(
        proposal, WriteOutcome.FAILED, None, WriteFailure("refused")
    )

    assert "but not committed" in uncommitted.describe()
    assert never_written.describe() == "Version 7 failed: refused"
    assert UpsertResult(proposal, WriteOutcome.APPLIED, 2).describe() == (
        "Version 7 inserted / updated"
    )
    assert ">= 7" in UpsertResult(proposal, WriteOutcome.NO_OP, 0).describe()
