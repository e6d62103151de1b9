"""Translate service outcomes into HTTP errors."""

from fastapi import HTTPException, status

from circdesk.domain.outcome import ErrorKind, Outcome

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.POLICY_VIOLATION: 422,
}


def raise_for_outcome(outcome: Outcome) -> None:
    """Raise an ``HTTPException`` carrying the reason code when ``outcome`` failed."""
    if outcome.ok:
        return
    raise HTTPException(
        status_code=_STATUS_BY_KIND[outcome.kind],
        detail={"reason": outcome.reason.value, "message": outcome.message},
    )
