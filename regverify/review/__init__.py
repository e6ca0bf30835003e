"""
RegVerify — Reviewer Decisions

A human reviewer moves an audited request to a terminal status:

  Audited ──approve──► approved   (business verified, metric +1)
     └─────reject────► rejected   (business stamped verificationRejectedAt)

The status transition is a conditional write: a request that already
carries a terminal status is never decided again.
"""
from fastapi import HTTPException

from regverify.auth import Identity
from regverify.config import STATUS_APPROVED, STATUS_REJECTED, TERMINAL_STATUSES
from regverify.db import (
    SERVER_TIMESTAMP, DocumentStore,
    audit_path, business_path, request_path,
)
from regverify.log import get_logger, log_operation
from regverify.metrics import increment_verification_completed

logger = get_logger("review")


def parse_decision(body) -> tuple:
    """JSON body -> (businessId, reqId, approve, note).

    Missing ids are None. The note is passed through as sent (None when
    absent); an empty note is still recorded on the audit review.
    """
    body = body if isinstance(body, dict) else {}
    business_id = body.get("businessId")
    req_id = body.get("reqId")
    return (
        business_id if isinstance(business_id, str) and business_id else None,
        req_id if isinstance(req_id, str) and req_id else None,
        body.get("approve") is True,
        body.get("note"),
    )


def _undecided(current) -> bool:
    return current is not None and current.get("status") not in TERMINAL_STATUSES


def decide_verification(store: DocumentStore, reviewer: Identity, business_id: str,
                        req_id: str, approve: bool, note: str = None) -> dict:
    if not business_id or not req_id:
        raise HTTPException(400, "businessId and reqId required")

    try:
        req_path = request_path(business_id, req_id)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if not store.exists(req_path):
        raise HTTPException(404, "Request not found")

    decision = {
        "status": STATUS_APPROVED if approve else STATUS_REJECTED,
        "decidedAt": SERVER_TIMESTAMP,
        "decidedBy": reviewer.uid,
    }
    if note:
        # Only a non-empty note lands on the request itself.
        decision["decisionNote"] = note
    applied, current = store.set_if(req_path, decision, _undecided)
    if not applied:
        if current is None:
            raise HTTPException(404, "Request not found")
        raise HTTPException(409, "Request already decided")

    store.set(audit_path(business_id, req_id), {
        "reviewedBy": reviewer.uid,
        "reviewedAt": SERVER_TIMESTAMP,
        "approved": approve,
        "reviewNote": note,
    })

    if approve:
        store.set(business_path(business_id), {"verified": True, "verifiedAt": SERVER_TIMESTAMP})
        increment_verification_completed(store, business_id)
    else:
        # Rejection never clears an earlier verified flag.
        store.set(business_path(business_id), {"verificationRejectedAt": SERVER_TIMESTAMP})

    log_operation(logger, "review.decision", decision["status"], {
        "businessId": business_id, "reqId": req_id, "reviewer": reviewer.uid,
    })
    return {"ok": True, "approved": approve}
