"""
RegVerify — Verification Intake

Runs once per newly created verification request:

  Received ──► Audited ──► AutoApproved
                 (valid and AUTO_APPROVE)

The decision is a pure plan: an ordered list of merge writes plus at most
one metric increment. apply_plan() executes it against the store.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from regverify import config
from regverify.audit import evaluate_request
from regverify.db import (
    SERVER_TIMESTAMP, DocumentStore,
    audit_path, business_path, doc_path, request_path,
)
from regverify.documents import ProbeResult, probe_document
from regverify.log import get_logger, log_operation
from regverify.metrics import increment_verification_completed
from regverify.storage import BlobStore

logger = get_logger("intake")

REQUEST_PATTERN = doc_path(config.BUSINESSES, "{businessId}", config.VERIFICATION_REQUESTS, "{reqId}")

# Marks the point in a plan where the daily metric is incremented.
METRIC_INCREMENT = "metric_increment"


@dataclass
class IntakePlan:
    business_id: str
    req_id: str
    audit: dict
    steps: List[Tuple[str, object]] = field(default_factory=list)

    @property
    def auto_approved(self) -> bool:
        return METRIC_INCREMENT in [s[0] for s in self.steps]


# ============================================================
# PLANNING (pure)
# ============================================================
def plan_intake(business_id: str, req_id: str, data: dict, probe: ProbeResult,
                auto_approve: bool) -> IntakePlan:
    audit = evaluate_request(data, probe)
    a_path = audit_path(business_id, req_id)
    plan = IntakePlan(business_id, req_id, audit)
    plan.steps.append((a_path, {"createdAt": SERVER_TIMESTAMP, **audit}))

    if audit["valid"] and auto_approve:
        plan.steps.append((business_path(business_id),
                           {"verified": True, "verifiedAt": SERVER_TIMESTAMP}))
        plan.steps.append((METRIC_INCREMENT, business_id))
        plan.steps.append((a_path, {"autoApproved": True, "autoApprovedAt": SERVER_TIMESTAMP}))
    return plan


# ============================================================
# EXECUTION
# ============================================================
def apply_plan(store: DocumentStore, plan: IntakePlan):
    for target, payload in plan.steps:
        if target == METRIC_INCREMENT:
            increment_verification_completed(store, payload)
        else:
            store.set(target, payload)


def handle_verification_request(store: DocumentStore, blobs: BlobStore, business_id: str,
                                req_id: str, data: dict,
                                auto_approve: Optional[bool] = None) -> IntakePlan:
    """Probe, evaluate, persist and (maybe) auto-approve one request."""
    if auto_approve is None:
        auto_approve = config.AUTO_APPROVE
    data = data or {}
    probe = probe_document(data.get("documentUrl", ""), blobs)
    plan = plan_intake(business_id, req_id, data, probe, auto_approve)
    apply_plan(store, plan)

    log_operation(logger, "intake.audit", "valid" if plan.audit["valid"] else "invalid", {
        "businessId": business_id, "reqId": req_id,
        "checks": plan.audit["checks"], "autoApproved": plan.auto_approved,
    })
    if probe.error:
        logger.warning(f"[Intake] Document probe for {business_id}/{req_id} failed: {probe.error}")
    return plan


def register_intake_trigger(store: DocumentStore, blobs: BlobStore,
                            auto_approve: Optional[bool] = None):
    """Run the intake handler whenever a verification request record is created."""
    def on_verification_request(snapshot: dict, params: dict):
        handle_verification_request(store, blobs, params["businessId"], params["reqId"],
                                    snapshot, auto_approve)

    store.on_create(REQUEST_PATTERN, on_verification_request)
    return on_verification_request


def submit_verification_request(store: DocumentStore, business_id: str, req_id: str,
                                data: dict) -> dict:
    """Entry point for the applicant flow: create the request record in `store`.

    Intake runs through the record-created event, so the caller must share the
    store the trigger was registered on (``app.state.store`` for the service).
    Raises DocumentExists for a request id already in use.
    """
    return store.create(request_path(business_id, req_id), data)
