"""
RegVerify — Business Registration Verification Service
FastAPI routing layer: reviewer decision endpoint, admin read access, health.

There is no submission route. Intake is wired to the store's record-created
events, and those fire only for creates made in this process on
``app.state.store``: the applicant flow calls
``regverify.intake.submit_verification_request(app.state.store, ...)``.
Records written to db.json or the Postgres row by another process are not
audited until created through that call.
"""

import os

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from regverify import config
from regverify.auth import Identity, IdentityProvider, authenticate_admin, require_admin
from regverify.db import DocumentStore, audit_path, get_store, request_path
from regverify.intake import register_intake_trigger
from regverify.log import get_logger
from regverify.review import decide_verification, parse_decision
from regverify.storage import BlobStore

logger = get_logger("server")

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(store: DocumentStore = None, blobs: BlobStore = None,
               identity: IdentityProvider = None, auto_approve: bool = None) -> FastAPI:
    store = store or get_store()
    blobs = blobs or BlobStore()
    identity = identity or IdentityProvider()
    auto_approve = config.AUTO_APPROVE if auto_approve is None else auto_approve

    app = FastAPI(title="RegVerify", version=config.VERSION)
    app.state.store = store
    app.state.blobs = blobs
    app.state.identity = identity
    app.state.auto_approve = auto_approve

    register_intake_trigger(store, blobs, auto_approve)

    # ============================================================
    # ROUTES
    # ============================================================
    @app.get("/api/health")
    async def health():
        return {"status": "ok", "product": "RegVerify", "version": config.VERSION,
                "autoApprove": auto_approve, "store": store.backend.name}

    async def admin_approve_verification(request: Request):
        try:
            if request.method != "POST":
                return PlainTextResponse("Method not allowed", status_code=405)
            reviewer = authenticate_admin(request.headers.get("Authorization"), identity)
            try:
                body = await request.json()
            except ValueError:
                body = {}
            business_id, req_id, approve, note = parse_decision(body)
            result = decide_verification(store, reviewer, business_id, req_id, approve, note)
            return JSONResponse(result, status_code=200)
        except HTTPException as e:
            return PlainTextResponse(str(e.detail), status_code=e.status_code)
        except Exception as e:
            logger.exception("[Review] adminApproveVerification error")
            return PlainTextResponse(str(e), status_code=500)

    app.add_api_route("/adminApproveVerification", admin_approve_verification, methods=ALL_METHODS)
    app.add_api_route("/api/verification/decision", admin_approve_verification, methods=ALL_METHODS)

    @app.get("/api/businesses/{business_id}/verification/{req_id}")
    async def get_verification(business_id: str, req_id: str,
                               reviewer: Identity = Depends(require_admin)):
        """Request and audit record side by side, for reviewers."""
        try:
            req = store.get(request_path(business_id, req_id))
        except ValueError as e:
            raise HTTPException(400, str(e))
        if req is None:
            raise HTTPException(404, "Request not found")
        return {"businessId": business_id, "reqId": req_id,
                "request": req, "audit": store.get(audit_path(business_id, req_id))}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    logger.info(f"Starting RegVerify v{config.VERSION} on port {port}")
    logger.info(f"Auto-approve: {'enabled' if config.AUTO_APPROVE else 'disabled'}")
    uvicorn.run(app, host="0.0.0.0", port=port)
