"""
RegVerify — Business Registration Verification (v1.0.0)

Architecture:
  regverify/
  ├── config/     — Environment flags (AUTO_APPROVE), paths, auth settings
  ├── log/        — Subsystem loggers
  ├── db/         — Document store: merge writes, sentinels, created events
  ├── storage/    — Blob store metadata lookup
  ├── auth/       — Token verification, admin claim normalization
  ├── metrics/    — Day keys + daily verification_completed counter
  ├── documents/  — Document locator resolution + existence probe
  ├── audit/      — Field checks and overall validity
  ├── intake/     — Request-created handler, optional auto-approval
  ├── review/     — Reviewer approve/reject transition
  └── server.py   — FastAPI routing layer

Data flows one way: request created → intake → audit record (+ auto-approval)
→ later, reviewer decision → terminal request status + business verified flag.
"""
