from __future__ import annotations

# gh API reads and small writes
GH_TIMEOUT_SECONDS = 60.0

# Asset uploads (a full manuscript PDF can be tens of MB)
GH_UPLOAD_TIMEOUT_SECONDS = 15 * 60.0

# Idempotent gh read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
