from __future__ import annotations

# Release creation and asset upload retry policy
UPLOAD_RETRY_ATTEMPTS = 5
UPLOAD_RETRY_DELAY_SECONDS = 1.0

# Provider HTTP requests
HTTP_TIMEOUT_SECONDS = 60.0
UPLOAD_TIMEOUT_SECONDS = 10 * 60.0
