from __future__ import annotations

# HTTP reads against the change-request host and the registry
HTTP_TIMEOUT_SECONDS = 30.0

# `cargo publish` packages and verifies the crate before uploading
CARGO_PUBLISH_TIMEOUT_SECONDS = 30 * 60.0

# Idempotent metadata read retry policy
METADATA_READ_RETRY_ATTEMPTS = 3
METADATA_READ_RETRY_DELAY_SECONDS = 1.0
