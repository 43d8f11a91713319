"""Document signing feature: PDF overlay, fallback attestation, storage and records."""
