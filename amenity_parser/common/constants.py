"""Application constants."""

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) amenity-parser/0.3"
STAGES = (
    "discover",
    "fetch",
    "extract",
    "upload",
)
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
UNSPECIFIED = "unspecified"
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "document",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
