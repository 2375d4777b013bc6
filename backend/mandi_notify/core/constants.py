"""
Centralized constants for the scheduler, dispatch limits and notification retention.

Change job IDs, batch caps or expiry horizons here instead of scattering literals across services and routes.
"""
# Scheduler job IDs (must match ids used in main.py add_job)
PRICE_ALERT_JOB_ID = "price_alert_check"
NOTIFICATION_PURGE_JOB_ID = "notification_purge"
NOTIFICATION_PURGE_HOUR = 3  # daily, local scheduler time

# Bulk send: hard cap on recipients per request
MAX_BULK_RECIPIENTS = 1000
# User lookups by id list run in chunks of this size ("in" queries are capped by the store)
USER_LOOKUP_CHUNK_SIZE = 10
# Multicast: FCM accepts at most 500 tokens per multicast; per-token sends in a chunk run on a bounded pool
MULTICAST_BATCH_LIMIT = 500
MULTICAST_MAX_WORKERS = 16

# Notification history: days until a record expires, by type; anything else uses the default
NOTIFICATION_EXPIRY_DAYS = {
    "price_alert": 7,
    "deal_update": 30,
    "new_opportunity": 7,
    "system_update": 90,
}
DEFAULT_NOTIFICATION_EXPIRY_DAYS = 30
NOTIFICATION_QUERY_DEFAULT_LIMIT = 100
NOTIFICATION_QUERY_MAX_LIMIT = 200

# Payload limits
MAX_TITLE_LENGTH = 256
MAX_BODY_LENGTH = 4000

# Price alerts: 'change' fires when |price - threshold| exceeds this fraction of the threshold
PRICE_CHANGE_BAND = 0.05

# Translation
MAX_TRANSLATION_CHARS = 5000
