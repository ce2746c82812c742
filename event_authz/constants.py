# event_authz/constants.py

# Reserved kind for administrator control events.
CONTROL_KIND = 4242

# Kind of the self-encrypted allow/deny list documents.
LIST_DOCUMENT_KIND = 30000

LABEL_ALLOW = "allow"
LABEL_DENY = "deny"
LABELS = (LABEL_ALLOW, LABEL_DENY)

IDENTITY_BYTES = 32
IDENTITY_HEX_LEN = IDENTITY_BYTES * 2

MSG_OK = "Ok"
MSG_NOT_ALLOWED = "Not allowed to publish"

DEFAULT_DB_PATH = "manage_users.db"
DEFAULT_CONFIG_FILE = "config.toml"
DEFAULT_RESTORE_TIMEOUT = 10.0
DEFAULT_PUBLISH_TIMEOUT = 10.0

CRYPTO_INFO = b"event-authz-v1"
