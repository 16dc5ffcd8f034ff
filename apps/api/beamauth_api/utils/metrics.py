"""Prometheus metrics."""

from prometheus_client import Counter

# Authorization metrics
authorization_versions_created = Counter(
    "beamauth_authorization_versions_created_total",
    "Authorization versions created by automatic revocation",
    ["reason"],
)

destination_permissions_revoked = Counter(
    "beamauth_destination_permissions_revoked_total",
    "Destination permissions revoked",
    ["reason"],
)

# Verification metrics
verifications_expired = Counter(
    "beamauth_verifications_expired_total",
    "Credited control verifications revoked due to expiration",
)

verification_downgrades = Counter(
    "beamauth_verification_downgrades_total",
    "Credited control verifications downgraded by an operator",
)

# Notification metrics
notifications = Counter(
    "beamauth_notifications_total",
    "Notification send attempts",
    ["channel", "status"],
)

# Scanner metrics
expiration_checks = Counter(
    "beamauth_expiration_checks_total",
    "Expiration checks performed",
    ["include_upcoming"],
)
