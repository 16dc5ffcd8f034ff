"""HTML message bodies for expiration and downgrade notifications."""

from datetime import datetime
from typing import Optional, Sequence

from jinja2 import DictLoader, Environment

from beamauth_api.notifications.notices import AuthorizationNotice, VerificationNotice

FRIENDLY_DATE_TIME = "%d-%b-%Y %H:%M"

TEMPLATES = {
    "items.html": """
{% macro verification_item(v, label) %}
<div><b>Credited Control:</b> {{ v.control_name }}</div>
<div><b>Beam Destination:</b> {{ v.destination_name }}</div>
<div><b>Verified On:</b> {{ v.verification_date | friendly }}</div>
<div><b>Verified By:</b> {{ v.verified_by }}</div>
<div><b>{{ label }}:</b> {{ v.expiration_date | friendly }}</div>
<div><b>Comments:</b> {{ v.comments }}</div>
<br/><br/>
{% endmacro %}
{% macro authorization_item(a, label) %}
<div><b>Beam Destination:</b> {{ a.destination_name }}</div>
<div><b>{{ label }}:</b> {{ a.expiration_date | friendly }}</div>
<div><b>Comments:</b> {{ a.comments }}</div>
<br/><br/>
{% endmacro %}
{% macro see_link(proxy_hostname) %}
<div><b>See:</b> <a href="https://{{ proxy_hostname }}/beam-auth/">Beam Authorization</a></div>
{% endmacro %}
""",
    "expired.html": """
{% import "items.html" as items %}
{% if expired_authorizations %}
<h1>--- Expired Director's Authorizations ---</h1>
{% for a in expired_authorizations %}{{ items.authorization_item(a, "Expired On") }}{% endfor %}
{% endif %}
{% if expired_verifications %}
<h1>--- Expired Credited Control Verifications ---</h1>
{% for v in expired_verifications %}{{ items.verification_item(v, "Expired On") }}{% endfor %}
<br/><br/>
{% endif %}
{% if upcoming_authorizations %}
<h1>--- Director's Authorizations Expiring Soon ---</h1>
{% for a in upcoming_authorizations %}{{ items.authorization_item(a, "Expires On") }}{% endfor %}
<br/><br/>
{% endif %}
{% if upcoming_verifications %}
<h1>--- Credited Control Verifications Expiring Soon ---</h1>
{% for v in upcoming_verifications %}{{ items.verification_item(v, "Expiring On") }}{% endfor %}
{% endif %}
<br/><br/>
{{ items.see_link(proxy_hostname) }}
""",
    "downgraded.html": """
{% import "items.html" as items %}
<div><b>Credited Control:</b> {{ first.control_name }}</div>
<div><b>Beam Destinations:</b>
{% for v in downgrades %}<div>{{ v.destination_name }}</div>
{% endfor %}</div>
<div><b>Modified On:</b> {{ first.modified_date | friendly }}</div>
<div><b>Modified By:</b> {{ first.modified_by }}</div>
<div><b>Verification:</b> {{ first.status_name }}</div>
<div><b>Comments:</b> {{ first.comments }}</div>
{{ items.see_link(proxy_hostname) }}
""",
}


def friendly(value: Optional[datetime]) -> str:
    """Format a timestamp the way operators read them, blank when absent."""
    if value is None:
        return ""
    return value.strftime(FRIENDLY_DATE_TIME)


environment = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)
environment.filters["friendly"] = friendly


def render_expired_body(
    proxy_hostname: str,
    expired_authorizations: Optional[Sequence[AuthorizationNotice]] = None,
    expired_verifications: Optional[Sequence[VerificationNotice]] = None,
    upcoming_authorizations: Optional[Sequence[AuthorizationNotice]] = None,
    upcoming_verifications: Optional[Sequence[VerificationNotice]] = None,
) -> str:
    """Render one section per non-empty set, followed by a link to the application."""
    return environment.get_template("expired.html").render(
        proxy_hostname=proxy_hostname,
        expired_authorizations=expired_authorizations or [],
        expired_verifications=expired_verifications or [],
        upcoming_authorizations=upcoming_authorizations or [],
        upcoming_verifications=upcoming_verifications or [],
    )


def render_downgraded_body(proxy_hostname: str, downgrades: Sequence[VerificationNotice]) -> str:
    """Render a downgrade notice for verifications of a single credited control."""
    if not downgrades:
        raise ValueError("downgrade notification requires at least one verification")
    return environment.get_template("downgraded.html").render(
        proxy_hostname=proxy_hostname,
        first=downgrades[0],
        downgrades=downgrades,
    )
