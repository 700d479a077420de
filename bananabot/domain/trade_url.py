"""Trade offer URL rules that are independent from HTTP and cookies."""

from urllib.parse import parse_qs, urlsplit

from bananabot.models.session_models import IdentityModel

TRADE_HOST = "steamcommunity.com"
TRADE_PATH = "/tradeoffer/new"


def validate_trade_url(url: str, identity: IdentityModel) -> bool:
    """Check that a trade offer URL is well formed and belongs to the identity.

    Custom profiles (vanity /id/ URLs) cannot be matched against the partner
    parameter, so for them the structure alone decides.

    Args:
        url: URL submitted by the user.
        identity: Logged-in Steam identity.

    Returns:
        True when the URL may be stored for this identity.
    """
    if identity is None or not url or not url.strip():
        return False

    try:
        parts = urlsplit(url.strip())
        hostname = parts.hostname
        query = parse_qs(parts.query)
    except ValueError:
        return False

    token = query.get("token", [""])[0]
    partner = query.get("partner", [""])[0]

    is_valid_structure = (
        parts.scheme in ("http", "https")
        and hostname == TRADE_HOST
        and TRADE_PATH in parts.path
        and token != ""
    )
    if not is_valid_structure:
        return False
    return identity.is_custom_profile or partner == identity.account_id
