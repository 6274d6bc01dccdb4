"""
Update Sponsor Profile Handler.
PUT /sponsors
"""
from shared.auth import get_claims
from shared.guard import require_role
from shared.integrity import get_coordinator
from shared.models import Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_sponsor


@api_handler
def handler(event, context):
    """
    Body: { "walletAddress": "...", "updated": { ...profile fields... } }
    walletAddress defaults to the caller's own wallet.
    """
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)

    body = parse_body(event)
    wallet = body.get('walletAddress') or claims.subject_id
    patch = validate_sponsor(body.get('updated'), is_update=True)

    sponsor = get_coordinator().update_sponsor(wallet, patch, claims.subject_id)

    return format_response(200, {
        'message': 'Profile updated successfully',
        'profile': sponsor
    })
