"""
Delete Sponsor Handler.
DELETE /sponsors
Refused with 400 while the sponsor still owns tasks.
"""
from shared.auth import get_claims
from shared.guard import require_role
from shared.integrity import get_coordinator
from shared.models import Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)

    body = parse_body(event)
    wallet = body.get('walletAddress') or claims.subject_id

    get_coordinator().delete_sponsor(wallet, claims.subject_id)

    return format_response(200, {
        'message': 'Sponsor deleted successfully',
        'walletAddress': wallet
    })
