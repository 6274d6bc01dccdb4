"""
Get Sponsor Profile Handler.
GET /sponsors/profile
"""
from shared.auth import get_claims
from shared.dynamo import sponsor_store
from shared.errors import NotFoundError
from shared.guard import require_role
from shared.models import Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.SPONSOR)

    sponsor = sponsor_store().find_by_key(claims.subject_id)
    if not sponsor:
        raise NotFoundError('Sponsor not found')

    return format_response(200, {
        'message': 'Profile retrieved successfully',
        'profile': sponsor
    })
