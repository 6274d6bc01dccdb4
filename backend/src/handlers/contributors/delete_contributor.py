"""
Delete Contributor Handler.
DELETE /contributors/profile
"""
from shared.auth import get_claims
from shared.guard import require_role
from shared.integrity import get_coordinator
from shared.models import Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.CONTRIBUTOR)

    body = parse_body(event)
    email = body.get('email') or claims.subject_id

    get_coordinator().delete_contributor(email, claims.subject_id)

    return format_response(200, {
        'message': 'Contributor deleted successfully',
        'email': email
    })
