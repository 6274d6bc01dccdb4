"""
Update Contributor Profile Handler.
PUT /contributors/profile
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.guard import require_role
from shared.integrity import get_coordinator
from shared.models import Role
from shared.skills import enrich_contributor
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_contributor


@api_handler
def handler(event, context):
    """
    Body: { "email": "...", "updated": { ...profile fields... } }
    email defaults to the caller's own account.
    """
    claims = require_role(get_claims(event, get_token_codec()), Role.CONTRIBUTOR)

    body = parse_body(event)
    email = body.get('email') or claims.subject_id
    patch = validate_contributor(body.get('updated'), is_update=True)

    contributor = get_coordinator().update_contributor(email, patch, claims.subject_id)

    return format_response(200, {
        'message': 'Profile updated successfully',
        'profile': enrich_contributor(contributor, skill_store())
    })
