"""
Get Contributor Profile Handler.
GET /contributors/profile
Skill names are resolved from the skills table on every read.
"""
from shared.auth import get_claims
from shared.dynamo import contributor_store, skill_store
from shared.errors import NotFoundError
from shared.guard import require_role
from shared.models import Role
from shared.skills import enrich_contributor
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response


@api_handler
def handler(event, context):
    claims = require_role(get_claims(event, get_token_codec()), Role.CONTRIBUTOR)

    contributor = contributor_store().find_by_key(claims.subject_id)
    if not contributor:
        raise NotFoundError('Contributor not found')

    return format_response(200, {
        'message': 'Profile retrieved successfully',
        'profile': enrich_contributor(contributor, skill_store())
    })
