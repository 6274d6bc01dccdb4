"""
Get Skill Handler.
GET /skills/{id}
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.errors import NotFoundError
from shared.guard import require_authenticated
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_path_param


@api_handler
def handler(event, context):
    require_authenticated(get_claims(event, get_token_codec()))

    skill_id = get_path_param(event, 'id')
    skill = skill_store().find_by_key(skill_id) if skill_id else None
    if not skill:
        raise NotFoundError('Skill not found')

    return format_response(200, {'skill': skill})
