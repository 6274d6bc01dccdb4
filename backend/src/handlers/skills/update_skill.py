"""
Update Skill Handler.
PUT /skills

Renaming a skill never touches contributor documents; names are resolved
when profiles are read.
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.guard import require_permission
from shared.models import Permission
from shared.skills import rename_skill
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    """Body: { "id": "...", "updated": { "name": "..." } }"""
    require_permission(get_claims(event, get_token_codec()), Permission.MANAGE_SKILLS)

    body = parse_body(event)
    updated = body.get('updated') or {}

    skill = rename_skill(skill_store(), body.get('id'), updated.get('name'))

    return format_response(200, {
        'message': 'Skill updated successfully',
        'skill': skill
    })
