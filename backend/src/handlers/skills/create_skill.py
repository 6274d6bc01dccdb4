"""
Create Skill Handler.
POST /skills/create
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.guard import require_permission
from shared.models import Permission
from shared.skills import create_skill
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    """Body: { "name": "Rust" }"""
    require_permission(get_claims(event, get_token_codec()), Permission.MANAGE_SKILLS)

    skill = create_skill(skill_store(), parse_body(event).get('name'))

    return format_response(201, {
        'message': 'Skill created successfully',
        'skill': skill
    })
