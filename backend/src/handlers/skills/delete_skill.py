"""
Delete Skill Handler.
DELETE /skills

Contributor entries referencing the skill are left alone and read back with
a null name.
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.errors import ValidationError
from shared.guard import require_permission
from shared.models import Permission
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    """Body: { "id": "..." }"""
    require_permission(get_claims(event, get_token_codec()), Permission.MANAGE_SKILLS)

    skill_id = parse_body(event).get('id')
    if not skill_id:
        raise ValidationError('Skill ID is required')

    skill_store().delete_by_key(skill_id)

    return format_response(200, {
        'message': 'Skill deleted successfully',
        'id': skill_id
    })
