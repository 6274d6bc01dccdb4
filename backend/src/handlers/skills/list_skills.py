"""
List Skills Handler.
GET /skills
"""
from shared.auth import get_claims
from shared.dynamo import skill_store
from shared.guard import require_authenticated
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response


@api_handler
def handler(event, context):
    require_authenticated(get_claims(event, get_token_codec()))

    skills = sorted(skill_store().find_many(), key=lambda s: s.get('name', '').lower())

    return format_response(200, {'skills': skills, 'count': len(skills)})
