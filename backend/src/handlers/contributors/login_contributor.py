"""
Login Contributor Handler.
POST /contributors/login
"""
from shared.dynamo import contributor_store
from shared.errors import NotFoundError, ValidationError
from shared.models import ROLE_PERMISSIONS, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body, session_cookie
from shared.validation import is_valid_email


@api_handler
def handler(event, context):
    """Body: { "email": "..." }"""
    body = parse_body(event)
    email = body.get('email')

    if not is_valid_email(email):
        raise ValidationError('Invalid email format')

    contributor = contributor_store().find_by_key(email)
    if not contributor:
        raise NotFoundError('Contributor not found')

    codec = get_token_codec()
    token = codec.issue({
        'subjectId': email,
        'role': Role.CONTRIBUTOR,
        'permissions': ROLE_PERMISSIONS[Role.CONTRIBUTOR]
    })

    return format_response(
        200,
        {'message': 'Login successful', 'contributor': contributor, 'token': token},
        headers={'Set-Cookie': session_cookie(token, codec.default_ttl)}
    )
