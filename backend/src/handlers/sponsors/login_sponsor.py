"""
Login Sponsor Handler.
POST /sponsors/login
Issues a session token (body and cookie) for a registered wallet.
"""
from shared.dynamo import sponsor_store
from shared.errors import NotFoundError, ValidationError
from shared.models import ROLE_PERMISSIONS, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body, session_cookie
from shared.validation import is_valid_wallet_address


@api_handler
def handler(event, context):
    """Body: { "wallet": "0x..." }"""
    body = parse_body(event)
    wallet = body.get('wallet')

    if not is_valid_wallet_address(wallet):
        raise ValidationError('Invalid wallet address format')

    sponsor = sponsor_store().find_by_key(wallet)
    if not sponsor:
        raise NotFoundError('Sponsor not found')

    codec = get_token_codec()
    token = codec.issue({
        'subjectId': wallet,
        'role': Role.SPONSOR,
        'permissions': ROLE_PERMISSIONS[Role.SPONSOR]
    })

    return format_response(
        200,
        {'message': 'Login successful', 'sponsor': sponsor, 'token': token},
        headers={'Set-Cookie': session_cookie(token, codec.default_ttl)}
    )
