"""
Register Sponsor Handler.
POST /sponsors/register
"""
from shared.dynamo import now_iso, sponsor_store
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_sponsor


@api_handler
def handler(event, context):
    """
    Body: { "profile": { "walletAddress": "...", "name": "...", "logo": "...", "description": "..." } }
    taskIds is owned by the integrity coordinator and ignored here.
    """
    body = parse_body(event)
    profile = validate_sponsor(body.get('profile'))

    sponsor = sponsor_store().insert({
        **profile,
        'verified': False,
        'registeredAt': now_iso()
    })

    return format_response(201, {
        'message': 'Sponsor registered successfully',
        'sponsor': sponsor
    })
