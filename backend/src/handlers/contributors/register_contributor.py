"""
Register Contributor Handler.
POST /contributors/register
"""
from shared.integrity import get_coordinator
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_contributor


@api_handler
def handler(event, context):
    """
    Body: {
        "profile": {
            "email": "...", "displayName": "...", "walletAddress": "...",
            "bio": "...", "skills": [{"skillId": "...", "level": "beginner"}],
            "contactPreferences": {...}, "preferences": {...}
        }
    }
    """
    body = parse_body(event)
    profile = validate_contributor(body.get('profile'))

    contributor = get_coordinator().register_contributor(profile)

    return format_response(201, {
        'message': 'Contributor registered successfully',
        'contributor': contributor
    })
