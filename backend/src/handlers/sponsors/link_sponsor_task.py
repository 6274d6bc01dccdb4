"""
Link Sponsor Task Handler (internal, service-to-service).
POST /internal/sponsors/{walletAddress}/tasks

Accepts either a session token whose subject is the sponsor, or the trusted
internal headers:
    X-Internal-Service: true
    X-Wallet-Address: <sponsor wallet>
The header path is not cryptographically verified.
"""
from shared.auth import get_caller_identity, get_claims
from shared.errors import ValidationError
from shared.integrity import get_coordinator
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_path_param, parse_body


@api_handler
def handler(event, context):
    """Body: { "taskId": "..." }"""
    wallet = get_path_param(event, 'walletAddress')
    task_id = parse_body(event).get('taskId')

    if not wallet or not task_id:
        raise ValidationError('walletAddress and taskId are required')

    claims = get_claims(event, get_token_codec())
    caller = get_caller_identity(event, claims)

    sponsor = get_coordinator().update_sponsor_task_ids(wallet, task_id, caller)

    return format_response(200, {
        'message': 'Sponsor tasks updated',
        'walletAddress': wallet,
        'taskIds': sponsor.get('taskIds', [])
    })
