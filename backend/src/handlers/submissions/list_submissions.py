"""
List Submissions Handler.
GET /submissions?taskId=...&walletAddress=...

Both filters are optional; taskId is served by the TaskIndex.
"""
from shared.auth import get_claims
from shared.dynamo import submission_store
from shared.guard import require_authenticated
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, get_query_param


@api_handler
def handler(event, context):
    require_authenticated(get_claims(event, get_token_codec()))

    submissions = submission_store().find_many({
        'taskId': get_query_param(event, 'taskId'),
        'walletAddress': get_query_param(event, 'walletAddress'),
    })

    return format_response(200, {'submissions': submissions, 'count': len(submissions)})
