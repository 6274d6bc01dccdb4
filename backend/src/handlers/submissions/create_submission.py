"""
Create Submission Handler.
POST /submissions

Inserts the submission and links it into Task.submissions; the submission is
removed again if the link cannot be written.
"""
from shared.auth import get_claims
from shared.guard import require_permission, require_role
from shared.integrity import get_coordinator
from shared.models import Permission, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body
from shared.validation import validate_submission


@api_handler
def handler(event, context):
    """
    Body: {
        "submission": {
            "taskId": "...", "walletAddress": "...",
            "submissionTime": "ISO-8601", "content": [...]
        }
    }
    walletAddress must belong to the calling contributor.
    """
    claims = require_role(get_claims(event, get_token_codec()), Role.CONTRIBUTOR)
    require_permission(claims, Permission.WRITE_SUBMISSIONS)

    body = parse_body(event)
    submission_input = validate_submission(body.get('submission'))

    submission = get_coordinator().create_submission(submission_input, claims.subject_id)

    return format_response(201, {
        'message': 'Submission created successfully',
        'submission': submission
    })
