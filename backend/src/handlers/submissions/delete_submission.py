"""
Delete Submission Handler.
DELETE /submissions

Contributors delete their own submissions; admins may delete any.
"""
from shared.auth import get_claims
from shared.errors import ValidationError
from shared.guard import require_permission, require_role
from shared.integrity import get_coordinator
from shared.models import Permission, Role
from shared.tokens import get_token_codec
from shared.utils import api_handler, format_response, parse_body


@api_handler
def handler(event, context):
    """Body: { "submissionId": "..." }"""
    claims = require_role(get_claims(event, get_token_codec()), (Role.CONTRIBUTOR, Role.ADMIN))
    require_permission(claims, Permission.WRITE_SUBMISSIONS)

    submission_id = parse_body(event).get('submissionId')
    if not submission_id:
        raise ValidationError('Submission ID is required')

    get_coordinator().delete_submission(
        submission_id,
        claims.subject_id,
        bypass_ownership=claims.role == Role.ADMIN
    )

    return format_response(200, {
        'message': 'Submission deleted successfully',
        'submissionId': submission_id
    })
