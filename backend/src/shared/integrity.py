"""
Integrity coordinator.

The only code allowed to touch two stores in one logical operation. There is
no multi-table transaction, so every cross-store write is split into

    reserve    - write the primary document
    confirm    - atomically add its id to the parent's back-reference set
    compensate - if confirm fails, delete the reserved document

and every delete removes the back-reference before the primary document.
Worst case after a crash is a harmlessly missing reference, never a dangling
one.

Invariants kept:
    submissionId in Task.submissions  <=> Submission(id, taskId) exists
    taskId in Sponsor.taskIds         <=> Task(id, sponsorId) exists
"""
import uuid
from typing import Any, Callable, Dict, Optional

from .auth import CallerIdentity
from .dynamo import (
    DynamoStore,
    contributor_store,
    now_iso,
    skill_store,
    sponsor_store,
    submission_store,
    task_store,
)
from .errors import (
    DuplicateKeyError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .logging import logger
from .models import SubmissionStatus, TaskPriority, TaskStatus

# Fields a task owner may never patch
TASK_IMMUTABLE_FIELDS = ('id', 'sponsorId', 'submissions', 'createdAt', 'updatedAt')

# Nested contributor profile sections merged (not replaced) on update
CONTRIBUTOR_MERGED_SECTIONS = ('contactPreferences', 'preferences', 'reputation', 'contributionStats')


def generate_id() -> str:
    return uuid.uuid4().hex


class IntegrityCoordinator:
    """Cross-store operations over the sponsor, task, submission and contributor stores."""

    def __init__(
        self,
        sponsors: DynamoStore,
        tasks: DynamoStore,
        submissions: DynamoStore,
        contributors: DynamoStore,
        skills: Optional[DynamoStore] = None,
        id_factory: Callable[[], str] = generate_id
    ):
        self.sponsors = sponsors
        self.tasks = tasks
        self.submissions = submissions
        self.contributors = contributors
        self.skills = skills
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(self, task_input: Dict[str, Any], caller_subject_id: str) -> Dict[str, Any]:
        """Insert a task and link it into Sponsor.taskIds, compensating on link failure."""
        sponsor_id = task_input.get('sponsorId')
        if sponsor_id != caller_subject_id:
            raise ForbiddenError('Tasks can only be created for your own sponsor account')

        if self.sponsors.find_by_key(sponsor_id) is None:
            raise NotFoundError('Sponsor not found')

        task_id = self.id_factory()
        task = {
            **{k: v for k, v in task_input.items() if k not in TASK_IMMUTABLE_FIELDS},
            'id': task_id,
            'sponsorId': sponsor_id,
            'status': task_input.get('status') or TaskStatus.OPEN,
            'priority': task_input.get('priority') or TaskPriority.MEDIUM,
        }

        # Reserve
        created = self.tasks.insert(task)
        logger.info(f"Task {task_id} reserved for sponsor {sponsor_id}")

        # Confirm or compensate
        self._confirm_or_compensate(
            confirm=lambda: self.sponsors.add_to_set(sponsor_id, 'taskIds', task_id),
            compensate=lambda: self.tasks.delete_by_key(task_id),
            description=f"link task {task_id} to sponsor {sponsor_id}"
        )
        logger.info(f"Task {task_id} linked to sponsor {sponsor_id}")
        return created

    def update_task(self, task_id: str, patch: Dict[str, Any], caller_subject_id: str) -> Dict[str, Any]:
        """Owner-scoped update. Status moves open -> completed|cancelled and then stays put."""
        task = self._load_task(task_id)
        self._require_task_owner(task, caller_subject_id)

        changes = {k: v for k, v in patch.items() if k not in TASK_IMMUTABLE_FIELDS}
        new_status = changes.get('status')
        if new_status is not None:
            check_status_transition(task.get('status'), new_status)

        if not changes:
            return task
        return self.tasks.update_by_key(task_id, changes)

    def delete_task(self, task_id: str, caller_subject_id: str) -> Dict[str, Any]:
        """
        Remove the sponsor back-reference first, then the task itself.

        The submission count is checked up front for a descriptive error, and
        again atomically by the conditional delete: a submission linked in
        between makes the delete fail, and the sponsor link is put back.
        """
        task = self._load_task(task_id)
        self._require_task_owner(task, caller_subject_id)

        submission_count = len(set(task.get('submissions') or []) |
                               {s['id'] for s in self.submissions.find_many({'taskId': task_id})})
        if submission_count:
            raise _task_has_submissions(task_id, submission_count)

        sponsor_id = task['sponsorId']
        try:
            self.sponsors.remove_from_set(sponsor_id, 'taskIds', task_id)
        except NotFoundError:
            logger.warning(f"Sponsor {sponsor_id} already gone while deleting task {task_id}")

        try:
            deleted = self.tasks.delete_by_key(task_id, require_empty=('submissions',))
        except ValidationError:
            logger.warning(f"Task {task_id} gained a submission while being deleted. Relinking.")
            self._relink_task(sponsor_id, task_id)
            current = self.tasks.find_by_key(task_id) or {}
            raise _task_has_submissions(task_id, len(current.get('submissions') or []))

        logger.info(f"Task {task_id} deleted by sponsor {sponsor_id}")
        return deleted

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    def create_submission(self, submission_input: Dict[str, Any], caller_subject_id: str) -> Dict[str, Any]:
        """
        Insert a submission against an open task and link it into Task.submissions.
        The wallet on the submission must be the calling contributor's own.
        """
        task_id = submission_input.get('taskId')
        wallet = submission_input.get('walletAddress')
        self._require_submitter(wallet, caller_subject_id)

        task = self.tasks.find_by_key(task_id) if task_id else None
        if task is None:
            raise NotFoundError('Task not found')

        if task.get('status') != TaskStatus.OPEN:
            raise ValidationError('Task is not open for submissions')

        if self.submissions.find_many({'taskId': task_id, 'walletAddress': wallet}):
            raise ValidationError('Contributor has already submitted to this task')

        submission_id = self.id_factory()
        submission = {
            **{k: v for k, v in submission_input.items() if k != 'id'},
            'id': submission_id,
            'status': submission_input.get('status') or SubmissionStatus.PENDING,
            'isAccepted': bool(submission_input.get('isAccepted', False)),
        }

        # Reserve
        created = self.submissions.insert(submission)
        logger.info(f"Submission {submission_id} reserved for task {task_id}")

        # Confirm or compensate
        self._confirm_or_compensate(
            confirm=lambda: self.tasks.add_to_set(task_id, 'submissions', submission_id),
            compensate=lambda: self.submissions.delete_by_key(submission_id),
            description=f"link submission {submission_id} to task {task_id}"
        )
        logger.info(f"Submission {submission_id} linked to task {task_id}")

        self._mirror_contributor_task(wallet, task_id, add=True)
        return created

    def delete_submission(
        self,
        submission_id: str,
        caller_subject_id: str,
        bypass_ownership: bool = False
    ) -> Dict[str, Any]:
        """
        Unlink from the task (if it still exists), then delete the submission.
        Contributors may only delete their own; bypass_ownership is for admins.
        """
        submission = self.submissions.find_by_key(submission_id) if submission_id else None
        if submission is None:
            raise NotFoundError('Submission not found')
        if not bypass_ownership:
            self._require_submitter(submission.get('walletAddress'), caller_subject_id)

        task_id = submission.get('taskId')
        try:
            self.tasks.remove_from_set(task_id, 'submissions', submission_id)
        except NotFoundError:
            logger.info(f"Task {task_id} already gone while deleting submission {submission_id}")

        deleted = self.submissions.delete_by_key(submission_id)
        logger.info(f"Submission {submission_id} deleted")

        self._mirror_contributor_task(submission.get('walletAddress'), task_id, add=False)
        return deleted

    # ------------------------------------------------------------------
    # Sponsors
    # ------------------------------------------------------------------

    def update_sponsor_task_ids(self, sponsor_id: str, task_id: str, caller: CallerIdentity) -> Dict[str, Any]:
        """
        Internal service-to-service linkage of a task into Sponsor.taskIds.

        Admits either a trusted internal caller whose X-Wallet-Address header
        matches the sponsor, or a verified token whose subject matches. The
        header path carries no proof of identity and is logged on every use.
        """
        if caller.internal_wallet is None and caller.subject_id is None:
            raise UnauthorizedError()

        via_header = caller.internal_wallet is not None and caller.internal_wallet == sponsor_id
        via_token = caller.subject_id is not None and caller.subject_id == sponsor_id
        if not (via_header or via_token):
            raise ForbiddenError('Caller does not own this sponsor account')
        if via_header and not via_token:
            logger.warning(f"Sponsor {sponsor_id} taskIds updated via internal header identity")

        if self.sponsors.find_by_key(sponsor_id) is None:
            raise NotFoundError('Sponsor not found')

        task = self._load_task(task_id)
        if task.get('sponsorId') != sponsor_id:
            raise ValidationError('Task does not belong to this sponsor')

        return self.sponsors.add_to_set(sponsor_id, 'taskIds', task_id)

    def update_sponsor(self, wallet: str, patch: Dict[str, Any], caller_subject_id: str) -> Dict[str, Any]:
        sponsor = self._load_sponsor(wallet)
        self._require_owner(sponsor['walletAddress'], caller_subject_id, 'sponsor account')

        new_wallet = patch.get('walletAddress')
        if new_wallet is not None and new_wallet != wallet:
            raise ValidationError('walletAddress cannot be changed')

        changes = {k: v for k, v in patch.items() if k not in ('walletAddress', 'taskIds', 'registeredAt')}
        if not changes:
            return sponsor
        return self.sponsors.update_by_key(wallet, changes)

    def delete_sponsor(self, wallet: str, caller_subject_id: str) -> Dict[str, Any]:
        """Refused while the sponsor still owns tasks, checked again atomically on delete."""
        sponsor = self._load_sponsor(wallet)
        self._require_owner(sponsor['walletAddress'], caller_subject_id, 'sponsor account')

        task_ids = set(sponsor.get('taskIds') or []) | {t['id'] for t in self.tasks.find_many({'sponsorId': wallet})}
        if task_ids:
            raise _sponsor_has_tasks(wallet, len(task_ids))

        try:
            deleted = self.sponsors.delete_by_key(wallet, require_empty=('taskIds',))
        except ValidationError:
            current = self.sponsors.find_by_key(wallet) or {}
            raise _sponsor_has_tasks(wallet, len(current.get('taskIds') or []))

        logger.info(f"Sponsor {wallet} deleted")
        return deleted

    # ------------------------------------------------------------------
    # Contributors
    # ------------------------------------------------------------------

    def register_contributor(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new contributor; every referenced skill must exist."""
        if self.contributors.find_many({'walletAddress': profile.get('walletAddress')}):
            raise DuplicateKeyError('Wallet address already registered')
        self._require_known_skills(profile.get('skills'))

        contributor = self.contributors.insert({**profile, 'joinDate': now_iso()})
        logger.info(f"Contributor {contributor['email']} registered")
        return contributor

    def update_contributor(self, email: str, patch: Dict[str, Any], caller_subject_id: str) -> Dict[str, Any]:
        """Identity-bound profile update. Nested sections are merged like the profile form sends them."""
        contributor = self._load_contributor(email)
        self._require_contributor_owner(contributor, caller_subject_id)

        new_email = patch.get('email')
        if new_email is not None and new_email != email:
            raise ValidationError('email cannot be changed')

        changes = {k: v for k, v in patch.items() if k not in ('email', 'taskIds', 'joinDate')}
        for section in CONTRIBUTOR_MERGED_SECTIONS:
            if isinstance(changes.get(section), dict) and isinstance(contributor.get(section), dict):
                changes[section] = {**contributor[section], **changes[section]}

        if 'skills' in changes:
            self._require_known_skills(changes['skills'])

        if not changes:
            return contributor
        return self.contributors.update_by_key(email, changes)

    def delete_contributor(self, email: str, caller_subject_id: str) -> Dict[str, Any]:
        """Submissions are keyed by wallet and stay with their tasks."""
        contributor = self._load_contributor(email)
        self._require_contributor_owner(contributor, caller_subject_id)
        deleted = self.contributors.delete_by_key(email)
        logger.info(f"Contributor {email} deleted")
        return deleted

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _confirm_or_compensate(self, confirm: Callable[[], Any], compensate: Callable[[], Any], description: str) -> Any:
        """Run confirm; on failure run compensate best-effort and re-raise the confirm error."""
        try:
            return confirm()
        except Exception as e:
            logger.error(f"Failed to {description}: {e}. Compensating.")
            try:
                compensate()
            except Exception as compensation_error:
                logger.error(f"Compensation failed after trying to {description}: {compensation_error}")
            raise

    def _mirror_contributor_task(self, wallet: Optional[str], task_id: Optional[str], add: bool) -> None:
        """
        Best-effort copy of submission history into Contributor.taskIds.
        Not authoritative: Submissions are the source of truth, so failures only log.
        """
        if not wallet or not task_id:
            return
        try:
            for contributor in self.contributors.find_many({'walletAddress': wallet}):
                if add:
                    self.contributors.add_to_set(contributor['email'], 'taskIds', task_id)
                else:
                    self.contributors.remove_from_set(contributor['email'], 'taskIds', task_id)
        except Exception as e:
            logger.warning(f"Could not update contributor history for wallet {wallet}, task {task_id}: {e}")

    def _relink_task(self, sponsor_id: str, task_id: str) -> None:
        try:
            self.sponsors.add_to_set(sponsor_id, 'taskIds', task_id)
        except Exception as e:
            logger.error(f"Could not relink task {task_id} to sponsor {sponsor_id}: {e}")

    def _require_submitter(self, wallet: Optional[str], caller_subject_id: Optional[str]) -> None:
        """The caller (by email or wallet subject) must be the contributor owning `wallet`."""
        contributor = self.contributors.find_by_key(caller_subject_id) if caller_subject_id else None
        if contributor is None and caller_subject_id:
            matches = self.contributors.find_many({'walletAddress': caller_subject_id})
            contributor = matches[0] if matches else None
        if contributor is None or not wallet or contributor.get('walletAddress') != wallet:
            raise ForbiddenError('Submissions can only be managed from your own wallet')

    def _require_known_skills(self, skills: Any) -> None:
        if self.skills is None or not isinstance(skills, list):
            return
        unknown = [entry.get('skillId') for entry in skills
                   if isinstance(entry, dict) and self.skills.find_by_key(entry.get('skillId')) is None]
        if unknown:
            raise ValidationError(f"Unknown skills: {', '.join(str(s) for s in unknown)}")

    def _load_task(self, task_id: str) -> Dict[str, Any]:
        task = self.tasks.find_by_key(task_id) if task_id else None
        if task is None:
            raise NotFoundError('Task not found')
        return task

    def _load_sponsor(self, wallet: str) -> Dict[str, Any]:
        sponsor = self.sponsors.find_by_key(wallet) if wallet else None
        if sponsor is None:
            raise NotFoundError('Sponsor not found')
        return sponsor

    def _load_contributor(self, email: str) -> Dict[str, Any]:
        contributor = self.contributors.find_by_key(email) if email else None
        if contributor is None:
            raise NotFoundError('Contributor not found')
        return contributor

    def _require_task_owner(self, task: Dict[str, Any], caller_subject_id: str) -> None:
        if task.get('sponsorId') != caller_subject_id:
            raise ForbiddenError('Unauthorized - This task belongs to another sponsor')

    def _require_owner(self, owner_key: str, caller_subject_id: str, what: str) -> None:
        if owner_key != caller_subject_id:
            raise ForbiddenError(f'You can only modify your own {what}')

    def _require_contributor_owner(self, contributor: Dict[str, Any], caller_subject_id: str) -> None:
        owners = {contributor.get('email'), contributor.get('walletAddress')} - {None, ''}
        if caller_subject_id not in owners:
            raise ForbiddenError('You can only modify your own contributor profile')


def _task_has_submissions(task_id: str, count: int) -> ValidationError:
    return ValidationError(
        'Cannot delete task with existing submissions',
        details={'taskId': task_id, 'submissionCount': count}
    )


def _sponsor_has_tasks(wallet: str, count: int) -> ValidationError:
    return ValidationError(
        'Cannot delete sponsor with existing tasks',
        details={'walletAddress': wallet, 'taskCount': count}
    )


def check_status_transition(current: Optional[str], new: str) -> None:
    """open -> completed | cancelled; a non-open status is terminal."""
    if new not in TaskStatus.ALL:
        raise ValidationError('Invalid status value')
    if new == current:
        return
    if current != TaskStatus.OPEN:
        raise ValidationError(f"Task status '{current}' is final and cannot change to '{new}'")


def get_coordinator() -> IntegrityCoordinator:
    """Coordinator wired to the DynamoDB tables from config."""
    return IntegrityCoordinator(
        sponsors=sponsor_store(),
        tasks=task_store(),
        submissions=submission_store(),
        contributors=contributor_store(),
        skills=skill_store(),
    )
