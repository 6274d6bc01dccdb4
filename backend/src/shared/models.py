"""
Status, role and permission constants for the job board.
Task lifecycle: open → completed | cancelled (terminal once it leaves open).
"""


class TaskStatus:
    """Task lifecycle statuses."""
    OPEN = 'open'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    ALL = (OPEN, COMPLETED, CANCELLED)


class TaskPriority:
    """Task priorities."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'

    ALL = (LOW, MEDIUM, HIGH, URGENT)


class SubmissionStatus:
    """Submission review statuses."""
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'

    ALL = (PENDING, ACCEPTED, REJECTED)


class SkillLevel:
    """Contributor skill levels."""
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'
    ADVANCED = 'advanced'
    EXPERT = 'expert'

    ALL = (BEGINNER, INTERMEDIATE, ADVANCED, EXPERT)


class Role:
    """Token roles. Flat space: no role implies another."""
    USER = 'user'
    SPONSOR = 'sponsor'
    CONTRIBUTOR = 'contributor'
    ADMIN = 'admin'


class Permission:
    """Fine-grained permission strings carried inside session tokens."""
    READ_TASKS = 'read:tasks'
    WRITE_TASKS = 'write:tasks'
    WRITE_SUBMISSIONS = 'write:submissions'
    MANAGE_SKILLS = 'manage:skills'


# Permissions granted at login, per role. The skill registry is shared, so
# every signed-in account may curate it.
ROLE_PERMISSIONS = {
    Role.SPONSOR: [Permission.READ_TASKS, Permission.WRITE_TASKS, Permission.MANAGE_SKILLS],
    Role.CONTRIBUTOR: [Permission.READ_TASKS, Permission.WRITE_SUBMISSIONS, Permission.MANAGE_SKILLS],
}
