from .email import (
    CleanupRequest,
    CleanupResult,
    ConnectionTestRead,
    EmailSendResult,
    EmailStatusRead,
    EmailTemplateRead,
    EmailTestSendRequest,
    ReminderDispatchRequest,
    SchedulerStatusRead,
    WeeklyReportDispatchRequest,
    WelcomeEmailRequest,
)
from .mention import (
    CommentMentionsCreate,
    CommentMentionsResult,
    MentionCandidateRead,
    MentionRead,
    MentionsDeleted,
)
from .notification import (
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    ProjectUpdateRequest,
    NotificationTestRequest,
    TimesheetReminderRequest,
    UnreadCountRead,
    WeeklyReportRequest,
)

__all__ = [
    "CleanupRequest",
    "CleanupResult",
    "CommentMentionsCreate",
    "CommentMentionsResult",
    "ConnectionTestRead",
    "EmailSendResult",
    "EmailStatusRead",
    "EmailTemplateRead",
    "EmailTestSendRequest",
    "MarkAllReadResponse",
    "MentionCandidateRead",
    "MentionRead",
    "MentionsDeleted",
    "NotificationPageRead",
    "NotificationRead",
    "ProjectUpdateRequest",
    "ReminderDispatchRequest",
    "SchedulerStatusRead",
    "NotificationTestRequest",
    "TimesheetReminderRequest",
    "UnreadCountRead",
    "WeeklyReportDispatchRequest",
    "WeeklyReportRequest",
    "WelcomeEmailRequest",
]
