"""User-facing message constants.

Denial messages are intentionally uniform: the same text is returned whether
a row does not exist or the caller may not see it.
"""


class AccessMessages:
    NOT_PERMITTED = "Operation not permitted"
    NOT_AUTHENTICATED = "Authentication required"
    RECURSIVE_POLICY = "Policy evaluation re-entered a protected table"


class ProjectMessages:
    NOT_FOUND = "Project not found"
    MEMBER_NOT_FOUND = "Project member not found"
    INVALID_POSITION = "Invalid project member position"


class TokenMessages:
    NOT_FOUND = "Access token not found"
    INVALID_KIND = "Unknown access token kind"
    INVALID_CONTRACTOR_TYPE = "Unknown contractor type"


class TaskMessages:
    NOT_FOUND = "Task not found"
    INVALID_STATUS = "Invalid task status"


class TemplateMessages:
    NOT_FOUND = "Template not found"


class DocumentMessages:
    NOT_FOUND = "Document not found"


class CommentMessages:
    NOT_FOUND = "Comment not found"


class RoleMessages:
    INVALID_ROLE = "Unknown role"
    NOT_FOUND = "Role assignment not found"


class NotificationMessages:
    NOT_FOUND = "Notification not found"


class StorageMessages:
    UNKNOWN_BUCKET = "Unknown storage bucket"
