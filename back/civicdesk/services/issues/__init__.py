# Local application imports
from civicdesk.services.issues.access_policy import AccessDecision, IssueField, VisibilityScope, evaluate, listing_scope
from civicdesk.services.issues.intake_services import create_issue
from civicdesk.services.issues.issue_services import add_comment, delete_issue, get_issue, update_issue
from civicdesk.services.issues.media_services import IncomingMedia
from civicdesk.services.issues.query_services import issue_stats, issues_near, list_issues

__all__ = [
    "AccessDecision",
    "IncomingMedia",
    "IssueField",
    "VisibilityScope",
    "add_comment",
    "create_issue",
    "delete_issue",
    "evaluate",
    "get_issue",
    "issue_stats",
    "issues_near",
    "list_issues",
    "listing_scope",
    "update_issue",
]
