class FollowupError(Exception):
    """Base class for errors raised by the follow-up services."""


class NotFoundError(FollowupError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class NotAuthenticatedError(FollowupError):
    def __init__(self, reason: str = "Not authenticated"):
        self.reason = reason
        super().__init__(reason)


class RecordOwnershipError(FollowupError):
    """Raised before any mutation when a clinician edits a record they did not author."""

    def __init__(self, record_id: str, requester_id: str):
        self.record_id = record_id
        self.requester_id = requester_id
        super().__init__(f"Medical record {record_id} can only be edited by its author")


class PanelForbiddenError(FollowupError):
    def __init__(self, panel: str, details: dict = None):
        self.panel = panel
        self.details = details or {}
        super().__init__(f"Panel '{panel}' is not available for this user")
