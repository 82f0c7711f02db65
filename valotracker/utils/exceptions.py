"""
Custom exceptions for the tracker with user-friendly error messages.

Background passes catch these and log them; on-demand command paths surface
``user_message`` to the person who asked.
"""

class TrackerException(Exception):
    """Base exception for tracker errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class UpstreamUnavailable(TrackerException):
    """Raised on network failures, timeouts, rate limiting and 5xx responses."""
    def __init__(self, endpoint: str, details: str = None):
        self.endpoint = endpoint
        super().__init__(
            f"Upstream unavailable for {endpoint}: {details}",
            "❌ The Valorant API is currently down or overloaded. Please try again later."
        )

class UpstreamAuthError(TrackerException):
    """Raised when the upstream rejects our API key."""
    def __init__(self, endpoint: str, status: int):
        self.endpoint = endpoint
        self.status = status
        super().__init__(
            f"Upstream rejected credentials ({status}) for {endpoint}",
            "❌ **API Error**: Invalid API Key. Please ask the operator to update the Valorant API key."
        )

class UpstreamNotFound(TrackerException):
    """Raised when the upstream has no record of the requested player or match."""
    def __init__(self, subject: str):
        self.subject = subject
        super().__init__(
            f"Upstream returned 404 for {subject}",
            f"❌ **{subject}** not found or match history is private."
        )

class MalformedRecord(TrackerException):
    """Raised when an upstream record lacks fields we depend on."""
    def __init__(self, record: str, reason: str):
        self.record = record
        self.reason = reason
        super().__init__(
            f"Malformed record {record}: {reason}",
            "❌ The match data returned by the API was incomplete."
        )

class PersistenceError(TrackerException):
    """Raised when stored state cannot be read or written."""
    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Persistence error during {operation}: {details}",
            "❌ Stored leaderboard data could not be accessed. Please try again later."
        )

class TenantDestinationUnreachable(TrackerException):
    """Raised when a tenant's destination channel cannot be resolved or written to."""
    def __init__(self, tenant_id: str, destination: str, details: str = None):
        self.tenant_id = tenant_id
        self.destination = destination
        super().__init__(
            f"Destination {destination} unreachable for tenant {tenant_id}: {details}",
            f"❌ I can't post to <#{destination}>. Check that I have 'View Channel' and 'Send Messages' permissions."
        )

class IdentityNotFoundError(TrackerException):
    """Raised when a reference does not resolve to a linked identity."""
    def __init__(self, reference: str, user_message: str = None):
        self.reference = reference
        super().__init__(
            f"No linked identity for '{reference}'",
            user_message or f"❌ No linked player found for **{reference}**."
        )

class InvalidRiotIdError(TrackerException):
    """Raised when a Riot ID is not in Name#Tag form."""
    def __init__(self, riot_id: str):
        super().__init__(
            f"Invalid Riot ID '{riot_id}'",
            f"❌ Invalid Riot ID **{riot_id}**. Use the format `Name#Tag`."
        )
