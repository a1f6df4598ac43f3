from __future__ import annotations


class HostAdminError(Exception):
    """Base error for the admin control plane."""

    code = "HOSTADMIN_ERROR"


class InvalidCredentials(HostAdminError):
    """Identity store rejected the email/password pair."""

    code = "INVALID_CREDENTIALS"


class NotAnAdmin(HostAdminError):
    """Authenticated identity has no valid admin record."""

    code = "NOT_AN_ADMIN"


class HostNotFound(HostAdminError):
    """Ledger operation referenced a host id that does not exist."""

    code = "HOST_NOT_FOUND"

    def __init__(self, host_id: str):
        super().__init__(f"Host {host_id!r} not found")
        self.host_id = host_id


class HostAlreadyExists(HostAdminError):
    """A host record already exists under this id."""

    code = "HOST_ALREADY_EXISTS"

    def __init__(self, host_id: str):
        super().__init__(f"Host {host_id!r} already exists")
        self.host_id = host_id


class StoreUnavailable(HostAdminError):
    """Transient failure reading from or writing to a backing store."""

    code = "STORE_UNAVAILABLE"


class TransientBootstrapWriteFailure(StoreUnavailable):
    """The bootstrap admin record could not be written; verification continues."""

    code = "BOOTSTRAP_WRITE_FAILED"


class MalformedRecord(HostAdminError):
    """A stored document does not match its record type."""

    code = "MALFORMED_RECORD"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Malformed record at {path!r}: {reason}")
        self.path = path
        self.reason = reason


class OptimisticConflict(HostAdminError):
    """The guarded document changed between read and write; nothing was written."""

    code = "OPTIMISTIC_CONFLICT"

    def __init__(self, paths: list[str]):
        super().__init__(f"Concurrent modification detected at: {', '.join(paths)}")
        self.paths = paths


class IdentityAlreadyExists(HostAdminError):
    """An identity with this email is already registered."""

    code = "IDENTITY_ALREADY_EXISTS"
