"""Error taxonomy for ingestion and scoring."""


class ProspectIntelError(Exception):
    """Base class for all errors raised by this package."""


class InputError(ProspectIntelError, ValueError):
    """Bad submission. Never retried; the job does not enter processing."""


class UnsupportedSourceKind(InputError):
    def __init__(self, source_kind):
        self.source_kind = source_kind
        super().__init__(f"Unsupported source kind: {source_kind!r}")


class MalformedPayload(InputError):
    def __init__(self, source_kind, reason: str):
        self.source_kind = source_kind
        self.reason = reason
        super().__init__(f"Malformed {source_kind} payload: {reason}")


class MergeConflict(ProspectIntelError):
    """Two jobs raced to claim the same contact identity. Transient."""


class ProspectNotFound(ProspectIntelError, LookupError):
    def __init__(self, prospect_id):
        self.prospect_id = prospect_id
        super().__init__(f"Prospect not found: {prospect_id}")


class JobNotFound(ProspectIntelError, LookupError):
    def __init__(self, job_id):
        self.job_id = job_id
        super().__init__(f"Ingestion job not found: {job_id}")
