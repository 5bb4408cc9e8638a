class ValidationFailure(ValueError):
    """Input or upstream payload did not match the expected shape."""


class UpstreamPayloadError(ValidationFailure):
    """The transit provider returned a payload we refuse to coerce."""


class InvalidPlanRequest(ValidationFailure):
    """A planning request was rejected before any search ran."""
