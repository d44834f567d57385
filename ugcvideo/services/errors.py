from typing import Optional


class VideoPipelineError(Exception):
    """Base class for everything the submit/poll pipeline reports."""

    @property
    def reason(self) -> str:
        return str(self) or self.__class__.__name__


class ValidationError(VideoPipelineError):
    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = dict(field_errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.field_errors.items()))


class SubmissionError(VideoPipelineError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class PollingError(VideoPipelineError):
    pass


class PollingTransportError(PollingError):
    pass


class PollingTimeoutError(PollingError):
    pass


class PollingExhaustedError(PollingError):
    def __init__(self, message: str, last_error: Optional[BaseException] = None):
        self.last_error = last_error
        super().__init__(message)
