"""
Custom exceptions for the PagePixie capture pipeline
"""
from typing import Optional


class PagePixieError(Exception):
    """Base exception for PagePixie errors"""
    pass


class ServiceUnavailableError(PagePixieError):
    """No model runtime is registered with the session manager"""
    pass


class ModelUnavailableError(PagePixieError):
    """The model service reports it cannot run on this host"""
    pass


class InvalidSessionError(PagePixieError):
    """A destroyed or transferred model session was used"""
    pass


class MalformedModelOutputError(PagePixieError):
    """Model response could not be parsed against the expected shape"""

    def __init__(self, message: str, raw_output: str = ""):
        self.raw_output = raw_output
        super().__init__(message)


class NetworkFetchError(PagePixieError):
    """Image retrieval failed"""

    def __init__(self, message: str, url: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ValidationError(PagePixieError):
    """Unsupported image format or URL scheme"""
    pass


class LanguageDetectionError(PagePixieError):
    """Error occurred during language detection"""
    pass


class TranslationError(PagePixieError):
    """Error occurred during translation"""
    pass


class ContentClassificationError(PagePixieError):
    """Error occurred during content type classification"""
    pass


class CondenseError(PagePixieError):
    """Error occurred during content condensation"""
    pass


class SummarizationError(PagePixieError):
    """Error occurred during summary generation"""
    pass


class ChatError(PagePixieError):
    """Error occurred during chat refinement"""
    pass
