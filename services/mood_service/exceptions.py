"""
Exception classes for the mood analysis service.
"""


class MoodAnalysisError(Exception):
    """Base exception for mood analysis errors"""
    pass


class InvalidRequest(MoodAnalysisError):
    """Raised when the user message is empty or missing"""
    pass


class OracleUnavailable(MoodAnalysisError):
    """Raised when the text-generation oracle cannot be reached"""
    pass


class OracleResponseInvalid(MoodAnalysisError):
    """Raised when the oracle replied with a payload that fails shape validation"""
    pass


class RecommenderFailed(MoodAnalysisError):
    """Raised by the recommendation provider; never escapes a mood analysis turn"""
    pass
