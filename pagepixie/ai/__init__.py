"""
AI services for the PagePixie capture pipeline
"""

from .engine import PixieAI
from .orchestrator import CaptureOrchestrator, CaptureCallbacks, CaptureStage, CaptureState
from .language import LanguageDetector, Translator
from .classifier import ContentTypeClassifier
from .condenser import CondenseService
from .summarizer import SummarizeService
from .chat import ChatService
from .templates import ContentTemplate, FieldTemplate, get_template, generate_schema

__all__ = [
    'PixieAI',
    'CaptureOrchestrator',
    'CaptureCallbacks',
    'CaptureStage',
    'CaptureState',
    'LanguageDetector',
    'Translator',
    'ContentTypeClassifier',
    'CondenseService',
    'SummarizeService',
    'ChatService',
    'ContentTemplate',
    'FieldTemplate',
    'get_template',
    'generate_schema',
]
