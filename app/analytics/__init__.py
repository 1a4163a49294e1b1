"""
Analytics Package
Privacy-focused page view collection: anonymize, clean, buffer, flush
"""

from .batch_processor import BatchProcessor
from .collector import AnalyticsCollector
from .ip_anonymizer import anonymize_ip
from .path_cleaner import SENSITIVE_PARAMS, clean_path
from .runtime import AnalyticsRuntime

__all__ = [
    'AnalyticsCollector',
    'AnalyticsRuntime',
    'BatchProcessor',
    'SENSITIVE_PARAMS',
    'anonymize_ip',
    'clean_path',
]
