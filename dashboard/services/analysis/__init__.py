from .service_client import ServiceClient
from .analysis_service import AnalysisService
from .transcript_service import TranscriptService, extract_video_id, fetch_local_transcript

__all__ = [
    'ServiceClient',
    'AnalysisService',
    'TranscriptService',
    'extract_video_id',
    'fetch_local_transcript',
]
