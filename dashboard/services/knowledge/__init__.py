from .knowledge_transform import normalize_knowledge_row, normalize_payload, validate_items, transform_for_insert
from .knowledge_analytics import build_knowledge_analytics
from .knowledge_service import KnowledgeService

__all__ = [
    'normalize_knowledge_row',
    'normalize_payload',
    'validate_items',
    'transform_for_insert',
    'build_knowledge_analytics',
    'KnowledgeService',
]
