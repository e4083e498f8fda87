"""
Utility modules for PromptHub Search
"""
from .supabase_client import PromptStorage, SupabasePromptStorage, get_supabase_client
from .records import candidate_from_record, extract_content

__all__ = [
    "PromptStorage",
    "SupabasePromptStorage",
    "get_supabase_client",
    "candidate_from_record",
    "extract_content",
]
