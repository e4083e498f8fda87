"""
PromptHub Search
Intent-aware, multi-strategy search and ranking for prompt libraries
"""

__version__ = "1.0.0"
