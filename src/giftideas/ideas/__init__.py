"""Gift idea generation and list queries."""

from giftideas.ideas.generate import (
    GeneratedIdeas,
    GenerateIdeaCommand,
    IdeaSuggestion,
    build_generation_messages,
    generate_gift_ideas,
    validate_generate_request,
)
from giftideas.ideas.query import (
    IdeaRecord,
    IdeasQuery,
    PaginatedIdeas,
    Pagination,
    apply_ideas_query,
    parse_ideas_query,
)

__all__ = [
    "GenerateIdeaCommand",
    "GeneratedIdeas",
    "IdeaRecord",
    "IdeaSuggestion",
    "IdeasQuery",
    "PaginatedIdeas",
    "Pagination",
    "apply_ideas_query",
    "build_generation_messages",
    "generate_gift_ideas",
    "parse_ideas_query",
    "validate_generate_request",
]
