"""Cinema Pippin inference package: Ollama client and tolerant response parsing."""
from cinepippin.inference.ollama import DEFAULT_MODEL, DEFAULT_OLLAMA_URL, LLMClient, OllamaClient
from cinepippin.inference.parsing import (
    FLAT_COUPLET_GRAMMAR,
    parse_bool_couplets,
    parse_json_array,
    parse_ranking,
    parse_string_couplets,
)

__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_OLLAMA_URL",
    "LLMClient",
    "OllamaClient",
    "FLAT_COUPLET_GRAMMAR",
    "parse_bool_couplets",
    "parse_json_array",
    "parse_ranking",
    "parse_string_couplets",
]
