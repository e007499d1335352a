__all__ = [
    "models",
    "schemas",
    "prompts",
    "llm_provider",
    "logging",
    "kv_store",
    "document_store",
]
