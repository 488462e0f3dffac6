"""Event Acquisition Boundary: event schema, prompts, LLM providers."""
