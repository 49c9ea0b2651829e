from typing import Dict, Iterable, List

# Separator written after every merged response
RESULT_SEPARATOR = "\n---\n"

AGGREGATION_PROMPT = "Synthesise these responses into a single, high-quality response:\n\n{responses}"

# Model mappings and constants
MODEL_MAPPINGS: Dict[str, List[str]] = {
    "openai": [
        # GPT-4.1 variants
        "gpt-4.1",
        "gpt-4.1-mini",
        # GPT-4o variants
        "gpt-4o-mini",
        "gpt-4o",
        "gpt-3.5-turbo",
        # o-series
        "o1",
        "o3",
        "o3-mini",
        "o4-mini",
    ],
    "groq": [
        "llama-3.1-70b-versatile",
        "llama-3.1-8b-instant",
        "llama-3.3-70b-versatile",
        "mixtral-8x7b-32768",
    ],
    "gemini": [
        "gemini-2.5-flash",
        "gemini-2.5-pro",
    ],
    "grok": [
        "grok-3-mini",
        "grok-3",
        "grok-4",
    ],
    "mock": [
        "mock",
        "mock-echo",
    ],
}


def get_provider_from_model(model: str) -> str:
    """
    Determine the provider based on the model name.

    Args:
        model: The model name (e.g., "gpt-4o", "gemini-2.5-flash", "grok-3")

    Returns:
        Provider string ("openai", "groq", "gemini", "grok", "mock")
    """
    if not model:
        raise ValueError("Cannot infer a provider without a model name")

    model_lower = model.lower()

    for key, models in MODEL_MAPPINGS.items():
        if model_lower in models:
            return key
    if model_lower.startswith("mock"):
        return "mock"
    raise ValueError(f"Unknown model: {model}")


def get_available_models() -> list:
    """Get a flat list of all known model names."""
    all_models = []
    for models in MODEL_MAPPINGS.values():
        all_models.extend(models)
    return all_models


def combine_results(results: Iterable[str]) -> str:
    """
    Merge responses into one string, in the given order.

    Every response is followed by RESULT_SEPARATOR. Nothing is trimmed,
    deduplicated or reordered.
    """
    return "".join(result + RESULT_SEPARATOR for result in results)


def build_aggregation_prompt(outputs: Iterable[str]) -> str:
    """Embed the combined iteration outputs in the aggregator instruction."""
    return AGGREGATION_PROMPT.format(responses=combine_results(outputs))
