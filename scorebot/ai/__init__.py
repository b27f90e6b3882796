"""AI module - Local LLM adviser for confidence enhancement."""

from scorebot.ai.adviser import OllamaConfidenceAdviser, build_prompt, parse_verdict
from scorebot.ai.models import AdviserVerdict, AIMetrics
from scorebot.ai.ollama_client import OllamaClient

__all__ = [
    "AIMetrics",
    "AdviserVerdict",
    "OllamaClient",
    "OllamaConfidenceAdviser",
    "build_prompt",
    "parse_verdict",
]
