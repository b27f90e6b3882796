"""
Ollama Confidence Adviser - LLM-backed confidence enhancement.

Asks a local model to review the base confidence and market summary
and return an adjusted long confidence as JSON:

    {"long_confidence": 71.5, "reasoning": "..."}

Any transport or parse failure falls back to the MathematicalAdjuster,
so a backtest never stops because the adviser is unreachable.
"""

import json
import logging

import httpx

from scorebot.ai.models import AdviserVerdict
from scorebot.ai.ollama_client import OllamaClient
from scorebot.signals.confidence import ConfidenceScore
from scorebot.signals.enhancer import MarketAnalysis, MathematicalAdjuster

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a quantitative trading assistant. You review a long/short confidence "
    "score produced by technical indicators and return an adjusted long confidence. "
    "Respond ONLY with a JSON object: "
    '{"long_confidence": <number 0-100>, "reasoning": "<one sentence>"}'
)

# Max points the adviser may move confidence away from the base score
MAX_ADVISER_ADJUSTMENT = 15.0


def build_prompt(score: ConfidenceScore, analysis: MarketAnalysis) -> str:
    """Format the adviser prompt."""
    return (
        "BASE CONFIDENCE:\n"
        f"{json.dumps(score.to_dict(), indent=2)}\n\n"
        "MARKET ANALYSIS (last 20 bars):\n"
        f"{json.dumps(analysis.to_dict(), indent=2)}\n\n"
        f"Adjust long_confidence by at most {MAX_ADVISER_ADJUSTMENT:.0f} points. "
        "short_confidence is always 100 - long_confidence."
    )


def parse_verdict(text: str) -> AdviserVerdict:
    """
    Parse the model reply, tolerating text around the JSON object.

    Raises:
        ValueError: If no valid JSON object is found
        KeyError: If long_confidence is missing
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise ValueError(f"No JSON object in adviser reply: {text[:80]!r}")
    data = json.loads(text[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("Adviser reply is not a JSON object")
    return AdviserVerdict.from_dict(data)


class OllamaConfidenceAdviser:
    """
    ConfidenceEnhancer backed by a local Ollama model.

    Usage:
        async with OllamaClient(model="mistral") as client:
            engine = BacktestEngine(config, enhancer=OllamaConfidenceAdviser(client))
            result = await engine.run(candles)
    """

    def __init__(self, client: OllamaClient, fallback: MathematicalAdjuster | None = None):
        self.client = client
        self.fallback = fallback or MathematicalAdjuster()
        self.fallbacks_used = 0

    async def enhance(self, score: ConfidenceScore, analysis: MarketAnalysis) -> ConfidenceScore:
        try:
            text, _, _ = await self.client.analyze(
                build_prompt(score, analysis),
                system_prompt=SYSTEM_PROMPT,
                json_format=True,
            )
            verdict = parse_verdict(text)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            self.fallbacks_used += 1
            logger.warning(f"Adviser unavailable, using mathematical adjustment: {e}")
            return await self.fallback.enhance(score, analysis)

        delta = verdict.long_confidence - score.long_confidence
        delta = max(-MAX_ADVISER_ADJUSTMENT, min(MAX_ADVISER_ADJUSTMENT, delta))
        logger.debug(f"Adviser adjusted long confidence by {delta:+.1f}: {verdict.reasoning}")
        return score.adjusted(delta)
