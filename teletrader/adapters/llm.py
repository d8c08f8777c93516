from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Sequence

from openai import AsyncOpenAI

from teletrader.core.errors import ValidationError, guard_upstream
from teletrader.core.types import FunctionSpec, MarketDataProvider
from teletrader.services.tools import execute_function, parse_function_call

ASSISTANT_SYSTEM = """You are a trading assistant focused specifically on the Deriv trading platform.

RULES:
- Only respond to questions about trading concepts, strategies, market analysis, or the Deriv platform itself.
- If a question is not related to trading or Deriv, politely explain that you can only assist with trading and Deriv-related queries.
- Keep responses clear, concise, and focused on providing accurate trading information.
- Never claim you executed trades.
"""

TOOLS_SYSTEM = """You are a trading assistant with access to real-time market data through functions.
You can use these functions to get market information:

{functions}
To use a function, respond ONLY with a JSON object in this format:
{{"function": "function_name", "arguments": {{"param1": "value1", ...}}}}

If no market data is needed, answer the user directly in plain text.
"""

EMPTY_ANSWER = "I couldn't put an answer together. Try asking about a specific symbol, e.g. R_50."

FOLLOW_UP_PROMPT = "Function result: {result}\n\nPlease analyze this data and provide insights."


def describe_functions(functions: Sequence[FunctionSpec]) -> str:
    blocks = []
    for fn in functions:
        params = json.dumps(fn.parameters, indent=2)
        blocks.append(f"Function: {fn.name}\nDescription: {fn.description}\nParameters: {params}\n")
    return "\n".join(blocks)


@dataclass
class LLMClient:
    api_key: str
    model: str = "gpt-4.1-mini"
    max_output_tokens: int = 600
    temperature: float = 0.3

    def __post_init__(self) -> None:
        self.client = AsyncOpenAI(api_key=self.api_key)

    def _extract_output_text(self, resp: Any) -> str:
        text = getattr(resp, "output_text", None)
        if isinstance(text, str) and text.strip():
            return text.strip()
        # Fall back to the message parts when output_text is empty.
        parts = [
            piece.text
            for item in getattr(resp, "output", None) or []
            if getattr(item, "type", None) == "message"
            for piece in getattr(item, "content", None) or []
            if getattr(piece, "type", None) == "output_text" and (getattr(piece, "text", "") or "").strip()
        ]
        return "\n".join(parts).strip()

    def _extract_json_payload(self, raw_text: str) -> dict:
        """First JSON object embedded in ``raw_text``, or {}."""
        text = raw_text or ""
        start = text.find("{")
        if start == -1:
            return {}
        try:
            payload, _ = json.JSONDecoder().raw_decode(text, start)
        except json.JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}

    async def _complete(self, messages: list[dict[str, str]]) -> str:
        resp = await guard_upstream(
            "call language model",
            self.client.responses.create(
                model=self.model,
                input=messages,
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            ),
        )
        return self._extract_output_text(resp) or EMPTY_ANSWER

    async def process_text(self, text: str) -> str:
        if not (text or "").strip():
            raise ValidationError("Input text cannot be empty.")
        return await self._complete(
            [
                {"role": "system", "content": ASSISTANT_SYSTEM},
                {"role": "user", "content": text},
            ]
        )

    async def process_with_functions(
        self, text: str, provider: MarketDataProvider, functions: Sequence[FunctionSpec]
    ) -> str:
        if not (text or "").strip():
            raise ValidationError("Input text cannot be empty.")

        messages = [
            {"role": "system", "content": TOOLS_SYSTEM.format(functions=describe_functions(functions))},
            {"role": "user", "content": text},
        ]
        raw = await self._complete(messages)

        call = parse_function_call(self._extract_json_payload(raw))
        if call is None:
            return raw

        result = await execute_function(call, provider)
        messages += [
            {"role": "assistant", "content": raw},
            {"role": "user", "content": FOLLOW_UP_PROMPT.format(result=result)},
        ]
        return await self._complete(messages)
