"""
Core orchestration / pipeline.

Flow:
1. Resolve the prompt (custom prompt from the request, else the template file)
2. Single generation call with the prompt and the chart, bounded by a deadline
3. Return the success envelope with token usage and processing time

Failures are raised as InterpreterError subclasses; main.py turns them into
error envelopes.
"""

import asyncio
import logging
import time

from .errors import GenerationTimeoutError
from .llm_client import GenerationClient
from .prompt_loader import PromptLoader
from .schemas import ChartRequest, InterpretationResponse

logger = logging.getLogger(__name__)


async def interpret(
    chart_request: ChartRequest,
    loader: PromptLoader,
    client: GenerationClient,
    timeout: float,
) -> InterpretationResponse:
    prompt = loader.resolve(chart_request.custom_prompt)

    logger.info(
        f"Interpreting chart (created_at={chart_request.created_at!r}, "
        f"duration_of_response={chart_request.duration_of_response}, "
        f"custom_prompt={bool(chart_request.custom_prompt)})"
    )

    started = time.perf_counter()
    try:
        # wait_for cancels the in-flight provider call when the deadline passes
        result = await asyncio.wait_for(client.generate(prompt, chart_request.chart), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise GenerationTimeoutError(timeout) from e
    elapsed = time.perf_counter() - started

    logger.info(f"Interpretation generated in {elapsed:.2f}s ({len(result.interpretation)} chars)")
    return InterpretationResponse.ok(result, elapsed)
