"""
FastAPI entrypoint with a single /interpret route.

Handles everything around the generation call:
- Rejects non-POST methods
- Reads the raw body and parses it as a ChartRequest
- Maps every pipeline failure to a JSON error envelope and HTTP status
"""

import os
import json
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from functools import lru_cache
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from .config import Settings, get_settings
from .errors import BadRequestError, InterpreterError, PromptLoadError
from .interpreter import interpret
from .llm_client import GenerationClient, create_generation_client
from .prompt_loader import PromptLoader
from .schemas import ChartRequest, InterpretationResponse

SERVICE_NAME = "Vedic astrology AI interpretation service"

app = FastAPI(title="Chart Interpretation Relay")


@lru_cache()
def _loader_for(path: str) -> PromptLoader:
    return PromptLoader(path)


def get_prompt_loader(settings: Settings = Depends(get_settings)) -> PromptLoader:
    return _loader_for(settings.prompt_path)


@lru_cache()
def _client_for(settings: Settings) -> GenerationClient:
    return create_generation_client(settings)


def get_generation_client(settings: Settings = Depends(get_settings)) -> GenerationClient:
    return _client_for(settings)


def _envelope(status_code: int, message: str, headers=None) -> JSONResponse:
    if status_code >= 500:
        logger.error(f"Request failed ({status_code}): {message}")
    else:
        logger.warning(f"Request rejected ({status_code}): {message}")
    return JSONResponse(
        status_code=status_code,
        content=InterpretationResponse.fail(message).to_body(),
        headers=headers,
    )


@app.exception_handler(InterpreterError)
async def interpreter_error_handler(request: Request, exc: InterpreterError):
    # raised from dependencies, e.g. an unknown generation transport
    return _envelope(exc.status_code, str(exc))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unexpected error while handling request")
    return _envelope(500, "Internal server error")


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"invalid JSON constant: {name}")


async def _parse_chart_request(request: Request) -> ChartRequest:
    try:
        body = await request.body()
    except ClientDisconnect as e:
        raise BadRequestError("Failed to read request body") from e

    try:
        data = json.loads(body, parse_constant=_reject_constant)
        # a literal null decodes to an empty request
        return ChartRequest.model_validate(data if data is not None else {})
    except (ValueError, ValidationError) as e:
        raise BadRequestError("Invalid JSON format") from e


@app.post("/interpret", response_model=InterpretationResponse, response_model_exclude_none=True)
async def interpret_endpoint(
    request: Request,
    settings: Settings = Depends(get_settings),
    loader: PromptLoader = Depends(get_prompt_loader),
    client: GenerationClient = Depends(get_generation_client),
):
    # 1) Body + JSON
    try:
        chart_request = await _parse_chart_request(request)
    except BadRequestError as e:
        return _envelope(e.status_code, str(e))

    # 2) Prompt + generation
    try:
        result = await interpret(chart_request, loader, client, settings.request_timeout)
    except PromptLoadError:
        return _envelope(500, "Failed to load prompt template")
    except InterpreterError as e:
        return _envelope(500, f"Failed to generate interpretation: {e}")

    return JSONResponse(status_code=200, content=result.to_body())


@app.api_route("/interpret", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def interpret_method_not_allowed(request: Request):
    return _envelope(405, "Method not allowed", headers={"Allow": "POST"})


def run() -> None:
    import uvicorn

    settings = get_settings()
    logger.info(f"{SERVICE_NAME} started on port {settings.port}")
    logger.info("Endpoint: POST /interpret")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
