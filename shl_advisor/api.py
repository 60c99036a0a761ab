from __future__ import annotations

"""
FastAPI application for the SHL assessment advisor.

- ``/ask``: chat-style endpoint; returns recommendations or a
  conversational message, exactly as produced by the normalizer
- ``/search``: programmatic endpoint with a ``success`` envelope
- ``/benchmark/cases`` and ``/evaluate``: the evaluation surface

The LLM + vector-search step is injected as an ``AnswerChain``; the app
never talks to a model directly.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from .config import (
    BENCHMARK_CASES,
    BenchmarkCase,
    ConversationalResult,
    HealthResponse,
    NormalizedResult,
)
from .evaluation import evaluate_case
from .normalize import clean_query_text, preview
from .response_parser import normalize_response

# =============================================================================
# Answer chain contract
# =============================================================================

@dataclass
class ChainResponse:
    text: str
    source_documents: List[Any] = field(default_factory=list)


AnswerChain = Callable[[str], Union[ChainResponse, Mapping[str, Any]]]


def _as_chain_response(result: Any) -> ChainResponse:
    """Accept a ChainResponse or a LangChain-style ``{"text", "sourceDocuments"}`` dict."""
    if isinstance(result, ChainResponse):
        return result
    if isinstance(result, Mapping):
        docs = result.get("sourceDocuments") or result.get("source_documents") or []
        text = result.get("text")
        return ChainResponse(text=text if isinstance(text, str) else "", source_documents=list(docs))
    raise TypeError(f"Unsupported chain result type: {type(result).__name__}")


def _run_chain(chain: AnswerChain, query: str) -> NormalizedResult:
    logger.info("Query received: \"{}\"", preview(query))
    started = time.perf_counter()
    response = _as_chain_response(chain(query))
    logger.info("Chain execution completed in {:.2f} seconds", time.perf_counter() - started)
    if response.source_documents:
        logger.info("Retrieved {} source documents", len(response.source_documents))
    return normalize_response(response.text, response.source_documents)

# =============================================================================
# Request schemas
# =============================================================================

class AskRequest(BaseModel):
    question: str = ""


class SearchRequest(BaseModel):
    query: str = ""


class EvaluateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    case_id: str = Field(alias="caseId")
    actual_assessments: List[str] = Field(default_factory=list, alias="actualAssessments")

# =============================================================================
# App factory
# =============================================================================

def create_app(
    chain: Optional[AnswerChain] = None,
    benchmark_cases: Sequence[BenchmarkCase] = BENCHMARK_CASES,
) -> FastAPI:
    app = FastAPI(title="SHL Assessment Advisor")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.chain = chain
    app.state.benchmark_cases = {c.id: c for c in benchmark_cases}

    def _require_chain() -> AnswerChain:
        if app.state.chain is None:
            raise HTTPException(status_code=503, detail="Answer chain not configured")
        return app.state.chain

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="healthy")

    @app.post("/ask")
    def ask(req: AskRequest):
        question = clean_query_text(req.question)
        if not question:
            return JSONResponse({"error": "No question provided"}, status_code=400)
        chain_fn = _require_chain()
        started = time.perf_counter()
        try:
            result = _run_chain(chain_fn, question)
        except Exception as e:
            logger.exception("Error processing request: {}", e)
            return JSONResponse(
                {"error": "An error occurred while processing your request", "details": str(e)},
                status_code=500,
            )
        logger.info("Total request processing time: {:.2f} seconds", time.perf_counter() - started)
        return result.to_payload()

    @app.post("/search")
    def search(req: SearchRequest):
        query = clean_query_text(req.query)
        if not query:
            return JSONResponse(
                {"success": False, "error": "Query parameter is required"}, status_code=400
            )
        chain_fn = _require_chain()
        try:
            result = _run_chain(chain_fn, query)
        except Exception as e:
            logger.exception("Error processing API request: {}", e)
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        body = {"success": True, "query": query}
        body.update(result.to_payload())
        if isinstance(result, ConversationalResult):
            body["message"] = body.pop("conversationalResponse")
        return body

    @app.get("/benchmark/cases")
    def benchmark_cases_view():
        return [c.model_dump(by_alias=True) for c in app.state.benchmark_cases.values()]

    @app.post("/evaluate")
    def evaluate(req: EvaluateRequest):
        case = app.state.benchmark_cases.get(req.case_id)
        if case is None:
            raise HTTPException(status_code=404, detail=f"Unknown benchmark case: {req.case_id}")
        result = evaluate_case(case, req.actual_assessments)
        return result.model_dump(by_alias=True)

    return app


app = create_app()
