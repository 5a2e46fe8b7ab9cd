# api/app.py

"""
FastAPI application exposing the AuthLens analysis as a REST API.

Launch with: python3 authlens.py --serve [--port 8080]
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from modules.errors import AnalysisError, InvalidInput
from modules.orchestrator import EmailAuthAnalyzer
from modules.report import render_report

logger = logging.getLogger("authlens.api")


# --- Request/Response Models ---

class AnalyzeResponse(BaseModel):
    status: str
    domain: str
    error_count: Optional[int] = None
    result: Optional[dict] = None
    error: Optional[str] = None


def _error_response(domain, error):
    status_code = 400 if isinstance(error, InvalidInput) else 502
    body = AnalyzeResponse(status="error", domain=domain, error=str(error))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(analyzer=None):
    """Build the API around an analyzer (a default DoH analyzer if omitted)."""
    analyzer = analyzer or EmailAuthAnalyzer()

    app = FastAPI(
        title="AuthLens API",
        description="Email authentication record diagnostics",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health():
        """Simple health check endpoint."""
        return {"status": "ok", "service": "authlens", "sender": analyzer.profile.name}

    @app.get("/api/analyze/{domain}", response_model=AnalyzeResponse)
    async def analyze(domain: str):
        """Analyze SPF, DKIM and DMARC for a domain and return the structured result."""
        try:
            result = await analyzer.analyze(domain)
        except AnalysisError as e:
            logger.error("Analysis failed for %s: %s", domain, e)
            return _error_response(domain, e)
        return AnalyzeResponse(
            status="ok",
            domain=result.domain,
            error_count=result.error_count,
            result=result.to_dict(),
        )

    @app.get("/api/report/{domain}", response_class=PlainTextResponse)
    async def analyze_report(domain: str):
        """Analyze a domain and return the plain-text ticket report."""
        try:
            result = await analyzer.analyze(domain)
        except AnalysisError as e:
            logger.error("Report failed for %s: %s", domain, e)
            return _error_response(domain, e)
        return PlainTextResponse(render_report(result))

    return app


app = create_app()
